"""
PostgreSQL Client Wrapper

Thin asyncpg connection-pool wrapper shared by the campaign repository and
the delivery event log. The pool is created lazily on first use and owned by
whoever constructs the client (the service factory), never a process global.

Usage:
    from core.postgres_client import PostgresClient

    db = PostgresClient.from_config(settings.infrastructure, "email_campaign_service")
    await db.connect()

    rows = await db.query("SELECT * FROM email_campaign.campaigns WHERE id = $1", [campaign_id])
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class PostgresClient:
    """
    PostgreSQL client wrapper around an asyncpg pool.

    Provides:
    - Lazy pool creation guarded by a lock
    - Dict rows for query / query_row
    - A single-transaction runner for schema statements (execute_script)
    """

    def __init__(
        self,
        service_name: str,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            dsn: PostgreSQL connection string
            min_size: Minimum pool connections
            max_size: Maximum pool connections
        """
        self.service_name = service_name
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: InfraConfig, service_name: str) -> "PostgresClient":
        """Build a client from infrastructure config"""
        logger.info(
            f"PostgreSQL client configured for {service_name}: "
            f"{config.postgres_host}:{config.postgres_port}/{config.postgres_db}"
        )
        return cls(
            service_name=service_name,
            dsn=config.postgres_dsn,
            min_size=config.postgres_pool_min,
            max_size=config.postgres_pool_max,
        )

    async def connect(self) -> asyncpg.Pool:
        """Create the connection pool if it does not exist yet"""
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    self._pool = await asyncpg.create_pool(
                        dsn=self._dsn,
                        min_size=self._min_size,
                        max_size=self._max_size,
                    )
                    logger.info(f"PostgreSQL pool opened for {self.service_name}")
        return self._pool

    async def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            row = await self.query_row("SELECT 1 AS healthy")
            return row is not None
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        pool = await self.connect()
        records = await pool.fetch(sql, *(params or []))
        return [dict(record) for record in records]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        pool = await self.connect()
        record = await pool.fetchrow(sql, *(params or []))
        return dict(record) if record is not None else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement and return the status tag"""
        pool = await self.connect()
        return await pool.execute(sql, *(params or []))

    async def execute_script(self, statements: List[str]) -> None:
        """Run DDL statements in one transaction, used by repository initialize()"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            async with conn.transaction():
                for statement in statements:
                    await conn.execute(statement)


__all__ = ["PostgresClient"]
