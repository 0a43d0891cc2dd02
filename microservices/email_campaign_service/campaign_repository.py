"""
Email Campaign Repository

Data access layer - PostgreSQL (Async)

This repository is the single writer of campaign rows. Status writes are
compare-and-set on the current status, and writes to the same campaign are
serialized in-process, so two concurrent transitions can never both win.
"""

import asyncio
import logging
import uuid
import weakref
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import CampaignDraft, CampaignStatus, EmailCampaign
from .protocols import (
    CampaignPersistenceError,
    Clock,
    InvalidCampaignStateError,
    utc_now,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "subject", "html_content")


class CampaignRepository:
    """Email campaign data repository - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClient, clock: Clock = utc_now, schema: str = "email_campaign"):
        self.db = db
        self.clock = clock
        self.schema = schema
        self.campaigns_table = "campaigns"
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def _table(self) -> str:
        return f"{self.schema}.{self.campaigns_table}"

    def _lock_for(self, campaign_id: str) -> asyncio.Lock:
        lock = self._locks.get(campaign_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[campaign_id] = lock
        return lock

    async def initialize(self):
        """Create the schema and campaigns table if missing"""
        try:
            await self.db.execute_script([
                f"CREATE SCHEMA IF NOT EXISTS {self.schema}",
                f'''
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    campaign_type TEXT NOT NULL,
                    subject TEXT NOT NULL,
                    html_content TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'draft',
                    scheduled_at TIMESTAMPTZ,
                    sent_at TIMESTAMPTZ,
                    created_by TEXT,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                )
                ''',
                f"CREATE INDEX IF NOT EXISTS idx_campaigns_created_at ON {self._table} (created_at DESC)",
            ])
            logger.info("Email campaign repository initialized with PostgreSQL")
        except Exception as e:
            logger.error(f"Error initializing campaign schema: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to initialize campaign store: {e}") from e

    async def close(self):
        """Close database connection"""
        logger.info("Email campaign repository closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        return await self.db.health_check()

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(self, draft: CampaignDraft) -> EmailCampaign:
        """Insert a validated draft and return the stored campaign"""
        now = self.clock()
        campaign_id = str(uuid.uuid4())
        query = f'''
            INSERT INTO {self._table} (
                id, name, campaign_type, subject, html_content,
                status, scheduled_at, sent_at, created_by,
                created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, NULL, $8, $9, $9)
            RETURNING *
        '''
        params = [
            campaign_id,
            draft.name.strip(),
            draft.campaign_type,
            draft.subject.strip(),
            draft.html_content,
            draft.status,
            draft.scheduled_at,
            draft.created_by,
            now,
        ]
        try:
            row = await self.db.query_row(query, params=params)
        except Exception as e:
            logger.error(f"Error creating campaign: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to create campaign: {e}") from e

        if row is None:
            raise CampaignPersistenceError("Failed to create campaign: no row returned")

        logger.info(f"Campaign created: {campaign_id} ({draft.status})")
        return self._row_to_campaign(row)

    async def list_campaigns(self) -> List[EmailCampaign]:
        """List all campaigns, newest first"""
        query = f"SELECT * FROM {self._table} ORDER BY created_at DESC, id"
        try:
            rows = await self.db.query(query)
        except Exception as e:
            logger.error(f"Error listing campaigns: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to list campaigns: {e}") from e
        return [self._row_to_campaign(row) for row in rows]

    async def get_campaign(self, campaign_id: str) -> Optional[EmailCampaign]:
        """Get campaign by ID"""
        query = f"SELECT * FROM {self._table} WHERE id = $1"
        try:
            row = await self.db.query_row(query, params=[campaign_id])
        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise CampaignPersistenceError(f"Failed to get campaign: {e}") from e
        return self._row_to_campaign(row) if row else None

    async def update_campaign_status(
        self,
        campaign_id: str,
        expected_status: CampaignStatus,
        status: CampaignStatus,
        scheduled_at: Optional[datetime] = None,
        sent_at: Optional[datetime] = None,
    ) -> Optional[EmailCampaign]:
        """
        Move a campaign from expected_status to status.

        Returns None when the row is missing or no longer in expected_status.
        sent_at is only ever set once.
        """
        query = f'''
            UPDATE {self._table}
            SET status = $1,
                scheduled_at = COALESCE($2, scheduled_at),
                sent_at = COALESCE(sent_at, $3),
                updated_at = $4
            WHERE id = $5 AND status = $6
            RETURNING *
        '''
        async with self._lock_for(campaign_id):
            params = [
                status.value,
                scheduled_at,
                sent_at,
                self.clock(),
                campaign_id,
                expected_status.value,
            ]
            try:
                row = await self.db.query_row(query, params=params)
            except Exception as e:
                logger.error(f"Error updating status of campaign {campaign_id}: {e}", exc_info=True)
                raise CampaignPersistenceError(f"Failed to update campaign status: {e}") from e

        if row is None:
            return None
        logger.info(f"Campaign {campaign_id}: {expected_status.value} -> {status.value}")
        return self._row_to_campaign(row)

    async def update_campaign_content(
        self, campaign_id: str, updates: Dict[str, str]
    ) -> Optional[EmailCampaign]:
        """
        Update editable fields of a campaign that has not been sent.

        Returns None when the campaign does not exist; raises
        InvalidCampaignStateError when it has already been sent.
        """
        fields = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}

        async with self._lock_for(campaign_id):
            current = await self.get_campaign(campaign_id)
            if current is None:
                return None
            if current.status == CampaignStatus.SENT:
                raise InvalidCampaignStateError(
                    "Sent campaigns cannot be edited", current_status=current.status
                )
            if not fields:
                return current

            assignments = [f"{name} = ${i}" for i, name in enumerate(fields, start=1)]
            params: List[Any] = list(fields.values())
            params.extend([self.clock(), campaign_id, CampaignStatus.SENT.value])
            n = len(fields)
            query = f'''
                UPDATE {self._table}
                SET {", ".join(assignments)}, updated_at = ${n + 1}
                WHERE id = ${n + 2} AND status <> ${n + 3}
                RETURNING *
            '''
            try:
                row = await self.db.query_row(query, params=params)
            except Exception as e:
                logger.error(f"Error updating campaign {campaign_id}: {e}", exc_info=True)
                raise CampaignPersistenceError(f"Failed to update campaign: {e}") from e

        if row is None:
            raise InvalidCampaignStateError(
                "Sent campaigns cannot be edited", current_status=CampaignStatus.SENT
            )
        return self._row_to_campaign(row)

    # ====================
    # Helpers
    # ====================

    def _row_to_campaign(self, row: Dict[str, Any]) -> EmailCampaign:
        """Convert database row to EmailCampaign model"""
        return EmailCampaign(
            id=row.get("id"),
            name=row.get("name"),
            campaign_type=row.get("campaign_type"),
            subject=row.get("subject"),
            html_content=row.get("html_content"),
            status=CampaignStatus(row.get("status")),
            scheduled_at=row.get("scheduled_at"),
            sent_at=row.get("sent_at"),
            created_by=row.get("created_by"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["CampaignRepository", "EDITABLE_FIELDS"]
