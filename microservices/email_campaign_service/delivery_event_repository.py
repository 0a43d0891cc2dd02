"""
Delivery Event Repository

Read access to the per-recipient delivery event log. Rows are written by the
sending pipeline; this service only reads them to derive campaign stats.
"""

import logging
from typing import Any, Dict, List

from core.postgres_client import PostgresClient

from .models import DeliveryEvent, DeliveryEventType

logger = logging.getLogger(__name__)

KNOWN_EVENT_TYPES = frozenset(t.value for t in DeliveryEventType)


class DeliveryEventRepository:
    """Delivery event log - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClient, schema: str = "email_campaign"):
        self.db = db
        self.schema = schema
        self.events_table = "delivery_events"

    async def initialize(self):
        """Create the delivery events table if missing"""
        table = f"{self.schema}.{self.events_table}"
        await self.db.execute_script([
            f"CREATE SCHEMA IF NOT EXISTS {self.schema}",
            f'''
            CREATE TABLE IF NOT EXISTS {table} (
                event_id TEXT PRIMARY KEY,
                campaign_id TEXT NOT NULL,
                recipient TEXT NOT NULL,
                event_type TEXT NOT NULL,
                occurred_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            ''',
            f"CREATE INDEX IF NOT EXISTS idx_delivery_events_campaign ON {table} (campaign_id)",
        ])
        logger.info("Delivery event repository initialized")

    async def list_events(self, campaign_id: str) -> List[DeliveryEvent]:
        """Get all delivery events recorded for a campaign"""
        query = f'''
            SELECT event_id, campaign_id, recipient, event_type, occurred_at
            FROM {self.schema}.{self.events_table}
            WHERE campaign_id = $1
            ORDER BY occurred_at
        '''
        rows = await self.db.query(query, params=[campaign_id])

        events = []
        for row in rows:
            if row.get("event_type") not in KNOWN_EVENT_TYPES:
                logger.debug(
                    f"Skipping unknown delivery event type {row.get('event_type')!r} "
                    f"for campaign {campaign_id}"
                )
                continue
            events.append(self._row_to_event(row))
        return events

    def _row_to_event(self, row: Dict[str, Any]) -> DeliveryEvent:
        return DeliveryEvent(
            event_id=row.get("event_id"),
            campaign_id=row.get("campaign_id"),
            recipient=row.get("recipient"),
            event_type=DeliveryEventType(row.get("event_type")),
            occurred_at=row.get("occurred_at"),
        )


__all__ = ["DeliveryEventRepository"]
