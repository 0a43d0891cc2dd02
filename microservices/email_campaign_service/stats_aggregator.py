"""
Campaign Stats Aggregator

Derives delivery and engagement counts for a campaign from its delivery
event log. Counting is per recipient and funnel-normalized: a click implies
an open, an open implies a delivery, and any event implies a send. Repeated
events for one recipient count once, so the counts always satisfy

    clicked <= opened <= delivered <= sent,  bounced <= sent

even when the log is incomplete or out of order.
"""

import logging
from typing import Dict, Iterable, Optional, Set

from .models import CampaignStats, DeliveryEvent, DeliveryEventType
from .protocols import DeliveryEventSourceProtocol, StatsAggregationError

logger = logging.getLogger(__name__)

# Event kinds that imply each funnel stage was reached
DELIVERED_KINDS = {DeliveryEventType.DELIVERED, DeliveryEventType.OPENED, DeliveryEventType.CLICKED}
OPENED_KINDS = {DeliveryEventType.OPENED, DeliveryEventType.CLICKED}


def _rate(numerator: int, denominator: int) -> Optional[float]:
    if denominator == 0:
        return None
    return round(numerator / denominator, 4)


def summarize_events(campaign_id: str, events: Iterable[DeliveryEvent]) -> CampaignStats:
    """
    Build stats for ``campaign_id`` from raw events.

    Events belonging to other campaigns are ignored. The result depends only
    on the set of (recipient, event_type) pairs, not on event order.
    """
    kinds_by_recipient: Dict[str, Set[DeliveryEventType]] = {}
    for event in events:
        if event.campaign_id != campaign_id:
            continue
        kinds_by_recipient.setdefault(event.recipient, set()).add(event.event_type)

    sent = len(kinds_by_recipient)
    delivered = sum(1 for kinds in kinds_by_recipient.values() if kinds & DELIVERED_KINDS)
    opened = sum(1 for kinds in kinds_by_recipient.values() if kinds & OPENED_KINDS)
    clicked = sum(1 for kinds in kinds_by_recipient.values() if DeliveryEventType.CLICKED in kinds)
    bounced = sum(1 for kinds in kinds_by_recipient.values() if DeliveryEventType.BOUNCED in kinds)

    return CampaignStats(
        campaign_id=campaign_id,
        sent=sent,
        delivered=delivered,
        opened=opened,
        clicked=clicked,
        bounced=bounced,
        delivery_rate=_rate(delivered, sent),
        open_rate=_rate(opened, delivered),
        click_rate=_rate(clicked, opened),
        bounce_rate=_rate(bounced, sent),
    )


class StatsAggregator:
    """Computes CampaignStats on read; holds no state between calls"""

    def __init__(self, event_source: DeliveryEventSourceProtocol):
        self.event_source = event_source

    async def compute_stats(self, campaign_id: str) -> CampaignStats:
        """Read the event log for a campaign and summarize it"""
        try:
            events = await self.event_source.list_events(campaign_id)
        except Exception as e:
            logger.error(f"Failed to read delivery events for campaign {campaign_id}: {e}")
            raise StatsAggregationError(
                f"Failed to read delivery events: {e}", campaign_id=campaign_id
            ) from e

        return summarize_events(campaign_id, events)


__all__ = ["StatsAggregator", "summarize_events"]
