"""
Email Campaign Service Business Logic

Orchestrates validation, persistence and stats enrichment, and owns the
campaign status state machine.
"""

import asyncio
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from core.config import DEFAULT_CAMPAIGN_TYPES

from .campaign_validator import CampaignValidator, validate_required_text
from .models import (
    CampaignDraft,
    CampaignStats,
    CampaignStatus,
    CampaignUpdateRequest,
    CampaignWithStats,
    EmailCampaign,
    EventRegistration,
    StatsError,
    ensure_utc,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    Clock,
    InvalidCampaignStateError,
    InvalidScheduleError,
    RegistrationSourceProtocol,
    StatsAggregationError,
    StatsTimeoutError,
    UnexpectedScheduleError,
    utc_now,
)
from .stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)


class EmailCampaignService:
    """Email campaign service business logic layer"""

    # Valid state transitions (status only ever moves forward)
    VALID_TRANSITIONS = {
        CampaignStatus.DRAFT: [CampaignStatus.SCHEDULED, CampaignStatus.SENT],
        CampaignStatus.SCHEDULED: [CampaignStatus.SENT],
        CampaignStatus.SENT: [],  # Terminal state
    }

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        aggregator: StatsAggregator,
        registration_source: Optional[RegistrationSourceProtocol] = None,
        allowed_types: Iterable[str] = DEFAULT_CAMPAIGN_TYPES,
        stats_max_concurrency: int = 8,
        stats_timeout: float = 5.0,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.aggregator = aggregator
        self.registration_source = registration_source
        self.validator = CampaignValidator(allowed_types, clock)
        self.stats_max_concurrency = max(1, stats_max_concurrency)
        self.stats_timeout = stats_timeout
        self.clock = clock

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(self, draft: CampaignDraft) -> EmailCampaign:
        """
        Validate and persist a new campaign.

        Validation errors propagate unchanged and nothing is written.
        """
        self.validator.validate(draft)
        campaign = await self.repository.create_campaign(draft)
        logger.info(f"Created campaign {campaign.id} '{campaign.name}' ({campaign.status.value})")
        return campaign

    async def get_campaign(self, campaign_id: str) -> EmailCampaign:
        """Get campaign by ID"""
        campaign = await self.repository.get_campaign(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    async def update_campaign(
        self, campaign_id: str, request: CampaignUpdateRequest
    ) -> EmailCampaign:
        """Edit name, subject or content of a campaign that has not been sent"""
        updates = request.model_dump(exclude_none=True)
        for field, value in updates.items():
            validate_required_text(field, value)
        for field in ("name", "subject"):
            if field in updates:
                updates[field] = updates[field].strip()

        campaign = await self.repository.update_campaign_content(campaign_id, updates)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        if updates:
            logger.info(f"Updated campaign {campaign_id}: {sorted(updates)}")
        return campaign

    # ====================
    # Status Lifecycle
    # ====================

    def _is_valid_transition(self, current: CampaignStatus, target: CampaignStatus) -> bool:
        """Check if status transition is valid"""
        return target in self.VALID_TRANSITIONS.get(current, [])

    async def transition_status(
        self,
        campaign_id: str,
        target: CampaignStatus,
        scheduled_at: Optional[datetime] = None,
    ) -> EmailCampaign:
        """
        Move a campaign to ``target``.

        draft -> scheduled needs a future scheduled_at; moving to sent stamps
        sent_at. A concurrent transition that wins first makes this one fail
        with InvalidCampaignStateError rather than overwrite it.
        """
        scheduled_at = ensure_utc(scheduled_at)
        campaign = await self.get_campaign(campaign_id)

        if not self._is_valid_transition(campaign.status, target):
            raise InvalidCampaignStateError(
                f"Cannot transition campaign from {campaign.status.value} to {target.value}",
                current_status=campaign.status,
                target_status=target,
            )

        now = self.clock()
        sent_at = None
        if target == CampaignStatus.SCHEDULED:
            if scheduled_at is None:
                raise InvalidScheduleError(
                    "Scheduled campaigns require a scheduled time", "scheduled_at"
                )
            if scheduled_at <= now:
                raise InvalidScheduleError(
                    "Scheduled time must be in the future", "scheduled_at"
                )
        elif scheduled_at is not None:
            raise UnexpectedScheduleError(
                "Only scheduled campaigns may have a scheduled time", "scheduled_at"
            )

        if target == CampaignStatus.SENT:
            sent_at = now

        updated = await self.repository.update_campaign_status(
            campaign_id,
            expected_status=campaign.status,
            status=target,
            scheduled_at=scheduled_at,
            sent_at=sent_at,
        )
        if updated is None:
            latest = await self.get_campaign(campaign_id)
            raise InvalidCampaignStateError(
                f"Campaign {campaign_id} changed to {latest.status.value} concurrently",
                current_status=latest.status,
                target_status=target,
            )

        logger.info(f"Campaign {campaign_id} {target.value}")
        return updated

    async def schedule_campaign(self, campaign_id: str, scheduled_at: datetime) -> EmailCampaign:
        """Schedule a draft campaign for a future time"""
        return await self.transition_status(campaign_id, CampaignStatus.SCHEDULED, scheduled_at)

    async def mark_campaign_sent(self, campaign_id: str) -> EmailCampaign:
        """Record that a draft or scheduled campaign has been sent"""
        return await self.transition_status(campaign_id, CampaignStatus.SENT)

    def can_send(self, campaign: EmailCampaign) -> bool:
        """A campaign can be sent unless it already was or is scheduled for later"""
        if campaign.status == CampaignStatus.SENT:
            return False
        if campaign.status == CampaignStatus.SCHEDULED and campaign.scheduled_at is not None:
            return campaign.scheduled_at <= self.clock()
        return True

    # ====================
    # Stats
    # ====================

    async def get_campaign_stats(self, campaign_id: str) -> CampaignStats:
        """Stats for one existing campaign"""
        await self.get_campaign(campaign_id)
        try:
            return await asyncio.wait_for(
                self.aggregator.compute_stats(campaign_id), self.stats_timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Stats aggregation timed out for campaign {campaign_id}")
            raise StatsTimeoutError(
                f"Stats aggregation exceeded {self.stats_timeout}s", campaign_id=campaign_id
            ) from e

    async def _stats_entry(
        self, campaign: EmailCampaign, semaphore: asyncio.Semaphore
    ) -> CampaignWithStats:
        async with semaphore:
            try:
                stats = await asyncio.wait_for(
                    self.aggregator.compute_stats(campaign.id), self.stats_timeout
                )
            except StatsAggregationError as e:
                logger.warning(f"Stats unavailable for campaign {campaign.id}: {e}")
                return CampaignWithStats(
                    campaign=campaign,
                    error=StatsError(code=e.code, detail=str(e)),
                )
            except asyncio.TimeoutError:
                logger.warning(f"Stats aggregation timed out for campaign {campaign.id}")
                return CampaignWithStats(
                    campaign=campaign,
                    error=StatsError(
                        code=StatsTimeoutError.code,
                        detail=f"Stats aggregation exceeded {self.stats_timeout}s",
                    ),
                )
        return CampaignWithStats(campaign=campaign, stats=stats)

    async def list_with_stats(self) -> List[CampaignWithStats]:
        """
        List campaigns with their stats.

        Aggregation runs concurrently, bounded by stats_max_concurrency, with
        a per-campaign timeout. Entries come back in store order; a campaign
        whose stats fail carries an error instead of failing the whole list.
        """
        campaigns = await self.repository.list_campaigns()
        semaphore = asyncio.Semaphore(self.stats_max_concurrency)
        entries = await asyncio.gather(
            *(self._stats_entry(campaign, semaphore) for campaign in campaigns)
        )
        failed = sum(1 for entry in entries if not entry.ok)
        if failed:
            logger.warning(f"Stats missing for {failed} of {len(entries)} campaigns")
        return list(entries)

    # ====================
    # Registrations
    # ====================

    async def list_registrations(self) -> List[EventRegistration]:
        """Event registrations available for campaign targeting"""
        if self.registration_source is None:
            return []
        return await self.registration_source.get_event_registrations()


__all__ = ["EmailCampaignService"]
