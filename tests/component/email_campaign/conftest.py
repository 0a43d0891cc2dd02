"""
Component Test Fixtures for Email Campaign Service

Provides in-memory mocks for the campaign store, the delivery event log and
the registration source, plus a service wired to them.
"""

import asyncio
from datetime import timedelta
from typing import Dict, List, Optional, Set

import pytest

from microservices.email_campaign_service.campaign_service import EmailCampaignService
from microservices.email_campaign_service.protocols import (
    CampaignPersistenceError,
    InvalidCampaignStateError,
    RegistrationSourceError,
)
from microservices.email_campaign_service.stats_aggregator import StatsAggregator
from tests.contracts.email_campaign.data_contract import (
    FIXED_NOW,
    CampaignDraft,
    CampaignStatus,
    DeliveryEvent,
    EmailCampaign,
    EventRegistration,
)


# ====================
# Mock Repository
# ====================


class MockEmailCampaignRepository:
    """In-memory campaign store with the same compare-and-set semantics as the real one"""

    def __init__(self):
        self.campaigns: Dict[str, EmailCampaign] = {}
        self.create_calls = 0
        self.fail_with: Optional[Exception] = None
        self._counter = 0
        self._locks: Dict[str, asyncio.Lock] = {}

    def _check_failure(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _lock_for(self, campaign_id: str) -> asyncio.Lock:
        return self._locks.setdefault(campaign_id, asyncio.Lock())

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return self.fail_with is None

    def add(self, campaign: EmailCampaign) -> EmailCampaign:
        """Seed a campaign directly"""
        self.campaigns[campaign.id] = campaign
        return campaign

    async def create_campaign(self, draft: CampaignDraft) -> EmailCampaign:
        self.create_calls += 1
        self._check_failure()
        self._counter += 1
        created_at = FIXED_NOW + timedelta(seconds=self._counter)
        campaign = EmailCampaign(
            id=f"cmp-{self._counter:04d}",
            name=draft.name.strip(),
            campaign_type=draft.campaign_type,
            subject=draft.subject.strip(),
            html_content=draft.html_content,
            status=CampaignStatus(draft.status),
            scheduled_at=draft.scheduled_at,
            created_by=draft.created_by,
            created_at=created_at,
            updated_at=created_at,
        )
        return self.add(campaign)

    async def list_campaigns(self) -> List[EmailCampaign]:
        self._check_failure()
        return sorted(self.campaigns.values(), key=lambda c: c.created_at, reverse=True)

    async def get_campaign(self, campaign_id: str) -> Optional[EmailCampaign]:
        self._check_failure()
        return self.campaigns.get(campaign_id)

    async def update_campaign_status(
        self, campaign_id, expected_status, status, scheduled_at=None, sent_at=None
    ) -> Optional[EmailCampaign]:
        self._check_failure()
        async with self._lock_for(campaign_id):
            current = self.campaigns.get(campaign_id)
            if current is None or current.status != expected_status:
                return None
            # Yield so concurrent writers interleave here if unserialized
            await asyncio.sleep(0)
            updated = current.model_copy(update={
                "status": status,
                "scheduled_at": scheduled_at or current.scheduled_at,
                "sent_at": current.sent_at or sent_at,
                "updated_at": FIXED_NOW + timedelta(hours=1),
            })
            self.campaigns[campaign_id] = updated
            return updated

    async def update_campaign_content(self, campaign_id, updates) -> Optional[EmailCampaign]:
        self._check_failure()
        async with self._lock_for(campaign_id):
            current = self.campaigns.get(campaign_id)
            if current is None:
                return None
            if current.status == CampaignStatus.SENT:
                raise InvalidCampaignStateError(
                    "Sent campaigns cannot be edited", current_status=current.status
                )
            if not updates:
                return current
            updated = current.model_copy(update={**updates, "updated_at": FIXED_NOW + timedelta(hours=1)})
            self.campaigns[campaign_id] = updated
            return updated


# ====================
# Mock Collaborators
# ====================


class MockDeliveryEventSource:
    """In-memory delivery event log with failure and latency injection"""

    def __init__(self):
        self.events: Dict[str, List[DeliveryEvent]] = {}
        self.failing: Set[str] = set()
        self.delays: Dict[str, float] = {}
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    def add_events(self, events: List[DeliveryEvent]) -> None:
        for event in events:
            self.events.setdefault(event.campaign_id, []).append(event)

    async def list_events(self, campaign_id: str) -> List[DeliveryEvent]:
        self.calls.append(campaign_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(campaign_id, 0))
            if campaign_id in self.failing:
                raise ConnectionError(f"event log unavailable for {campaign_id}")
            return list(self.events.get(campaign_id, []))
        finally:
            self.active -= 1


class MockRegistrationSource:
    """In-memory registration source"""

    def __init__(self, registrations: Optional[List[EventRegistration]] = None):
        self.registrations = registrations or []
        self.fail = False

    async def get_event_registrations(self) -> List[EventRegistration]:
        if self.fail:
            raise RegistrationSourceError("Registration service returned 503")
        return list(self.registrations)


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_repository() -> MockEmailCampaignRepository:
    return MockEmailCampaignRepository()


@pytest.fixture
def mock_event_source() -> MockDeliveryEventSource:
    return MockDeliveryEventSource()


@pytest.fixture
def mock_registration_source() -> MockRegistrationSource:
    return MockRegistrationSource()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def aggregator(mock_event_source) -> StatsAggregator:
    return StatsAggregator(mock_event_source)


@pytest.fixture
def campaign_service(mock_repository, aggregator, mock_registration_source, fixed_clock) -> EmailCampaignService:
    return EmailCampaignService(
        repository=mock_repository,
        aggregator=aggregator,
        registration_source=mock_registration_source,
        stats_max_concurrency=2,
        stats_timeout=0.5,
        clock=fixed_clock,
    )


@pytest.fixture
def persistence_failure() -> CampaignPersistenceError:
    return CampaignPersistenceError("Failed to create campaign: connection refused")
