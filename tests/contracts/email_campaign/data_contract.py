"""
Email Campaign Service - Data Contract

Re-exports the service models and provides the test data factory and
builders shared by the unit and component test layers.
"""

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from microservices.email_campaign_service.models import (
    CampaignDraft,
    CampaignStats,
    CampaignStatus,
    CampaignUpdateRequest,
    CampaignWithStats,
    DeliveryEvent,
    DeliveryEventType,
    EmailCampaign,
    EventRegistration,
    ScheduleRequest,
    StatsError,
)

# Reference instant used by fixed clocks in tests
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# TEST DATA FACTORY
# =============================================================================

class EmailCampaignTestDataFactory:
    """Factory for generating test data for email campaign service tests

    Usage:
        factory = EmailCampaignTestDataFactory()
        draft = factory.make_draft()
        campaign = factory.make_campaign(status=CampaignStatus.SCHEDULED)
        event = factory.make_event(campaign.id, "a@example.com", DeliveryEventType.OPENED)
    """

    @staticmethod
    def make_campaign_id() -> str:
        """Generate campaign ID"""
        return str(uuid4())

    @staticmethod
    def make_email() -> str:
        """Generate random email"""
        local = "".join(random.choices(string.ascii_lowercase, k=8))
        return f"{local}@example.com"

    @staticmethod
    def make_name() -> str:
        return f"Campaign {''.join(random.choices(string.ascii_uppercase, k=6))}"

    @staticmethod
    def make_draft_payload(**overrides) -> Dict[str, Any]:
        """Raw request body as the HTTP layer receives it"""
        payload = {
            "name": "Spring Reminder",
            "type": "reminder",
            "subject": "Don't forget!",
            "html_content": "<p>Hi</p>",
            "status": "draft",
        }
        payload.update(overrides)
        return payload

    @classmethod
    def make_draft(cls, **overrides) -> CampaignDraft:
        return CampaignDraft.model_validate(cls.make_draft_payload(**overrides))

    @classmethod
    def make_scheduled_draft(
        cls, scheduled_at: Optional[datetime] = None, now: datetime = FIXED_NOW, **overrides
    ) -> CampaignDraft:
        return cls.make_draft(
            status="scheduled",
            scheduled_at=scheduled_at or now + timedelta(days=1),
            **overrides,
        )

    @classmethod
    def make_campaign(
        cls,
        status: CampaignStatus = CampaignStatus.DRAFT,
        created_at: datetime = FIXED_NOW,
        **overrides,
    ) -> EmailCampaign:
        data = {
            "id": cls.make_campaign_id(),
            "name": cls.make_name(),
            "campaign_type": "announcement",
            "subject": "Open house this weekend",
            "html_content": "<p>Join us</p>",
            "status": status,
            "scheduled_at": created_at + timedelta(days=2) if status == CampaignStatus.SCHEDULED else None,
            "sent_at": created_at + timedelta(hours=1) if status == CampaignStatus.SENT else None,
            "created_at": created_at,
            "updated_at": created_at,
        }
        data.update(overrides)
        return EmailCampaign(**data)

    @staticmethod
    def make_event(
        campaign_id: str,
        recipient: str,
        event_type: DeliveryEventType,
        occurred_at: datetime = FIXED_NOW,
    ) -> DeliveryEvent:
        return DeliveryEvent(
            event_id=f"evt_{uuid4().hex[:16]}",
            campaign_id=campaign_id,
            recipient=recipient,
            event_type=event_type,
            occurred_at=occurred_at,
        )

    @classmethod
    def make_funnel_events(
        cls, campaign_id: str, recipient: str, *kinds: DeliveryEventType
    ) -> List[DeliveryEvent]:
        """One event per kind for a single recipient"""
        return [cls.make_event(campaign_id, recipient, kind) for kind in kinds]

    @classmethod
    def make_registration(cls, **overrides) -> EventRegistration:
        data = {
            "id": str(uuid4()),
            "email": cls.make_email(),
            "name": "Jordan Lee",
            "phone": None,
            "signed_up_for_class": False,
            "source": "open-house",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        data.update(overrides)
        return EventRegistration(**data)


# =============================================================================
# BUILDER CLASSES
# =============================================================================

class CampaignDraftBuilder:
    """Builder for CampaignDraft"""

    def __init__(self):
        self._data = EmailCampaignTestDataFactory.make_draft_payload()

    def with_name(self, name: Optional[str]) -> "CampaignDraftBuilder":
        self._data["name"] = name
        return self

    def with_type(self, campaign_type: Optional[str]) -> "CampaignDraftBuilder":
        self._data["type"] = campaign_type
        return self

    def with_subject(self, subject: Optional[str]) -> "CampaignDraftBuilder":
        self._data["subject"] = subject
        return self

    def with_content(self, html_content: Optional[str]) -> "CampaignDraftBuilder":
        self._data["html_content"] = html_content
        return self

    def with_status(self, status: str) -> "CampaignDraftBuilder":
        self._data["status"] = status
        return self

    def scheduled_for(self, scheduled_at: Optional[datetime]) -> "CampaignDraftBuilder":
        self._data["status"] = CampaignStatus.SCHEDULED.value
        self._data["scheduled_at"] = scheduled_at
        return self

    def with_scheduled_at(self, scheduled_at: Optional[datetime]) -> "CampaignDraftBuilder":
        self._data["scheduled_at"] = scheduled_at
        return self

    def build(self) -> CampaignDraft:
        return CampaignDraft.model_validate(self._data)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "FIXED_NOW",
    # Models
    "CampaignDraft",
    "CampaignStats",
    "CampaignStatus",
    "CampaignUpdateRequest",
    "CampaignWithStats",
    "DeliveryEvent",
    "DeliveryEventType",
    "EmailCampaign",
    "EventRegistration",
    "ScheduleRequest",
    "StatsError",
    # Factory & builders
    "EmailCampaignTestDataFactory",
    "CampaignDraftBuilder",
]
