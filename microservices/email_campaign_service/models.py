"""
Email Campaign Service Data Models

Canonical data structures for campaigns, drafts, delivery events,
derived stats and the registration records used for targeting.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so schedule comparisons never mix kinds"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status (monotonic: draft -> scheduled -> sent)"""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"


class DeliveryEventType(str, Enum):
    """Kinds of delivery-tracking events recorded per recipient"""
    SENT = "sent"
    DELIVERED = "delivered"
    OPENED = "opened"
    CLICKED = "clicked"
    BOUNCED = "bounced"


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
    }


# =============================================================================
# CAMPAIGN MODELS
# =============================================================================

class CampaignDraft(BaseContract):
    """
    Candidate campaign submitted for creation.

    Every field is optional at the model level so that missing or blank
    values reach the validator and are reported with a specific message.
    """
    name: Optional[str] = None
    campaign_type: Optional[str] = Field(None, alias="type")
    subject: Optional[str] = None
    html_content: Optional[str] = None
    status: str = CampaignStatus.DRAFT.value
    scheduled_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v):
        return ensure_utc(v)


class EmailCampaign(BaseContract):
    """Persisted email campaign"""
    id: str
    name: str
    campaign_type: str = Field(..., alias="type")
    subject: str
    html_content: str
    status: CampaignStatus = CampaignStatus.DRAFT
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    def to_response(self) -> Dict[str, Any]:
        """Wire representation used by the HTTP layer"""
        return self.model_dump(mode="json", by_alias=True)


class CampaignUpdateRequest(BaseContract):
    """Content edits allowed while a campaign has not been sent"""
    name: Optional[str] = None
    subject: Optional[str] = None
    html_content: Optional[str] = None


class ScheduleRequest(BaseContract):
    """Request to schedule a draft campaign"""
    scheduled_at: datetime

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v):
        return ensure_utc(v)


# =============================================================================
# DELIVERY EVENTS & STATS
# =============================================================================

class DeliveryEvent(BaseContract):
    """Single delivery-tracking record for one recipient of a campaign"""
    event_id: str
    campaign_id: str
    recipient: str = Field(..., description="Recipient email or registration id")
    event_type: DeliveryEventType
    occurred_at: Optional[datetime] = None


class CampaignStats(BaseContract):
    """Delivery and engagement counts derived from the event log"""
    campaign_id: str

    # Counts
    sent: int = Field(default=0, ge=0)
    delivered: int = Field(default=0, ge=0)
    opened: int = Field(default=0, ge=0)
    clicked: int = Field(default=0, ge=0)
    bounced: int = Field(default=0, ge=0)

    # Rates
    delivery_rate: Optional[float] = None
    open_rate: Optional[float] = None
    click_rate: Optional[float] = None
    bounce_rate: Optional[float] = None


class StatsError(BaseContract):
    """Per-campaign stats failure surfaced inside a list entry"""
    code: str
    detail: str


class CampaignWithStats(BaseContract):
    """One entry of list_with_stats: a campaign plus its stats or its stats error"""
    campaign: EmailCampaign
    stats: Optional[CampaignStats] = None
    error: Optional[StatsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> Dict[str, Any]:
        data = self.campaign.to_response()
        data["stats"] = self.stats.model_dump(mode="json") if self.stats else None
        data["stats_error"] = self.error.model_dump(mode="json") if self.error else None
        return data


# =============================================================================
# REGISTRATIONS (external, read-only)
# =============================================================================

class EventRegistration(BaseContract):
    """Person registered for an event and eligible for campaign targeting"""
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    signed_up_for_class: bool = False
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# SERVICE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    "ensure_utc",
    # Enums
    "CampaignStatus",
    "DeliveryEventType",
    # Campaign
    "CampaignDraft",
    "EmailCampaign",
    "CampaignUpdateRequest",
    "ScheduleRequest",
    # Events & stats
    "DeliveryEvent",
    "CampaignStats",
    "StatsError",
    "CampaignWithStats",
    # Registrations
    "EventRegistration",
    # Service
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
