"""
Email Campaign Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from .models import (
    CampaignDraft,
    CampaignStatus,
    DeliveryEvent,
    EmailCampaign,
    EventRegistration,
)


# ====================
# Time Source
# ====================

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current UTC time"""
    return datetime.now(timezone.utc)


# ====================
# Repository Protocol
# ====================


class CampaignRepositoryProtocol(Protocol):
    """Protocol for campaign data repository (the only writer of campaign rows)"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    async def create_campaign(self, draft: CampaignDraft) -> EmailCampaign:
        """Persist a validated draft, assigning id and timestamps"""
        ...

    async def list_campaigns(self) -> List[EmailCampaign]:
        """List all campaigns, most recently created first"""
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[EmailCampaign]:
        """Get campaign by ID"""
        ...

    async def update_campaign_status(
        self,
        campaign_id: str,
        expected_status: CampaignStatus,
        status: CampaignStatus,
        scheduled_at: Optional[datetime] = None,
        sent_at: Optional[datetime] = None,
    ) -> Optional[EmailCampaign]:
        """Compare-and-set status update; None when the row no longer has expected_status"""
        ...

    async def update_campaign_content(
        self, campaign_id: str, updates: Dict[str, str]
    ) -> Optional[EmailCampaign]:
        """Update name/subject/html_content of a campaign that has not been sent"""
        ...


# ====================
# Collaborator Protocols
# ====================


class DeliveryEventSourceProtocol(Protocol):
    """Protocol for the read-only delivery event log"""

    async def list_events(self, campaign_id: str) -> List[DeliveryEvent]:
        """Get every delivery event recorded for a campaign"""
        ...


class RegistrationSourceProtocol(Protocol):
    """Protocol for the event registration source"""

    async def get_event_registrations(self) -> List[EventRegistration]:
        """Get all event registrations eligible for targeting"""
        ...


# ====================
# Custom Exceptions
# ====================


class CampaignServiceError(Exception):
    """Base exception for email campaign service errors"""

    code = "CAMPAIGN_ERROR"


class CampaignValidationError(CampaignServiceError):
    """Raised when a campaign draft fails validation"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidScheduleError(CampaignValidationError):
    """Raised when a scheduled campaign has no schedule time or one that is not in the future"""

    code = "INVALID_SCHEDULE"


class UnexpectedScheduleError(CampaignValidationError):
    """Raised when a campaign that is not scheduled carries a schedule time"""

    code = "UNEXPECTED_SCHEDULE"


class CampaignNotFoundError(CampaignServiceError):
    """Raised when campaign is not found"""

    code = "NOT_FOUND"


class InvalidCampaignStateError(CampaignServiceError):
    """Raised when campaign is in invalid state for operation"""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        current_status: Optional[CampaignStatus] = None,
        target_status: Optional[CampaignStatus] = None,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class CampaignPersistenceError(CampaignServiceError):
    """Raised when the campaign store fails; retryable by the caller"""

    code = "PERSISTENCE_ERROR"


class StatsAggregationError(CampaignServiceError):
    """Raised when the delivery event log cannot be read for a campaign"""

    code = "AGGREGATION_ERROR"

    def __init__(self, message: str, campaign_id: Optional[str] = None):
        super().__init__(message)
        self.campaign_id = campaign_id


class StatsTimeoutError(CampaignServiceError):
    """Raised when stats aggregation for a campaign exceeds its time budget"""

    code = "AGGREGATION_TIMEOUT"

    def __init__(self, message: str, campaign_id: Optional[str] = None):
        super().__init__(message)
        self.campaign_id = campaign_id


class RegistrationSourceError(CampaignServiceError):
    """Raised when event registrations cannot be fetched"""

    code = "REGISTRATION_SOURCE_ERROR"


__all__ = [
    "Clock",
    "utc_now",
    "CampaignRepositoryProtocol",
    "DeliveryEventSourceProtocol",
    "RegistrationSourceProtocol",
    "CampaignServiceError",
    "CampaignValidationError",
    "InvalidScheduleError",
    "UnexpectedScheduleError",
    "CampaignNotFoundError",
    "InvalidCampaignStateError",
    "CampaignPersistenceError",
    "StatsAggregationError",
    "StatsTimeoutError",
    "RegistrationSourceError",
]
