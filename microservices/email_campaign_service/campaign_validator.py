"""
Campaign Draft Validation

Pure checks run before a draft is persisted. Checks short-circuit on the
first failure, in a fixed order:

1. name, subject and html_content are non-empty after trimming
2. the campaign type is one of the recognized categories
3. the requested status is one a campaign may be created in
4. a scheduled draft has a schedule time strictly after ``now``
5. any other draft has no schedule time

Time is always passed in, so the same draft and clock reading give the
same outcome.
"""

from datetime import datetime
from typing import Iterable, Optional

from core.config import DEFAULT_CAMPAIGN_TYPES

from .models import CampaignDraft, CampaignStatus
from .protocols import (
    Clock,
    CampaignValidationError,
    InvalidScheduleError,
    UnexpectedScheduleError,
    utc_now,
)

CREATABLE_STATUSES = (CampaignStatus.DRAFT.value, CampaignStatus.SCHEDULED.value)

REQUIRED_TEXT_FIELDS = (
    ("name", "Campaign name is required"),
    ("subject", "Email subject is required"),
    ("html_content", "Email content is required"),
)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_required_text(field: str, value: Optional[str]) -> None:
    """Validate a single required text field"""
    for name, message in REQUIRED_TEXT_FIELDS:
        if name == field and _is_blank(value):
            raise CampaignValidationError(message, field)


def validate_campaign_draft(
    draft: CampaignDraft,
    now: datetime,
    allowed_types: Iterable[str] = DEFAULT_CAMPAIGN_TYPES,
) -> None:
    """Raise the first validation failure for ``draft``, or return None"""
    for field, _ in REQUIRED_TEXT_FIELDS:
        validate_required_text(field, getattr(draft, field))

    if draft.campaign_type not in set(allowed_types):
        raise CampaignValidationError("Invalid campaign type", "type")

    if draft.status not in CREATABLE_STATUSES:
        raise CampaignValidationError("Invalid campaign status", "status")

    if draft.status == CampaignStatus.SCHEDULED.value:
        if draft.scheduled_at is None:
            raise InvalidScheduleError(
                "Scheduled campaigns require a scheduled time", "scheduled_at"
            )
        if draft.scheduled_at <= now:
            raise InvalidScheduleError(
                "Scheduled time must be in the future", "scheduled_at"
            )
    elif draft.scheduled_at is not None:
        raise UnexpectedScheduleError(
            "Only scheduled campaigns may have a scheduled time", "scheduled_at"
        )


class CampaignValidator:
    """Binds the recognized campaign types and a clock to the draft checks"""

    def __init__(
        self,
        allowed_types: Iterable[str] = DEFAULT_CAMPAIGN_TYPES,
        clock: Clock = utc_now,
    ):
        self.allowed_types = frozenset(allowed_types)
        self.clock = clock

    def validate(self, draft: CampaignDraft) -> None:
        validate_campaign_draft(draft, self.clock(), self.allowed_types)


__all__ = [
    "CREATABLE_STATUSES",
    "validate_required_text",
    "validate_campaign_draft",
    "CampaignValidator",
]
