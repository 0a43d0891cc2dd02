#!/usr/bin/env python3
"""Email campaign service configuration

Service port, stats fan-out limits, recognized campaign types and the
registration source endpoint.
"""
import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_CAMPAIGN_TYPES = ["pre-event", "follow-up", "announcement", "reminder", "newsletter"]

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default

def _list(val: str, default: List[str]) -> List[str]:
    items = [item.strip() for item in (val or "").split(",") if item.strip()]
    return items or list(default)


@dataclass
class EmailCampaignConfig:
    """Campaign lifecycle and stats aggregation settings"""

    service_host: str = "0.0.0.0"
    service_port: int = 8252

    # Stats fan-out in list_with_stats
    stats_max_concurrency: int = 8
    stats_timeout_seconds: float = 5.0

    # Recognized campaign categories
    allowed_campaign_types: List[str] = field(default_factory=lambda: list(DEFAULT_CAMPAIGN_TYPES))

    # Registration source (event registrants)
    registration_service_url: str = "http://localhost:8253"
    registration_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> 'EmailCampaignConfig':
        """Load campaign service config from environment variables"""
        return cls(
            service_host=os.getenv("HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8252"), 8252),
            stats_max_concurrency=max(1, _int(os.getenv("STATS_MAX_CONCURRENCY", "8"), 8)),
            stats_timeout_seconds=_float(os.getenv("STATS_TIMEOUT_SECONDS", "5.0"), 5.0),
            allowed_campaign_types=_list(os.getenv("CAMPAIGN_TYPES", ""), DEFAULT_CAMPAIGN_TYPES),
            registration_service_url=os.getenv("REGISTRATION_SERVICE_URL", "http://localhost:8253"),
            registration_timeout_seconds=_float(os.getenv("REGISTRATION_TIMEOUT_SECONDS", "10.0"), 10.0),
        )
