#!/usr/bin/env python3
"""Service settings

Combines all sub-configs for the email campaign microservice.
"""
import os
from dataclasses import dataclass, field

from .campaign_config import EmailCampaignConfig
from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class ServiceSettings:
    """Main service configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    campaigns: EmailCampaignConfig = field(default_factory=EmailCampaignConfig)

    @classmethod
    def from_env(cls) -> 'ServiceSettings':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            campaigns=EmailCampaignConfig.from_env(),
        )
