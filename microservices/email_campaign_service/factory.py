"""
Email Campaign Service Factory

Factory for creating email campaign service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import ServiceSettings, get_settings
from core.postgres_client import PostgresClient

from .campaign_repository import CampaignRepository
from .campaign_service import EmailCampaignService
from .clients.registration_client import RegistrationClient
from .delivery_event_repository import DeliveryEventRepository
from .stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)

SERVICE_NAME = "email_campaign_service"


class EmailCampaignServiceFactory:
    """Factory for creating email campaign service components"""

    def __init__(self, settings: Optional[ServiceSettings] = None):
        self.settings = settings or get_settings()
        self._db: Optional[PostgresClient] = None
        self._repository: Optional[CampaignRepository] = None
        self._event_repository: Optional[DeliveryEventRepository] = None
        self._registration_client: Optional[RegistrationClient] = None
        self._service: Optional[EmailCampaignService] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Email Campaign Service components...")
        campaigns = self.settings.campaigns

        self._db = PostgresClient.from_config(self.settings.infrastructure, SERVICE_NAME)

        self._repository = CampaignRepository(self._db)
        await self._repository.initialize()

        self._event_repository = DeliveryEventRepository(self._db)
        await self._event_repository.initialize()

        self._registration_client = RegistrationClient(
            base_url=campaigns.registration_service_url,
            timeout=campaigns.registration_timeout_seconds,
        )

        self._service = EmailCampaignService(
            repository=self._repository,
            aggregator=StatsAggregator(self._event_repository),
            registration_source=self._registration_client,
            allowed_types=campaigns.allowed_campaign_types,
            stats_max_concurrency=campaigns.stats_max_concurrency,
            stats_timeout=campaigns.stats_timeout_seconds,
        )

        logger.info("Email Campaign Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Email Campaign Service components...")

        if self._repository:
            await self._repository.close()

        if self._db:
            await self._db.close()

        logger.info("Email Campaign Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> EmailCampaignService:
        """Get email campaign service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def registration_client(self) -> RegistrationClient:
        """Get registration client"""
        if not self._registration_client:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._registration_client


__all__ = ["EmailCampaignServiceFactory", "SERVICE_NAME"]
