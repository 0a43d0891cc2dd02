"""
Core Module

Shared infrastructure for the email campaign service.

COMPONENTS:
    - config/: Environment-driven settings (dotenv + dataclasses)
    - postgres_client.py: asyncpg connection-pool wrapper

USAGE:
    from core.config import get_settings
    from core.postgres_client import PostgresClient

    settings = get_settings()
    db = PostgresClient.from_config(settings.infrastructure, "email_campaign_service")
"""

__version__ = "1.0.0"
