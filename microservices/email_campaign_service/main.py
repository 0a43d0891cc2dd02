"""
Email Campaign Service Main Application

FastAPI application for email campaigns sent to event registrants.
Port: 8252
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.config import get_settings, setup_logging

from . import __version__
from .campaign_service import EmailCampaignService
from .factory import SERVICE_NAME, EmailCampaignServiceFactory
from .models import (
    CampaignDraft,
    CampaignUpdateRequest,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
    ScheduleRequest,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignPersistenceError,
    CampaignServiceError,
    CampaignValidationError,
    InvalidCampaignStateError,
    RegistrationSourceError,
    StatsAggregationError,
    StatsTimeoutError,
)

logger = logging.getLogger(__name__)

# Service configuration
settings = get_settings()
SERVICE_PORT = settings.campaigns.service_port
SERVICE_VERSION = __version__

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[EmailCampaignServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    setup_logging(settings.logging)
    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = EmailCampaignServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Email Campaign Service",
    description="Email campaign lifecycle and delivery stats for event registrants",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


def _error_body(message: str, exc: CampaignServiceError, **extra) -> dict:
    body = {"error": message, "error_code": exc.code}
    body.update(extra)
    return body


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(str(exc), exc, field=exc.field),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body", "details": "; ".join(problems)},
    )


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(str(exc), exc),
    )


@app.exception_handler(InvalidCampaignStateError)
async def invalid_state_handler(request: Request, exc: InvalidCampaignStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(
            str(exc),
            exc,
            current_status=exc.current_status.value if exc.current_status else None,
            target_status=exc.target_status.value if exc.target_status else None,
        ),
    )


@app.exception_handler(CampaignPersistenceError)
async def persistence_error_handler(request: Request, exc: CampaignPersistenceError):
    logger.error(f"Campaign store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Campaign storage unavailable", exc, details=str(exc)),
    )


@app.exception_handler(StatsAggregationError)
@app.exception_handler(StatsTimeoutError)
async def stats_error_handler(request: Request, exc: CampaignServiceError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Failed to compute campaign stats", exc, details=str(exc)),
    )


@app.exception_handler(RegistrationSourceError)
async def registration_error_handler(request: Request, exc: RegistrationSourceError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Failed to fetch registrations", exc, details=str(exc)),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
    )


# ====================
# Dependencies
# ====================


def get_service() -> EmailCampaignService:
    """Get email campaign service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


# ====================
# Health Endpoints
# ====================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"

        registrations_healthy = await factory.registration_client.health_check()
        dependencies["registration_service"] = "healthy" if registrations_healthy else "unhealthy"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}
    details = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        checks["database"] = db_healthy
        details["database"] = "Connected" if db_healthy else "Connection failed"
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    return ReadinessResponse(
        ready=checks.get("database", False),
        checks=checks,
        details=details,
    )


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Campaign Endpoints
# ====================


@app.get("/api/v1/email/campaigns", tags=["Campaigns"])
async def list_campaigns(service: EmailCampaignService = Depends(get_service)):
    """
    List campaigns with delivery stats

    Campaigns whose stats could not be computed carry a ``stats_error``
    instead of failing the whole list.
    """
    try:
        entries = await service.list_with_stats()
    except Exception as e:
        logger.error(f"Failed to fetch campaigns: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch campaigns", "details": str(e)},
        )

    return {"campaigns": [entry.to_response() for entry in entries]}


@app.post("/api/v1/email/campaigns", status_code=status.HTTP_201_CREATED, tags=["Campaigns"])
async def create_campaign(
    draft: CampaignDraft,
    service: EmailCampaignService = Depends(get_service),
):
    """Create a campaign in draft or scheduled status"""
    try:
        campaign = await service.create_campaign(draft)
    except CampaignPersistenceError as e:
        logger.error(f"Failed to create campaign: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to create campaign", "details": str(e)},
        )

    return {"campaign": campaign.to_response()}


@app.get("/api/v1/email/campaigns/{campaign_id}", tags=["Campaigns"])
async def get_campaign(
    campaign_id: str,
    service: EmailCampaignService = Depends(get_service),
):
    """Get campaign by ID"""
    campaign = await service.get_campaign(campaign_id)
    return {"campaign": campaign.to_response(), "can_send": service.can_send(campaign)}


@app.patch("/api/v1/email/campaigns/{campaign_id}", tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service: EmailCampaignService = Depends(get_service),
):
    """Edit a campaign that has not been sent"""
    campaign = await service.update_campaign(campaign_id, request)
    return {"campaign": campaign.to_response()}


@app.get("/api/v1/email/campaigns/{campaign_id}/stats", tags=["Stats"])
async def get_campaign_stats(
    campaign_id: str,
    service: EmailCampaignService = Depends(get_service),
):
    """Get delivery and engagement stats for a campaign"""
    stats = await service.get_campaign_stats(campaign_id)
    return {"stats": stats.model_dump(mode="json")}


@app.post("/api/v1/email/campaigns/{campaign_id}/schedule", tags=["Lifecycle"])
async def schedule_campaign(
    campaign_id: str,
    request: ScheduleRequest,
    service: EmailCampaignService = Depends(get_service),
):
    """Schedule a draft campaign"""
    campaign = await service.schedule_campaign(campaign_id, request.scheduled_at)
    return {"campaign": campaign.to_response()}


@app.post("/api/v1/email/campaigns/{campaign_id}/mark-sent", tags=["Lifecycle"])
async def mark_campaign_sent(
    campaign_id: str,
    service: EmailCampaignService = Depends(get_service),
):
    """Record that a campaign has been sent"""
    campaign = await service.mark_campaign_sent(campaign_id)
    return {"campaign": campaign.to_response()}


# ====================
# Registration Endpoints
# ====================


@app.get("/api/v1/email/registrations", tags=["Registrations"])
async def list_registrations(service: EmailCampaignService = Depends(get_service)):
    """Event registrations available for campaign targeting"""
    registrations = await service.list_registrations()
    return {"registrations": [r.model_dump(mode="json") for r in registrations]}


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.email_campaign_service.main:app",
        host=settings.campaigns.service_host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower(),
    )


if __name__ == "__main__":
    main()
