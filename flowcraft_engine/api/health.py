"""
Health Check Endpoint for the Flowcraft engine
"""

import time

from fastapi import APIRouter, Depends

from flowcraft_engine import __version__
from flowcraft_engine.api.models import HealthResponse
from flowcraft_engine.config import Settings, get_settings

# Track app start time for uptime
START_TIME = time.time()

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - START_TIME,
        service=settings.service_name,
    )
