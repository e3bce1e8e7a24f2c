"""
API Router Aggregation for the Flowcraft engine

Combines all API endpoints into a single importable router.
"""

from fastapi import APIRouter

from .health import router as health_router
from .runs import router as runs_router
from .triggers import router as triggers_router

router = APIRouter()

# Health check at root level
router.include_router(health_router)

router.include_router(runs_router)
router.include_router(triggers_router)

__all__ = ["router"]
