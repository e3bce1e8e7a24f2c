"""
Flowcraft Engine - Main Application

FastAPI service exposing the flow execution engine:
- Manual runs, run execution, run logs and run history under /api/run
- Webhook triggers under /api/trigger/webhook and /api/hooks/{flow_id}
- Schedule ticks under /api/trigger/schedule
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flowcraft_engine import __version__
from flowcraft_engine.api import router as api_router
from flowcraft_engine.config import get_settings
from flowcraft_engine.core.exceptions import TriggerRejected
from flowcraft_engine.logging_config import setup_logging

settings = get_settings()
setup_logging(settings.service_name, settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Flowcraft Engine",
    description="Flow execution engine with webhook, schedule and manual triggers",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(TriggerRejected)
async def trigger_rejected_handler(request: Request, exc: TriggerRejected):
    """Trigger refused before a run was created (400/401/404/405)"""
    logger.info(f"⛔ Trigger rejected ({exc.status_code}): {exc.error}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"🚨 Unhandled exception: {str(exc)}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": str(exc)})


def main():
    """Main entry point"""
    logger.info(f"🚀 Starting Flowcraft Engine on {settings.host}:{settings.port}")
    uvicorn.run(
        "flowcraft_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()


__all__ = ["app"]
