"""
Shared dependencies for API routes: store, engine and trigger adapters.
"""

import logging
from functools import lru_cache

from fastapi import Depends

from flowcraft_engine.config import Settings, get_settings
from flowcraft_engine.core.engine import ExecutionEngine
from flowcraft_engine.services.repository import FlowStore, InMemoryFlowStore, SupabaseFlowStore
from flowcraft_engine.triggers import CronTrigger, ManualTrigger, WebhookTrigger

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> FlowStore:
    if settings.storage_backend == "supabase":
        logger.info("🗄️ Using Supabase flow store")
        return SupabaseFlowStore(settings.supabase_url, settings.supabase_secret_key)
    logger.info("🗄️ Using in-memory flow store")
    return InMemoryFlowStore()


@lru_cache()
def get_engine() -> ExecutionEngine:
    settings = get_settings()
    return ExecutionEngine(build_store(settings), settings=settings)


def get_manual_trigger(
    engine: ExecutionEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> ManualTrigger:
    return ManualTrigger(engine, default_workspace_id=settings.default_workspace_id)


def get_webhook_trigger(
    engine: ExecutionEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> WebhookTrigger:
    return WebhookTrigger(
        engine,
        default_workspace_id=settings.default_workspace_id,
        global_token=settings.webhook_global_token,
    )


def get_cron_trigger(
    engine: ExecutionEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> CronTrigger:
    return CronTrigger(engine, default_workspace_id=settings.default_workspace_id)
