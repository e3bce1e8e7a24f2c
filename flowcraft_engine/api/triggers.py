"""
Trigger endpoints: inbound webhooks and schedule ticks.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from flowcraft_engine.api.deps import get_cron_trigger, get_webhook_trigger
from flowcraft_engine.api.responses import relay
from flowcraft_engine.triggers import CronTrigger, WebhookRequest, WebhookTrigger, resolve_schedule_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Triggers"])


async def _read_body(request: Request) -> Any:
    """JSON body when it parses, raw text otherwise, None when empty."""
    if request.method in ("GET", "HEAD"):
        return None
    raw = await request.body()
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


async def _handle_webhook(request: Request, flow_id: Optional[str], trigger: WebhookTrigger) -> Response:
    webhook_request = WebhookRequest(
        method=request.method,
        query=dict(request.query_params),
        headers=dict(request.headers),
        body=await _read_body(request),
    )
    logger.info(f"📥 Webhook {webhook_request.method} for flow {flow_id}")
    outcome = await run_in_threadpool(trigger.process_webhook, flow_id, webhook_request)
    return relay(outcome.result, run_id=outcome.run_id)


@router.post("/trigger/webhook")
async def trigger_webhook(
    request: Request,
    trigger: WebhookTrigger = Depends(get_webhook_trigger),
) -> Response:
    """Webhook addressed by ?flow_id= (or ?flowId=)"""
    flow_id = request.query_params.get("flow_id") or request.query_params.get("flowId")
    return await _handle_webhook(request, flow_id, trigger)


@router.api_route("/hooks/{flow_id}", methods=["GET", "POST"])
async def hook(
    flow_id: str,
    request: Request,
    trigger: WebhookTrigger = Depends(get_webhook_trigger),
) -> Response:
    """Webhook addressed by path"""
    return await _handle_webhook(request, flow_id, trigger)


@router.post("/trigger/schedule")
async def trigger_schedule(
    request: Request,
    trigger: CronTrigger = Depends(get_cron_trigger),
) -> Response:
    """Schedule tick from an external scheduler"""
    flow_id = request.query_params.get("flow_id") or request.query_params.get("flowId")
    body = await _read_body(request)
    payload = resolve_schedule_payload(
        body if isinstance(body, (dict, list)) else None, dict(request.query_params)
    )
    outcome = await run_in_threadpool(trigger.trigger_schedule, flow_id, payload)
    return relay(outcome.result, run_id=outcome.run_id)


__all__ = ["router"]
