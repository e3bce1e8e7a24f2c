"""
Run endpoints: create, execute, manual trigger, logs and history.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse, Response

from flowcraft_engine.api.deps import get_engine, get_manual_trigger
from flowcraft_engine.api.models import (
    CreateRunRequest,
    CreateRunResponse,
    RunHistoryResponse,
    RunLogsResponse,
)
from flowcraft_engine.api.responses import relay
from flowcraft_engine.config import Settings, get_settings
from flowcraft_engine.core.engine import ExecutionEngine
from flowcraft_engine.models import Run
from flowcraft_engine.triggers import ManualTrigger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/run", tags=["Runs"])

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


def _positive_int(raw: Optional[str]) -> Optional[int]:
    try:
        value = int(raw) if raw is not None else None
    except ValueError:
        return None
    return value if value is not None and value > 0 else None


def _with_duration(run: Run) -> Dict[str, Any]:
    """Serialized run; duration_ms derived from timestamps when missing."""
    data = run.model_dump(mode="json")
    duration = run.duration_ms
    if (duration is None or duration < 0) and run.started_at and run.finished_at:
        if run.finished_at >= run.started_at:
            duration = int((run.finished_at - run.started_at).total_seconds() * 1000)
    data["duration_ms"] = duration
    return data


@router.post("", response_model=CreateRunResponse)
def create_run(
    request: CreateRunRequest,
    trigger: ManualTrigger = Depends(get_manual_trigger),
):
    """Create a queued manual run without executing it"""
    run = trigger.create_run(
        request.flow_id,
        payload=request.payload,
        error_mode=request.error_mode,
        user_id=request.user_id,
        workspace_id=request.workspace_id,
    )
    return CreateRunResponse(id=run.id, status=run.status.value, run=run.model_dump(mode="json"))


@router.post("/execute")
def execute_run(
    body: Optional[Dict[str, Any]] = Body(default=None),
    engine: ExecutionEngine = Depends(get_engine),
) -> Response:
    """Execute an existing queued run and relay the result"""
    body = body or {}
    run_id = body.get("run_id") or body.get("runId")
    if not run_id:
        return JSONResponse(status_code=400, content={"error": "run_id is required"})
    logger.info(f"📝 Execute request for run {run_id}", extra={"run_id": run_id})
    return relay(engine.execute_run(str(run_id)), run_id=str(run_id))


@router.post("/manual")
def run_manual(
    request: CreateRunRequest,
    trigger: ManualTrigger = Depends(get_manual_trigger),
) -> Response:
    """Create a manual run and execute it synchronously"""
    outcome = trigger.trigger_manual(
        request.flow_id,
        payload=request.payload,
        error_mode=request.error_mode,
        user_id=request.user_id,
        workspace_id=request.workspace_id,
    )
    return relay(outcome.result, run_id=outcome.run_id)


@router.get("/logs", response_model=RunLogsResponse)
def get_run_logs(
    run_id: Optional[str] = Query(default=None),
    engine: ExecutionEngine = Depends(get_engine),
):
    """Run metadata, flow metadata and node logs in execution order"""
    if not run_id:
        return JSONResponse(status_code=400, content={"error": "run_id missing"})

    run = engine.store.get_run(run_id)
    if run is None:
        return JSONResponse(status_code=404, content={"error": "run_not_found"})

    flow_meta = None
    flow = engine.store.get_flow(run.flow_id)
    if flow is not None:
        flow_meta = {"id": flow.id, "name": flow.name, "description": flow.description}

    logs = [log.model_dump(mode="json") for log in engine.store.list_logs(run_id)]
    return RunLogsResponse(
        status=run.status.value,
        run=_with_duration(run),
        flow=flow_meta,
        logs=logs,
    )


@router.get("/history", response_model=RunHistoryResponse)
def get_run_history(
    flow_id: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    offset: Optional[str] = Query(default=None),
    status: str = Query(default="all"),
    engine: ExecutionEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """Runs of a flow, newest first, with a hasMore flag"""
    if not flow_id:
        return JSONResponse(status_code=400, content={"error": "flow_id missing"})

    page_limit = min(_positive_int(limit) or DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT)
    page_offset = _positive_int(offset) or 0

    page = engine.store.list_runs(
        flow_id,
        workspace_id=settings.default_workspace_id,
        status=status,
        limit=page_limit,
        offset=page_offset,
    )
    return RunHistoryResponse(runs=[_with_duration(run) for run in page.runs], hasMore=page.has_more)


__all__ = ["router"]
