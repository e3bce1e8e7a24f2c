"""Translate engine results into HTTP responses."""

from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from flowcraft_engine.models import RunResult

RUN_ID_HEADER = "X-Flowcraft-Run-Id"


def relay(result: RunResult, run_id: Optional[str] = None) -> Response:
    """Relay a RunResult verbatim: webhook bodies raw, everything else as JSON."""
    headers = {RUN_ID_HEADER: run_id} if run_id else None
    if result.is_webhook_response and result.content_type != "application/json":
        return PlainTextResponse(
            content=result.body if isinstance(result.body, str) else "",
            status_code=result.http_status,
            headers=headers,
        )
    return JSONResponse(
        content=jsonable_encoder(result.body),
        status_code=result.http_status,
        headers=headers,
    )
