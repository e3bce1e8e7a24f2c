"""respond_webhook runner: builds the HTTP response a webhook caller receives."""

from __future__ import annotations

import json
from typing import Any

from flowcraft_engine.core.context import NodeExecutionContext
from flowcraft_engine.models import ControlSignal

from .base import NodeResult, NodeRunner

BODY_MODES = ("static", "lastOutput", "customJson")


def _status_code(raw: Any) -> int:
    try:
        code = int(raw)
    except (TypeError, ValueError):
        return 200
    return min(max(code, 100), 599)


def _static_body(raw: Any) -> Any:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class RespondWebhookRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        status = _status_code(ctx.data.get("statusCode", 200))
        mode = ctx.data.get("bodyMode") or "lastOutput"
        output = {"statusCode": status, "bodyMode": mode}

        if mode == "static":
            body = _static_body(ctx.get_configuration("body", "staticBody"))
        elif mode == "customJson":
            raw = ctx.data.get("customJson")
            if isinstance(raw, (dict, list)):
                body = raw
            else:
                try:
                    body = json.loads(raw if isinstance(raw, str) else "")
                except ValueError as e:
                    status = 500
                    body = {"error": "Invalid custom JSON in respond_webhook node", "detail": str(e)}
                    output.update(statusCode=status, error=body["error"])
        else:
            body = ctx.last_output

        output["body"] = body
        return NodeResult(
            output=output,
            next_last_output=body,
            signal=ControlSignal.TERMINAL_RESPOND,
            response_status=status,
        )


__all__ = ["RespondWebhookRunner"]
