"""Flow node runners: IF, WAIT/DELAY, STOP."""

from __future__ import annotations

import math
from typing import Any

from flowcraft_engine.core.context import NodeExecutionContext
from flowcraft_engine.models import ControlSignal

from .base import NodeResult, NodeRunner

DEFAULT_STOP_CODE = "manual_stop"
DEFAULT_STOP_REASON = "Flow stopped by Stop & Error node."


def _as_number(raw: Any):
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


class IfRunner(NodeRunner):
    """Evaluates lastOutput.status (status_eq) or lastOutput.ok (ok_true)."""

    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        mode = ctx.data.get("mode") or "status_eq"
        last = ctx.last_output

        if last is None:
            output = {"error": "IF node: no previous node output", "lastOutput": None, "passed": False}
        elif mode == "status_eq":
            expected_raw = ctx.data.get("expected", 200)
            expected = _as_number(expected_raw)
            status = last.get("status") if isinstance(last, dict) else None
            numeric_status = isinstance(status, (int, float)) and not isinstance(status, bool)
            passed = expected is not None and numeric_status and status == expected
            output = {
                "info": f"IF: last status {status} == {expected_raw}?",
                "status": status,
                "expected": int(expected) if expected is not None and expected.is_integer() else expected,
                "passed": passed,
            }
        elif mode == "ok_true":
            ok = bool(last.get("ok")) if isinstance(last, dict) else False
            output = {"info": "IF: last ok === true?", "ok": ok, "passed": ok}
        else:
            output = {"error": f"Unknown IF mode: {mode}", "mode": mode, "lastOutput": last, "passed": False}

        signal = ControlSignal.CONTINUE if output["passed"] else ControlSignal.BRANCH_FALSE
        return NodeResult(output=output, next_last_output=output, signal=signal)


class WaitRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        ms_raw = ctx.data.get("ms")
        ms_value = _as_number(ms_raw) if isinstance(ms_raw, (int, float)) else None
        if ms_value is not None and ms_value > 0:
            ms = ms_value
        else:
            seconds_raw = ctx.data.get("seconds")
            if seconds_raw is None:
                seconds_raw = ctx.data.get("delay", 1)
            seconds = _as_number(seconds_raw)
            ms = 0.0 if seconds is None else seconds * 1000
        ms = max(0.0, ms)

        if ms > 0:
            ctx.services.sleep(ms / 1000.0)

        waited = int(ms) if float(ms).is_integer() else ms
        return self.observe(
            ctx,
            {"info": "Wait node executed", "waitedMs": waited, "waitedSeconds": ms / 1000.0},
        )


class StopRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        output = {
            "code": ctx.get_configuration("code", "errorCode", default=DEFAULT_STOP_CODE),
            "reason": ctx.get_configuration("reason", "message", default=DEFAULT_STOP_REASON),
            "lastOutput": ctx.last_output,
        }
        return NodeResult(
            output=output,
            next_last_output=ctx.last_output,
            signal=ControlSignal.STOP_ERROR,
        )


__all__ = ["IfRunner", "WaitRunner", "StopRunner"]
