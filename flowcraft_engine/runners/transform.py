"""Data transformation runners.

All of them read a field of lastOutput via a dotted path and write the result
back to a target path, leaving sibling fields untouched. Domain failures
(bad mode, unparsable input) produce an error output and keep the context.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from flowcraft_engine.core.context import NodeExecutionContext
from flowcraft_engine.core.paths import get_path, set_path

from .base import NodeResult, NodeRunner

_INT_LITERAL = re.compile(r"^[+-]?\d+$")


def _paths(ctx: NodeExecutionContext, default_field: str = "body"):
    field_path = ctx.get_configuration("fieldPath", "path", default=default_field)
    target_path = ctx.get_configuration("targetPath", "outputPath", default=field_path)
    return str(field_path), str(target_path)


def _error(ctx: NodeExecutionContext, message: str, **extra: Any) -> NodeResult:
    output: Dict[str, Any] = {"error": message}
    output.update(extra)
    return NodeResult(output=output, next_last_output=ctx.last_output)


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return str(value)


def _opt_int(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class FormatterRunner(NodeRunner):
    """formatter / json_formatter / text_formatter"""

    MODES = ("pick_field", "to_upper", "to_lower", "trim", "replace", "slice")

    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        mode = ctx.data.get("mode") or "pick_field"
        field_path, target_path = _paths(ctx)

        if ctx.last_output is None:
            return _error(ctx, "Formatter node: no previous node output", lastOutput=None)
        if mode not in self.MODES:
            return _error(ctx, f"Unknown formatter mode: {mode}", mode=mode)

        raw = get_path(ctx.last_output, field_path)
        if mode == "pick_field":
            value: Any = raw
        else:
            text = stringify(raw)
            if mode == "to_upper":
                value = text.upper()
            elif mode == "to_lower":
                value = text.lower()
            elif mode == "trim":
                value = text.strip()
            elif mode == "replace":
                search = str(ctx.data.get("from") or "")
                to = ctx.data.get("to")
                replacement = "" if to is None else str(to)
                value = text.replace(search, replacement) if search else text
            else:
                value = text[_opt_int(ctx.data.get("start")) : _opt_int(ctx.data.get("end"))]

        updated = set_path(ctx.last_output, target_path, value)
        output = {"mode": mode, "fieldPath": field_path, "targetPath": target_path, "value": value}
        return NodeResult(output=output, next_last_output=updated)


class JsonParseRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        field_path, target_path = _paths(ctx)
        raw = get_path(ctx.last_output, field_path)
        if not isinstance(raw, str):
            return _error(
                ctx,
                f"json_parse: value at '{field_path}' is not a string",
                fieldPath=field_path,
            )
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            return _error(ctx, f"json_parse: invalid JSON ({e})", fieldPath=field_path, raw=raw)

        updated = set_path(ctx.last_output, target_path, parsed)
        output = {"fieldPath": field_path, "targetPath": target_path, "value": parsed}
        return NodeResult(output=output, next_last_output=updated)


class JsonStringifyRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        field_path, target_path = _paths(ctx)
        value = get_path(ctx.last_output, field_path)
        indent = 2 if ctx.data.get("pretty") else None
        text = json.dumps(value, ensure_ascii=False, indent=indent, default=str)

        updated = set_path(ctx.last_output, target_path, text)
        output = {"fieldPath": field_path, "targetPath": target_path, "value": text}
        return NodeResult(output=output, next_last_output=updated)


def _to_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _round_half_up(value: float, decimals: int) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


class NumberFormatterRunner(NodeRunner):
    MODES = ("round", "ceil", "floor", "percent")

    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        mode = ctx.data.get("mode") or "round"
        field_path, target_path = _paths(ctx)
        decimals = max(0, _opt_int(ctx.data.get("decimals")) or 0)

        if mode not in self.MODES:
            return _error(ctx, f"Unknown number_formatter mode: {mode}", mode=mode)

        raw = get_path(ctx.last_output, field_path)
        number = _to_number(raw)
        if number is None:
            return _error(
                ctx,
                f"number_formatter: value at '{field_path}' is not numeric",
                fieldPath=field_path,
                input=raw,
            )

        factor = 10 ** decimals
        if mode == "round":
            result = _round_half_up(number, decimals)
        elif mode == "ceil":
            result = math.ceil(number * factor) / factor
        elif mode == "floor":
            result = math.floor(number * factor) / factor
        else:
            result = _round_half_up(number * 100, decimals)

        value: Any = int(result) if decimals == 0 else result
        updated = set_path(ctx.last_output, target_path, value)
        output = {
            "mode": mode,
            "fieldPath": field_path,
            "targetPath": target_path,
            "decimals": decimals,
            "input": raw,
            "value": value,
        }
        return NodeResult(output=output, next_last_output=updated)


def coerce_value(value: Any) -> Any:
    """Strings that look like booleans, numbers or JSON containers become them."""
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False
    if trimmed:
        if _INT_LITERAL.match(trimmed):
            return int(trimmed)
        number = _to_number(trimmed)
        if number is not None:
            return number
    if (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    ):
        try:
            return json.loads(trimmed)
        except ValueError:
            return trimmed
    return value


class SetFieldsRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        assignments = ctx.data.get("assignments")
        if not isinstance(assignments, list) or not assignments:
            return self.observe(ctx, {"info": "Set node: no assignments, context unchanged"})

        updated: Any = ctx.last_output if ctx.last_output is not None else {}
        applied: List[Dict[str, Any]] = []
        for item in assignments:
            if not isinstance(item, dict) or not item.get("path"):
                continue
            value = coerce_value(item.get("value"))
            updated = set_path(updated, str(item["path"]), value)
            applied.append({"path": item["path"], "value": value})

        return NodeResult(
            output={"info": "Set fields node executed", "applied": applied},
            next_last_output=updated,
        )


__all__ = [
    "FormatterRunner",
    "JsonParseRunner",
    "JsonStringifyRunner",
    "NumberFormatterRunner",
    "SetFieldsRunner",
    "coerce_value",
    "stringify",
]
