"""Base runner types for flowcraft_engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from flowcraft_engine.core.context import NodeExecutionContext
from flowcraft_engine.models import ControlSignal, NodeLogStatus


@dataclass
class NodeResult:
    """What a runner hands back to the orchestrator.

    `output` is what gets logged; `next_last_output` is the context passed to
    the next node. Domain failures live in `output["error"]`.
    """

    output: Any
    next_last_output: Any
    signal: ControlSignal = ControlSignal.CONTINUE
    response_status: Optional[int] = None

    @property
    def has_error(self) -> bool:
        return isinstance(self.output, dict) and self.output.get("error") is not None

    @property
    def log_status(self) -> NodeLogStatus:
        if self.signal == ControlSignal.STOP_ERROR or self.has_error:
            return NodeLogStatus.ERROR
        return NodeLogStatus.SUCCESS


class NodeRunner(ABC):
    @abstractmethod
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        raise NotImplementedError

    @staticmethod
    def observe(ctx: NodeExecutionContext, output: Any) -> NodeResult:
        """Result that reports `output` but leaves the context untouched."""
        return NodeResult(output=output, next_last_output=ctx.last_output)


class UnsupportedRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        return self.observe(
            ctx, {"info": f"Unsupported node type: {ctx.node_type}", "type": ctx.node_type}
        )


__all__ = ["NodeResult", "NodeRunner", "UnsupportedRunner"]
