"""Observational runners: LOG and EXECUTION_DATA leave the context as-is."""

from __future__ import annotations

import logging

from flowcraft_engine.core.context import NodeExecutionContext

from .base import NodeResult, NodeRunner

logger = logging.getLogger(__name__)


class LogRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        message = ctx.get_configuration("message", "label", default="Log node executed")
        logger.info("Flow log [%s]: %s", ctx.node_id, message, extra={"run_id": ctx.run_id})
        return self.observe(ctx, {"message": message, "lastOutput": ctx.last_output})


class ExecutionDataRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        return self.observe(
            ctx,
            {
                "info": "Execution data snapshot",
                "runId": ctx.run_id,
                "flowId": ctx.flow_id,
                "lastOutput": ctx.last_output,
            },
        )


__all__ = ["LogRunner", "ExecutionDataRunner"]
