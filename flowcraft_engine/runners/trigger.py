"""Entry node runners: start, webhook_trigger, schedule_trigger."""

from __future__ import annotations

from typing import Any, Dict

from flowcraft_engine.core.context import NodeExecutionContext

from .base import NodeResult, NodeRunner

START_INFO = "Start node executed"


class StartRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        prior = ctx.last_output
        if prior is None:
            output: Any = {"info": START_INFO}
        elif isinstance(prior, dict):
            output = {**prior, "info": START_INFO}
        else:
            output = {"info": START_INFO, "value": prior}
        return NodeResult(output=output, next_last_output=output)


class WebhookTriggerRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        payload = ctx.trigger_payload if isinstance(ctx.trigger_payload, dict) else {}
        output: Dict[str, Any] = {
            "info": "Webhook trigger",
            "trigger": ctx.trigger_type.value,
            "configuredMethod": str(ctx.get_configuration("method", default="POST")).upper(),
            "authMode": ctx.get_configuration("authMode", default="none"),
            "method": payload.get("method"),
            "query": payload.get("query"),
            "headers": payload.get("headers"),
            "body": payload.get("body"),
        }
        return self.observe(ctx, output)


class ScheduleTriggerRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        output = {
            "info": "Schedule trigger",
            "trigger": ctx.trigger_type.value,
            "cron": ctx.get_configuration("cron"),
            "timezone": ctx.get_configuration("timezone", default="UTC"),
            "now": ctx.services.clock().isoformat(),
        }
        return self.observe(ctx, output)


__all__ = ["StartRunner", "WebhookTriggerRunner", "ScheduleTriggerRunner"]
