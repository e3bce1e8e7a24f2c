"""Runner factory mapping a node type to a concrete runner."""

from __future__ import annotations

from flowcraft_engine.models import Node, NodeType

from .action import HttpRequestRunner, SendEmailRunner
from .base import NodeRunner, UnsupportedRunner
from .flow import IfRunner, StopRunner, WaitRunner
from .observe import ExecutionDataRunner, LogRunner
from .transform import (
    FormatterRunner,
    JsonParseRunner,
    JsonStringifyRunner,
    NumberFormatterRunner,
    SetFieldsRunner,
)
from .trigger import ScheduleTriggerRunner, StartRunner, WebhookTriggerRunner
from .webhook import RespondWebhookRunner

_RUNNERS = {
    NodeType.START: StartRunner,
    NodeType.WEBHOOK_TRIGGER: WebhookTriggerRunner,
    NodeType.SCHEDULE_TRIGGER: ScheduleTriggerRunner,
    NodeType.RESPOND_WEBHOOK: RespondWebhookRunner,
    NodeType.HTTP_REQUEST: HttpRequestRunner,
    NodeType.HTTP: HttpRequestRunner,
    NodeType.SEND_EMAIL: SendEmailRunner,
    NodeType.IF: IfRunner,
    NodeType.LOG: LogRunner,
    NodeType.EXECUTION_DATA: ExecutionDataRunner,
    NodeType.WAIT: WaitRunner,
    NodeType.DELAY: WaitRunner,
    NodeType.STOP_ERROR: StopRunner,
    NodeType.STOP: StopRunner,
    NodeType.FORMATTER: FormatterRunner,
    NodeType.JSON_FORMATTER: FormatterRunner,
    NodeType.TEXT_FORMATTER: FormatterRunner,
    NodeType.JSON_PARSE: JsonParseRunner,
    NodeType.JSON_STRINGIFY: JsonStringifyRunner,
    NodeType.NUMBER_FORMATTER: NumberFormatterRunner,
    NodeType.SET_FIELDS: SetFieldsRunner,
    NodeType.SET: SetFieldsRunner,
}


def default_runner_for(node: Node) -> NodeRunner:
    ntype = NodeType.lookup(node.node_type)
    runner_cls = _RUNNERS.get(ntype) if ntype is not None else None
    if runner_cls is None:
        return UnsupportedRunner()
    return runner_cls()


__all__ = ["default_runner_for"]
