"""
Enums shared by the execution engine, the trigger adapters and the API.

These are the canonical string values persisted in storage and returned to
clients. Every service MUST use these enums directly.
"""

from enum import Enum


class RunStatus(str, Enum):
    """Run lifecycle: queued -> running -> completed | error"""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class TriggerType(str, Enum):
    """Where a run came from"""

    MANUAL = "manual"
    WEBHOOK = "webhook"
    SCHEDULE = "schedule"

    @classmethod
    def parse(cls, value) -> "TriggerType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.MANUAL


class NodeLogStatus(str, Enum):
    """Per-node execution status written to the node log"""

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class ControlSignal(str, Enum):
    """What the orchestrator should do after a node ran"""

    CONTINUE = "continue"
    STOP_ERROR = "stop_error"
    BRANCH_FALSE = "branch_false"
    TERMINAL_RESPOND = "terminal_respond"


class ErrorMode(str, Enum):
    """How technical node failures affect the run"""

    FAIL_FAST = "fail_fast"
    CONTINUE = "continue"

    @classmethod
    def normalize(cls, value) -> "ErrorMode":
        if isinstance(value, str) and value.strip().lower() == "continue":
            return cls.CONTINUE
        return cls.FAIL_FAST


class NodeType(str, Enum):
    """
    Node type catalog understood by the engine.

    Aliases (e.g. `http` for `http_request`) are listed as separate members so
    that the runner factory can map them without string juggling.
    """

    START = "start"
    WEBHOOK_TRIGGER = "webhook_trigger"
    SCHEDULE_TRIGGER = "schedule_trigger"
    RESPOND_WEBHOOK = "respond_webhook"

    HTTP_REQUEST = "http_request"
    HTTP = "http"
    SEND_EMAIL = "send_email"

    IF = "if"
    LOG = "log"
    EXECUTION_DATA = "execution_data"
    WAIT = "wait"
    DELAY = "delay"
    STOP_ERROR = "stop_error"
    STOP = "stop"

    FORMATTER = "formatter"
    JSON_FORMATTER = "json_formatter"
    TEXT_FORMATTER = "text_formatter"
    JSON_PARSE = "json_parse"
    JSON_STRINGIFY = "json_stringify"
    NUMBER_FORMATTER = "number_formatter"
    SET_FIELDS = "set_fields"
    SET = "set"

    @classmethod
    def lookup(cls, value: str):
        """Return the matching member or None for unsupported types."""
        try:
            return cls(value)
        except ValueError:
            return None


__all__ = [
    "RunStatus",
    "TriggerType",
    "NodeLogStatus",
    "ControlSignal",
    "ErrorMode",
    "NodeType",
]
