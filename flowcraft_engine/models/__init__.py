from .enums import (
    ControlSignal,
    ErrorMode,
    NodeLogStatus,
    NodeType,
    RunStatus,
    TriggerType,
)
from .execution import ExecutedNode, NodeLog, Run, RunHistoryPage, RunResult
from .workflow import Credential, Diagram, Edge, Flow, Node

__all__ = [
    "ControlSignal",
    "ErrorMode",
    "NodeLogStatus",
    "NodeType",
    "RunStatus",
    "TriggerType",
    "ExecutedNode",
    "NodeLog",
    "Run",
    "RunHistoryPage",
    "RunResult",
    "Credential",
    "Diagram",
    "Edge",
    "Flow",
    "Node",
]
