"""
Execution models: Run, NodeLog, ExecutedNode and RunResult.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .enums import NodeLogStatus, RunStatus, TriggerType


class Run(BaseModel):
    """One execution instance of a flow"""

    id: str = Field(..., description="Run id")
    flow_id: str = Field(..., description="Flow being executed")
    workspace_id: Optional[str] = Field(default=None, description="Workspace scope")
    user_id: Optional[str] = Field(default=None, description="User who started the run")
    status: RunStatus = Field(default=RunStatus.QUEUED)
    trigger_type: TriggerType = Field(default=TriggerType.MANUAL)
    trigger_payload: Optional[Any] = Field(default=None, description="Inbound request or cron data")
    payload: Optional[Any] = Field(default=None, description="Raw initial payload")
    error_mode: Optional[str] = Field(default=None, description="fail_fast | continue")
    final_output: Optional[Any] = Field(default=None, description="Context at termination")
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_ms: Optional[int] = None


class NodeLog(BaseModel):
    """Append-only record of one node visit"""

    run_id: str
    node_id: str
    status: NodeLogStatus
    output: Optional[Any] = None
    created_at: Optional[datetime] = None


class ExecutedNode(BaseModel):
    """Entry of the `executed` list in the run envelope"""

    node_id: str
    type: str
    status: NodeLogStatus
    output: Optional[Any] = None
    error: Optional[str] = None


class RunResult(BaseModel):
    """What `ExecutionEngine.execute_run` hands back to trigger adapters"""

    http_status: int = Field(default=200, description="HTTP status to relay")
    body: Any = Field(default=None, description="Run envelope or raw webhook response body")
    is_webhook_response: bool = Field(default=False)
    content_type: str = Field(default="application/json")

    @property
    def status(self) -> Optional[str]:
        if isinstance(self.body, dict) and not self.is_webhook_response:
            return self.body.get("status")
        return None

    @classmethod
    def failure(cls, http_status: int, error: str, **extra: Any) -> "RunResult":
        body: Dict[str, Any] = {"error": error}
        body.update(extra)
        return cls(http_status=http_status, body=body)


class RunHistoryPage(BaseModel):
    runs: List[Run] = Field(default_factory=list)
    has_more: bool = False


__all__ = ["Run", "NodeLog", "ExecutedNode", "RunResult", "RunHistoryPage"]
