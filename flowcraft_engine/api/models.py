"""
Request/Response models for the Flowcraft engine API
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

# ============================================================================
# Health
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response"""

    status: str
    version: str
    uptime_seconds: float
    service: str


# ============================================================================
# Runs
# ============================================================================


class CreateRunRequest(BaseModel):
    """Request to create (and optionally execute) a manual run"""

    flow_id: str = Field(..., validation_alias=AliasChoices("flow_id", "flowId"))
    payload: Optional[Any] = None
    user_id: Optional[str] = None
    workspace_id: Optional[str] = None
    error_mode: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("errorMode", "error_mode")
    )


class CreateRunResponse(BaseModel):
    """Response from creating a queued run"""

    id: str
    status: str
    run: Dict[str, Any]


class RunLogsResponse(BaseModel):
    """Run metadata plus its ordered node logs"""

    status: str
    run: Dict[str, Any]
    flow: Optional[Dict[str, Any]] = None
    logs: List[Dict[str, Any]]


class RunHistoryResponse(BaseModel):
    """One page of run history, newest first"""

    runs: List[Dict[str, Any]]
    hasMore: bool
