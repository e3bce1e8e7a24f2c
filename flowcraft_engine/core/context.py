"""
Node execution context for flowcraft_engine.

Bundles what a runner may look at for one node visit: the node's data, the
current lastOutput, run scope, and the shared collaborators (HTTP caller,
credential resolver, email sender, sleep and clock).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from flowcraft_engine.models import Node, Run, TriggerType
from flowcraft_engine.services.credentials import CredentialResolver
from flowcraft_engine.services.email import EmailSender
from flowcraft_engine.services.http_client import HTTPClient


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EngineServices:
    """Collaborators shared by every runner in a run."""

    http: HTTPClient
    credentials: CredentialResolver
    email: Optional[EmailSender] = None
    base_url: str = ""
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], datetime] = field(default=utcnow)


class NodeExecutionContext:
    """Context for node execution containing all necessary data and utilities."""

    def __init__(
        self,
        node: Node,
        last_output: Any,
        run: Run,
        services: EngineServices,
    ):
        self.node = node
        self.last_output = last_output
        self.run = run
        self.services = services

    @property
    def node_id(self) -> str:
        return self.node.id

    @property
    def node_type(self) -> str:
        return self.node.node_type

    @property
    def data(self) -> Dict[str, Any]:
        return self.node.data or {}

    @property
    def run_id(self) -> str:
        return self.run.id

    @property
    def flow_id(self) -> str:
        return self.run.flow_id

    @property
    def workspace_id(self) -> Optional[str]:
        return self.run.workspace_id

    @property
    def trigger_type(self) -> TriggerType:
        return self.run.trigger_type

    @property
    def trigger_payload(self) -> Any:
        return self.run.trigger_payload

    def get_configuration(self, *keys: str, default: Any = None) -> Any:
        """First non-empty value among `keys` in the node's data."""
        for key in keys:
            value = self.data.get(key)
            if value is not None and value != "":
                return value
        return default


__all__ = ["EngineServices", "NodeExecutionContext", "utcnow"]
