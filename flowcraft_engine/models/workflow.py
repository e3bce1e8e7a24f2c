"""
Flow definition models: Flow, Diagram (nodes + edges) and Credential.

Node `data` stays an open JSON object whose shape depends on the node type;
unknown keys are preserved so diagrams round-trip unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Node(BaseModel):
    """A single typed step of a flow"""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Node id, unique within the diagram")
    type: Optional[str] = Field(default=None, description="Editor-level node type")
    data: Dict[str, Any] = Field(default_factory=dict, description="Type-specific configuration")
    disabled: Optional[bool] = Field(default=None, description="Skip this node when true")

    @property
    def node_type(self) -> str:
        """Effective node type: data.type, then data.nodeType, then type."""
        data = self.data or {}
        return str(data.get("type") or data.get("nodeType") or self.type or "unknown")

    @property
    def is_disabled(self) -> bool:
        if self.disabled is not None:
            return bool(self.disabled)
        return bool((self.data or {}).get("disabled", False))


class Edge(BaseModel):
    """Directed connection between two nodes"""

    model_config = ConfigDict(extra="allow")

    id: str = Field(default="", description="Edge id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")


class Diagram(BaseModel):
    """Immutable snapshot of a flow graph read once per run"""

    flow_id: Optional[str] = None
    workspace_id: Optional[str] = None
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    def find_node_by_type(self, node_type: str) -> Optional[Node]:
        for node in self.nodes:
            if node.node_type == node_type:
                return node
        return None


class Flow(BaseModel):
    """Flow metadata"""

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    workspace_id: Optional[str] = None


class Credential(BaseModel):
    """Stored secret bundle resolved into HTTP headers at execution time"""

    id: str
    workspace_id: Optional[str] = None
    name: Optional[str] = None
    type: str = Field(default="", description="api_key | http_bearer | basic | custom | ...")
    config: Dict[str, Any] = Field(default_factory=dict, description="Secret material")


__all__ = ["Node", "Edge", "Diagram", "Flow", "Credential"]
