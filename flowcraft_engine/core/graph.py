"""
Flow graph utilities for the execution engine.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from flowcraft_engine.models import Diagram, Edge, Node, NodeType, TriggerType


class FlowGraph:
    """Directed graph built from a diagram snapshot.

    - Nodes are identified by node.id
    - Only the first outgoing edge of a node is ever followed
    - Edges pointing at unknown node ids are tolerated and treated as "no next node"
    """

    def __init__(self, diagram: Diagram):
        self.diagram = diagram
        self.nodes: List[Node] = list(diagram.nodes)
        self._by_id: Dict[str, Node] = {}
        for node in self.nodes:
            self._by_id.setdefault(node.id, node)
        self._first_edge: Dict[str, Edge] = {}
        for edge in diagram.edges:
            self._first_edge.setdefault(edge.source, edge)

    def get(self, node_id: str) -> Optional[Node]:
        return self._by_id.get(node_id)

    def first_of_type(self, node_type: str) -> Optional[Node]:
        for node in self.nodes:
            if node.node_type == node_type:
                return node
        return None

    def entry_node(self, trigger_type: TriggerType | str | None) -> Optional[Node]:
        """Pick where execution starts for a given trigger.

        webhook  -> first webhook_trigger, else start, else first node
        schedule -> first schedule_trigger, else start, else first node
        other    -> first start, else first node
        """
        if not self.nodes:
            return None
        ttype = TriggerType.parse(trigger_type)
        preferred: List[str] = []
        if ttype == TriggerType.WEBHOOK:
            preferred.append(NodeType.WEBHOOK_TRIGGER.value)
        elif ttype == TriggerType.SCHEDULE:
            preferred.append(NodeType.SCHEDULE_TRIGGER.value)
        preferred.append(NodeType.START.value)
        for node_type in preferred:
            node = self.first_of_type(node_type)
            if node is not None:
                return node
        return self.nodes[0]

    def next_of(self, node_id: str) -> Optional[Node]:
        edge = self._first_edge.get(node_id)
        if edge is None:
            return None
        return self._by_id.get(edge.target)


__all__ = ["FlowGraph"]
