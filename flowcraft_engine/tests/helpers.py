"""
Builders and fakes shared by the flowcraft_engine tests.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from flowcraft_engine.models import Diagram, Edge, Flow, Node
from flowcraft_engine.services.repository import InMemoryFlowStore

TEST_BASE_URL = "http://flowcraft.test"


def node(node_id: str, node_type: str, disabled: Optional[bool] = None, **data: Any) -> Node:
    """Editor-shaped node: the effective type lives in data.type."""
    return Node(id=node_id, type="custom", data={"type": node_type, **data}, disabled=disabled)


def chain(*node_ids: str) -> List[Edge]:
    return [
        Edge(id=f"e-{src}-{dst}", source=src, target=dst)
        for src, dst in zip(node_ids, node_ids[1:])
    ]


def build_flow(
    store: InMemoryFlowStore,
    nodes: List[Node],
    edges: Optional[List[Edge]] = None,
    flow_id: str = "flow-1",
    workspace_id: Optional[str] = None,
) -> Flow:
    """Store a flow whose edges default to a straight chain through `nodes`."""
    if edges is None:
        edges = chain(*[n.id for n in nodes])
    flow = Flow(id=flow_id, name=f"Flow {flow_id}", workspace_id=workspace_id)
    store.put_flow(flow, Diagram(nodes=nodes, edges=edges))
    return flow


class FakeSleeper:
    """Records requested waits instead of sleeping."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingTransport:
    """httpx.MockTransport handler that records every request."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json={"hello": "world"}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def always_status(status: int, body: Any = None) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, json=body if body is not None else {"status": status})


def always_fail(message: str = "connection refused") -> Callable[[httpx.Request], httpx.Response]:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return _raise


def statuses(run_result_body: Dict[str, Any]) -> List[str]:
    return [entry["status"] for entry in run_result_body["executed"]]


def executed_ids(run_result_body: Dict[str, Any]) -> List[str]:
    return [entry["node_id"] for entry in run_result_body["executed"]]
