import hmac
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flowcraft_engine.core.engine import ExecutionEngine
from flowcraft_engine.core.exceptions import TriggerRejected
from flowcraft_engine.models import Node, NodeType, TriggerType

from .base import BaseTrigger, TriggerOutcome

logger = logging.getLogger(__name__)

TOKEN_QUERY_PARAMS = ("token", "access_token")
TOKEN_HEADERS = ("x-flowcraft-token", "x-flowcraft-webhook-token", "x-flow-token")


@dataclass
class WebhookRequest:
    """Snapshot of an inbound webhook HTTP request"""

    method: str
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        self.method = (self.method or "GET").upper()
        self.headers = {str(k).lower(): v for k, v in (self.headers or {}).items()}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "query": dict(self.query),
            "headers": dict(self.headers),
            "body": self.body,
        }


def presented_tokens(request: WebhookRequest) -> List[str]:
    """Every token the caller presented, in lookup order."""
    tokens: List[str] = []
    for name in TOKEN_QUERY_PARAMS:
        if request.query.get(name):
            tokens.append(str(request.query[name]))
    for name in TOKEN_HEADERS:
        if request.headers.get(name):
            tokens.append(str(request.headers[name]))
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        bearer = auth[7:].strip()
        if bearer:
            tokens.append(bearer)
    return tokens


class WebhookTrigger(BaseTrigger):
    """Inbound HTTP requests addressed to a flow"""

    def __init__(
        self,
        engine: ExecutionEngine,
        default_workspace_id: Optional[str] = None,
        global_token: Optional[str] = None,
    ):
        super().__init__(engine, default_workspace_id)
        self.global_token = global_token or None

    @property
    def trigger_type(self) -> TriggerType:
        return TriggerType.WEBHOOK

    def process_webhook(
        self, flow_id: Optional[str], request: WebhookRequest, workspace_id: Optional[str] = None
    ) -> TriggerOutcome:
        """Validate the request against the flow's webhook_trigger node, then run it.

        Raises TriggerRejected for 400/401/404/405 outcomes.
        """
        workspace_id = self._workspace(workspace_id)
        flow = self._require_flow(flow_id, workspace_id)

        diagram = self.store.get_diagram(flow.id, flow.workspace_id or workspace_id)
        webhook_node = diagram.find_node_by_type(NodeType.WEBHOOK_TRIGGER.value) if diagram else None
        if webhook_node is None:
            raise TriggerRejected(400, "webhook_trigger_missing", flow_id=flow.id)

        self._check_method(webhook_node, request)
        self._check_auth(webhook_node, request)

        run = self._create_run(
            flow,
            workspace_id,
            trigger_payload=request.to_payload(),
            payload=request.body,
        )
        return self._execute(run)

    def _check_method(self, node: Node, request: WebhookRequest) -> None:
        allowed = str(node.data.get("method") or "POST").upper()
        if allowed != "ANY" and request.method != allowed:
            raise TriggerRejected(
                405,
                "method_not_allowed",
                allowedMethod=allowed,
                receivedMethod=request.method,
            )

    def _check_auth(self, node: Node, request: WebhookRequest) -> None:
        if str(node.data.get("authMode") or "none").lower() != "token":
            return
        expected = [t for t in (node.data.get("token"), self.global_token) if t]
        provided = presented_tokens(request)
        for candidate in provided:
            for token in expected:
                if hmac.compare_digest(candidate.encode("utf-8"), str(token).encode("utf-8")):
                    return
        logger.warning(f"Webhook node {node.id} rejected request: invalid token")
        raise TriggerRejected(401, "unauthorized", reason="invalid_token")
