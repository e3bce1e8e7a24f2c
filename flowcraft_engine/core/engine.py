"""
Run orchestrator for flowcraft_engine.

`ExecutionEngine.execute_run(run_id)` walks a flow's diagram one node at a
time, threading a single lastOutput context through the runners, writing a
node log per visit and resolving the run to exactly one terminal status.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from flowcraft_engine.config import Settings, get_settings
from flowcraft_engine.core.context import EngineServices, NodeExecutionContext, utcnow
from flowcraft_engine.core.exceptions import error_message
from flowcraft_engine.core.graph import FlowGraph
from flowcraft_engine.models import (
    ControlSignal,
    ErrorMode,
    ExecutedNode,
    Node,
    NodeLogStatus,
    Run,
    RunResult,
    RunStatus,
    TriggerType,
)
from flowcraft_engine.runners import NodeResult, NodeRunner, default_runner_for
from flowcraft_engine.services.credentials import CredentialResolver
from flowcraft_engine.services.email import EmailSender, build_email_sender
from flowcraft_engine.services.http_client import HTTPClient
from flowcraft_engine.services.repository import FlowStore

logger = logging.getLogger(__name__)

DISABLED_OUTPUT = {"info": "Node disabled, skipped"}


def resolve_error_mode(run: Run) -> ErrorMode:
    """run.error_mode, else trigger_payload.errorMode, else payload.errorMode."""
    if run.error_mode:
        return ErrorMode.normalize(run.error_mode)
    for source in (run.trigger_payload, run.payload):
        if isinstance(source, dict) and source.get("errorMode"):
            return ErrorMode.normalize(source.get("errorMode"))
    return ErrorMode.FAIL_FAST


def seed_context(run: Run) -> Any:
    """Initial lastOutput derived from the trigger."""
    payload = run.payload
    trigger_payload = run.trigger_payload
    if run.trigger_type == TriggerType.WEBHOOK:
        tp = trigger_payload if isinstance(trigger_payload, dict) else {}
        return {
            "trigger": TriggerType.WEBHOOK.value,
            "triggerPayload": trigger_payload,
            "payload": payload,
            "body": tp.get("body"),
            "query": tp.get("query"),
            "headers": tp.get("headers"),
        }
    if run.trigger_type == TriggerType.SCHEDULE:
        return {
            "trigger": TriggerType.SCHEDULE.value,
            "triggerPayload": trigger_payload,
            "payload": payload,
        }
    if payload is not None:
        return {"trigger": run.trigger_type.value, "payload": payload, "body": payload}
    return None


@dataclass
class RunState:
    """Mutable bookkeeping for one run; never shared between runs."""

    run: Run
    error_mode: ErrorMode
    last_output: Any = None
    executed: List[ExecutedNode] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)
    had_error: bool = False

    def envelope(self, status: RunStatus, **extra: Any) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "status": status.value,
            "run_id": self.run.id,
            "executed": [entry.model_dump(mode="json") for entry in self.executed],
            "lastOutput": self.last_output,
            "errorMode": self.error_mode.value,
        }
        body.update(extra)
        return body


class ExecutionEngine:
    def __init__(
        self,
        store: FlowStore,
        settings: Optional[Settings] = None,
        http_client: Optional[HTTPClient] = None,
        email_sender: Optional[EmailSender] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utcnow,
        runner_factory: Callable[[Node], NodeRunner] = default_runner_for,
    ):
        self.store = store
        self.settings = settings or get_settings()
        http = http_client or HTTPClient(timeout=self.settings.http_timeout_seconds, sleep=sleep)
        self.services = EngineServices(
            http=http,
            credentials=CredentialResolver(store),
            email=email_sender if email_sender is not None else build_email_sender(self.settings, http),
            base_url=self.settings.base_url,
            sleep=sleep,
            clock=clock,
        )
        self._runner_factory = runner_factory

    # ------------------------------------------------------------------ #
    # Public entry point
    # ------------------------------------------------------------------ #
    def execute_run(self, run_id: str) -> RunResult:
        try:
            return self._execute(run_id)
        except Exception as e:
            logger.exception("❌ Executor fatal error", extra={"run_id": run_id})
            try:
                self._finish(run_id, RunStatus.ERROR, error_message=error_message(e))
            except Exception:
                logger.exception("Failed to mark run as error", extra={"run_id": run_id})
            return RunResult.failure(500, "internal_error", detail=error_message(e), run_id=run_id)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _execute(self, run_id: str) -> RunResult:
        run = self.store.get_run(run_id)
        if run is None:
            return RunResult.failure(404, "run_not_found", run_id=run_id)
        if run.status != RunStatus.QUEUED:
            return RunResult.failure(
                409, "run_not_queued", run_id=run_id, status=run.status.value
            )

        diagram = self.store.get_diagram(run.flow_id, run.workspace_id)
        if diagram is None:
            self._finish(run_id, RunStatus.ERROR, error_message="Flow diagram not found")
            return RunResult.failure(404, "diagram_not_found", run_id=run_id, flow_id=run.flow_id)
        if not diagram.nodes:
            self._finish(run_id, RunStatus.ERROR, error_message="Flow diagram has no nodes")
            return RunResult.failure(400, "diagram_empty", run_id=run_id, flow_id=run.flow_id)

        graph = FlowGraph(diagram)
        started_at = self.services.clock()
        self.store.update_run_status(run_id, RunStatus.RUNNING, started_at=started_at)
        run = run.model_copy(update={"status": RunStatus.RUNNING, "started_at": started_at})

        state = RunState(run=run, error_mode=resolve_error_mode(run), last_output=seed_context(run))
        current = graph.entry_node(run.trigger_type)
        logger.info(
            f"🚀 Run started for flow {run.flow_id} (trigger={run.trigger_type.value}, "
            f"entry={current.id if current else None}, errorMode={state.error_mode.value})",
            extra={"run_id": run_id},
        )

        while current is not None and current.id not in state.visited:
            state.visited.add(current.id)
            node_type = current.node_type

            if current.is_disabled:
                self._record(state, current, NodeLogStatus.SKIPPED, dict(DISABLED_OUTPUT))
                logger.info(f"⏭️ Skipping disabled node {current.id}", extra={"run_id": run_id})
                current = graph.next_of(current.id)
                continue

            logger.info(f"▶️ Executing node {current.id} ({node_type})", extra={"run_id": run_id})
            result: Optional[NodeResult] = None
            node_error: Optional[str] = None
            try:
                runner = self._runner_factory(current)
                result = runner.run(NodeExecutionContext(current, state.last_output, run, self.services))
            except Exception as e:
                node_error = error_message(e, "Node execution failed")
                logger.exception(f"Node {current.id} ({node_type}) raised", extra={"run_id": run_id})

            if result is None:
                output: Any = {"error": node_error}
                self._record(state, current, NodeLogStatus.ERROR, output, error=node_error)
            else:
                output = result.output
                self._record(state, current, result.log_status, output)

            # Control-signal handling, in priority order
            if result is not None and result.signal == ControlSignal.TERMINAL_RESPOND:
                state.last_output = result.next_last_output
                return self._respond(state, result)

            if result is not None and result.signal == ControlSignal.STOP_ERROR:
                reason = output.get("reason") if isinstance(output, dict) else None
                code = output.get("code") if isinstance(output, dict) else None
                state.last_output = result.next_last_output
                return self._terminate(
                    state, RunStatus.ERROR, message=reason, reason=reason, code=code
                )

            if node_error is not None:
                if state.error_mode == ErrorMode.FAIL_FAST:
                    return self._terminate(
                        state,
                        RunStatus.ERROR,
                        message=node_error,
                        node=current.id,
                        reason="node_error",
                        error=node_error,
                    )
                state.had_error = True
                current = graph.next_of(current.id)
                continue

            if result.signal == ControlSignal.BRANCH_FALSE:
                state.last_output = result.next_last_output
                return self._terminate(state, RunStatus.COMPLETED, reason="if_condition_false")

            state.last_output = result.next_last_output
            current = graph.next_of(current.id)

        if current is not None:
            logger.info(f"🔁 Cycle detected at node {current.id}, stopping", extra={"run_id": run_id})

        if state.had_error:
            return self._terminate(
                state, RunStatus.ERROR, message="One or more nodes failed"
            )
        return self._terminate(state, RunStatus.COMPLETED)

    def _record(
        self,
        state: RunState,
        node: Node,
        status: NodeLogStatus,
        output: Any,
        error: Optional[str] = None,
    ) -> None:
        self.store.append_log(state.run.id, node.id, status, output)
        state.executed.append(
            ExecutedNode(node_id=node.id, type=node.node_type, status=status, output=output, error=error)
        )

    def _finish(
        self,
        run_id: str,
        status: RunStatus,
        started_at: Optional[datetime] = None,
        **extra: Any,
    ) -> None:
        finished_at = self.services.clock()
        fields: Dict[str, Any] = {"finished_at": finished_at}
        if started_at is not None:
            fields["duration_ms"] = max(0, int((finished_at - started_at).total_seconds() * 1000))
        fields.update({k: v for k, v in extra.items() if v is not None})
        self.store.update_run_status(run_id, status, **fields)

    def _terminate(
        self,
        state: RunState,
        status: RunStatus,
        message: Optional[str] = None,
        **extra: Any,
    ) -> RunResult:
        self._finish(
            state.run.id,
            status,
            started_at=state.run.started_at,
            final_output=state.last_output,
            error_message=message,
        )
        logger.info(
            f"🏁 Run finished with status {status.value}"
            + (f" ({extra['reason']})" if extra.get("reason") else ""),
            extra={"run_id": state.run.id},
        )
        body = state.envelope(status, **{k: v for k, v in extra.items() if v is not None})
        return RunResult(http_status=200, body=body)

    def _respond(self, state: RunState, result: NodeResult) -> RunResult:
        status_code = result.response_status or 200
        body = result.next_last_output
        if state.run.trigger_type != TriggerType.WEBHOOK:
            return self._terminate(
                state,
                RunStatus.COMPLETED,
                reason="respond_webhook",
                response={"statusCode": status_code, "body": body},
            )

        self._finish(
            state.run.id,
            RunStatus.COMPLETED,
            started_at=state.run.started_at,
            final_output=body,
        )
        logger.info(
            f"🏁 Run finished with webhook response {status_code}", extra={"run_id": state.run.id}
        )
        if isinstance(body, (dict, list)):
            return RunResult(http_status=status_code, body=body, is_webhook_response=True)
        text = "" if body is None else (body if isinstance(body, str) else json.dumps(body))
        return RunResult(
            http_status=status_code,
            body=text,
            is_webhook_response=True,
            content_type="text/plain",
        )

    def close(self) -> None:
        self.services.http.close()


__all__ = ["ExecutionEngine", "RunState", "resolve_error_mode", "seed_context"]
