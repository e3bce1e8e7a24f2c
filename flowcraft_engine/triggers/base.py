import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from flowcraft_engine.core.engine import ExecutionEngine
from flowcraft_engine.core.exceptions import TriggerRejected
from flowcraft_engine.models import Flow, Run, RunResult, TriggerType

logger = logging.getLogger(__name__)


@dataclass
class TriggerOutcome:
    """Run created by a trigger plus the engine's result for it"""

    run_id: str
    result: RunResult


class BaseTrigger(ABC):
    """Base class for all trigger types"""

    def __init__(self, engine: ExecutionEngine, default_workspace_id: Optional[str] = None):
        self.engine = engine
        self.store = engine.store
        self.default_workspace_id = default_workspace_id

    @property
    @abstractmethod
    def trigger_type(self) -> TriggerType:
        """Return the trigger type identifier"""

    def _workspace(self, workspace_id: Optional[str]) -> Optional[str]:
        return workspace_id or self.default_workspace_id

    def _require_flow(self, flow_id: Optional[str], workspace_id: Optional[str]) -> Flow:
        if not flow_id or not str(flow_id).strip():
            raise TriggerRejected(400, "flow_id missing")
        flow = self.store.get_flow(flow_id, workspace_id)
        if flow is None:
            logger.warning(f"{self.trigger_type.value} trigger: flow {flow_id} not found")
            raise TriggerRejected(404, "flow_not_found", flow_id=flow_id)
        return flow

    def _create_run(
        self,
        flow: Flow,
        workspace_id: Optional[str],
        trigger_payload: Any = None,
        payload: Any = None,
        user_id: Optional[str] = None,
        error_mode: Optional[str] = None,
    ) -> Run:
        run = self.store.create_run(
            flow.id,
            workspace_id=flow.workspace_id or workspace_id,
            trigger_type=self.trigger_type,
            trigger_payload=trigger_payload,
            payload=payload,
            user_id=user_id,
            error_mode=error_mode,
        )
        logger.info(
            f"{self.trigger_type.value} trigger created run {run.id} for flow {flow.id}",
            extra={"run_id": run.id},
        )
        return run

    def _execute(self, run: Run) -> TriggerOutcome:
        return TriggerOutcome(run_id=run.id, result=self.engine.execute_run(run.id))
