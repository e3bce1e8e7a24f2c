from typing import Any, Optional

from flowcraft_engine.models import Run, TriggerType

from .base import BaseTrigger, TriggerOutcome


class ManualTrigger(BaseTrigger):
    """Runs started by a user from the editor"""

    @property
    def trigger_type(self) -> TriggerType:
        return TriggerType.MANUAL

    def create_run(
        self,
        flow_id: str,
        payload: Any = None,
        error_mode: Optional[str] = None,
        user_id: Optional[str] = None,
        workspace_id: Optional[str] = None,
    ) -> Run:
        """Create a queued run without executing it."""
        workspace_id = self._workspace(workspace_id)
        flow = self._require_flow(flow_id, workspace_id)
        return self._create_run(
            flow,
            workspace_id,
            payload=payload,
            user_id=user_id,
            error_mode=error_mode,
        )

    def trigger_manual(
        self,
        flow_id: str,
        payload: Any = None,
        error_mode: Optional[str] = None,
        user_id: Optional[str] = None,
        workspace_id: Optional[str] = None,
    ) -> TriggerOutcome:
        run = self.create_run(flow_id, payload, error_mode, user_id, workspace_id)
        return self._execute(run)
