import logging
from typing import Any, Dict, Mapping, Optional

from flowcraft_engine.models import NodeType, TriggerType

from .base import BaseTrigger, TriggerOutcome

logger = logging.getLogger(__name__)

FLOW_ID_PARAMS = ("flow_id", "flowId")


def resolve_schedule_payload(body: Any, query: Mapping[str, str]) -> Any:
    """body.payload, else the JSON body, else non flow_id query params, else None."""
    if isinstance(body, dict):
        return body["payload"] if body.get("payload") is not None else body
    if isinstance(body, list):
        return body
    extra = {k: v for k, v in query.items() if k not in FLOW_ID_PARAMS}
    return extra or None


class CronTrigger(BaseTrigger):
    """Schedule ticks delivered by an external scheduler"""

    @property
    def trigger_type(self) -> TriggerType:
        return TriggerType.SCHEDULE

    def trigger_schedule(
        self, flow_id: Optional[str], payload: Any = None, workspace_id: Optional[str] = None
    ) -> TriggerOutcome:
        workspace_id = self._workspace(workspace_id)
        flow = self._require_flow(flow_id, workspace_id)

        cron: Optional[str] = None
        timezone: Optional[str] = None
        diagram = self.store.get_diagram(flow.id, flow.workspace_id or workspace_id)
        schedule_node = diagram.find_node_by_type(NodeType.SCHEDULE_TRIGGER.value) if diagram else None
        if schedule_node is not None:
            cron = schedule_node.data.get("cron") if isinstance(schedule_node.data.get("cron"), str) else None
            timezone = (
                schedule_node.data.get("timezone")
                if isinstance(schedule_node.data.get("timezone"), str)
                else None
            )
        logger.info(f"⏰ Schedule tick for flow {flow.id} (cron={cron}, timezone={timezone})")

        trigger_payload: Dict[str, Any] = {
            "scheduledAt": self.engine.services.clock().isoformat(),
            "cron": cron,
            "timezone": timezone,
            "source": "api_trigger_schedule",
            "payload": payload,
            "trigger": TriggerType.SCHEDULE.value,
            "triggerType": TriggerType.SCHEDULE.value,
        }
        run = self._create_run(flow, workspace_id, trigger_payload=trigger_payload, payload=payload)
        return self._execute(run)
