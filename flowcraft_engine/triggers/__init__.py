from .base import BaseTrigger, TriggerOutcome
from .cron_trigger import CronTrigger, resolve_schedule_payload
from .manual_trigger import ManualTrigger
from .webhook_trigger import WebhookRequest, WebhookTrigger, presented_tokens

__all__ = [
    "BaseTrigger",
    "TriggerOutcome",
    "CronTrigger",
    "ManualTrigger",
    "WebhookRequest",
    "WebhookTrigger",
    "presented_tokens",
    "resolve_schedule_payload",
]
