"""Email sender capability used by the send_email node."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flowcraft_engine.config import Settings
from flowcraft_engine.services.http_client import HTTPClient

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class EmailMessage:
    """Email message data structure"""

    to: List[str]
    subject: str
    body: str
    sender_email: Optional[str] = None


class EmailSender(ABC):
    """Base class for email providers"""

    provider: str = "unknown"

    @abstractmethod
    def send(
        self, message: EmailMessage, retry_count: int = 0, retry_delay_ms: int = 0
    ) -> Dict[str, Any]:
        """Send one email. Returns {ok, status, response, ...} or {error, ...}; never raises."""


class ResendEmailClient(EmailSender):
    provider = "resend"

    def __init__(
        self,
        api_key: str,
        http: HTTPClient,
        default_from: Optional[str] = None,
        api_url: str = RESEND_API_URL,
    ):
        self._api_key = api_key
        self._http = http
        self._default_from = default_from
        self._api_url = api_url

    def send(
        self, message: EmailMessage, retry_count: int = 0, retry_delay_ms: int = 0
    ) -> Dict[str, Any]:
        sender = message.sender_email or self._default_from
        if not sender:
            return {"error": "No sender address configured", "provider": self.provider}

        payload = {
            "from": sender,
            "to": message.to,
            "subject": message.subject,
            "text": message.body,
        }
        result = self._http.call(
            "POST",
            self._api_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            content=json.dumps(payload),
            retry_count=retry_count,
            retry_delay_ms=retry_delay_ms,
        )
        retry = result.retry.to_dict()
        if not result.received_response:
            logger.warning("Email send via %s failed: %s", self.provider, result.error)
            return {"error": result.error or "Email request failed", "provider": self.provider, "retry": retry}
        return {
            "ok": result.ok,
            "status": result.status,
            "response": result.body,
            "provider": self.provider,
            "retry": retry,
        }


def build_email_sender(settings: Settings, http: HTTPClient) -> Optional[EmailSender]:
    """Return the configured sender, or None when email is not configured."""
    if not settings.email_configured:
        return None
    provider = settings.email_provider.strip().lower()
    if provider == "resend":
        return ResendEmailClient(settings.email_api_key, http, default_from=settings.email_from or None)
    logger.warning("Unsupported email provider configured: %s", settings.email_provider)
    return None


__all__ = ["EmailMessage", "EmailSender", "ResendEmailClient", "build_email_sender"]
