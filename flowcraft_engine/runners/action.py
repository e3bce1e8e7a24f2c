"""Action node runners: HTTP request and email send."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from flowcraft_engine.core.context import NodeExecutionContext
from flowcraft_engine.services.email import EmailMessage
from flowcraft_engine.services.http_client import resolve_url

from .base import NodeResult, NodeRunner


def _non_negative_int(raw: Any) -> int:
    try:
        return max(0, int(raw or 0))
    except (TypeError, ValueError):
        return 0


def _merge_headers(declared: Dict[str, str], credential: Dict[str, str]) -> Dict[str, str]:
    """Credential headers override node-declared ones, case-insensitively."""
    override = {name.lower() for name in credential}
    merged = {k: v for k, v in declared.items() if k.lower() not in override}
    merged.update(credential)
    return merged


def _has_header(headers: Dict[str, str], name: str) -> bool:
    return any(k.lower() == name.lower() for k in headers)


class HttpRequestRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        cfg = ctx.data
        method = str(cfg.get("method") or "GET").upper()
        raw_url = ctx.get_configuration("url", "endpoint", "urlTemplate")

        if not raw_url or not isinstance(raw_url, str):
            output = {"error": "HTTP node has no URL configured", "method": method}
            return NodeResult(output=output, next_last_output=output)

        declared = cfg.get("headers") or {}
        headers = {str(k): str(v) for k, v in declared.items()} if isinstance(declared, dict) else {}

        credential_meta: Optional[Dict[str, Any]] = None
        credential_id = cfg.get("credentialId")
        if credential_id:
            # CredentialNotFound / CredentialConfigInvalid propagate as technical errors
            resolved = ctx.services.credentials.resolve(str(credential_id), ctx.workspace_id)
            headers = _merge_headers(headers, resolved.headers)
            credential_meta = resolved.meta()

        content: Optional[str] = None
        body = cfg.get("body")
        if body is not None and body != "":
            content = body if isinstance(body, str) else json.dumps(body)
            if not _has_header(headers, "content-type"):
                headers["Content-Type"] = "application/json"

        url = resolve_url(raw_url, ctx.services.base_url)
        result = ctx.services.http.call(
            method,
            url,
            headers=headers,
            content=content,
            retry_count=_non_negative_int(cfg.get("retryCount")),
            retry_delay_ms=_non_negative_int(cfg.get("retryDelayMs")),
        )
        output = result.to_dict()
        if not result.received_response:
            output["url"] = raw_url
        if credential_meta is not None:
            output["credential"] = credential_meta
        return NodeResult(output=output, next_last_output=output)


def parse_recipients(raw: Any) -> List[str]:
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw if item is not None]
    else:
        items = []
    return [item.strip() for item in items if item and item.strip()]


class SendEmailRunner(NodeRunner):
    def run(self, ctx: NodeExecutionContext) -> NodeResult:
        cfg = ctx.data
        to = parse_recipients(cfg.get("to"))
        subject = str(cfg.get("subject") or "")

        if not to:
            output: Dict[str, Any] = {"error": "send_email node has no recipients", "to": []}
            return NodeResult(output=output, next_last_output=output)

        sender = ctx.services.email
        if sender is None:
            output = {
                "error": "Email provider is not configured",
                "configured": False,
                "to": to,
                "subject": subject,
            }
            return NodeResult(output=output, next_last_output=output)

        message = EmailMessage(
            to=to,
            subject=subject,
            body=str(ctx.get_configuration("body", "text", default="")),
            sender_email=cfg.get("from") or None,
        )
        result = sender.send(
            message,
            retry_count=_non_negative_int(cfg.get("retryCount")),
            retry_delay_ms=_non_negative_int(cfg.get("retryDelayMs")),
        )
        output = {**result, "to": to, "subject": subject}
        if result.get("ok") is False and "error" not in result:
            output["error"] = f"Email provider returned status {result.get('status')}"
        return NodeResult(output=output, next_last_output=output)


__all__ = ["HttpRequestRunner", "SendEmailRunner", "parse_recipients"]
