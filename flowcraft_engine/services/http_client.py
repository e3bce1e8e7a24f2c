"""HTTP client wrapper for runners.

Provides a small sync API on top of httpx with a fixed-delay retry loop and
a normalized, never-raising result.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(url: str) -> bool:
    return bool(_ABSOLUTE_URL.match(url or ""))


def resolve_url(raw_url: str, base_url: str) -> str:
    """Absolute URLs pass through; relative ones are joined onto base_url."""
    if is_absolute_url(raw_url):
        return raw_url
    base = (base_url or "").rstrip("/")
    return f"{base}{'' if raw_url.startswith('/') else '/'}{raw_url}"


def parse_body(text: str) -> Any:
    """JSON body if it parses, else the raw text."""
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


@dataclass
class RetryTelemetry:
    attempts: int = 0
    retry_count: int = 0
    retry_delay_ms: int = 0
    last_status: Optional[int] = None
    last_ok: Optional[bool] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempts": self.attempts,
            "retryCount": self.retry_count,
            "retryDelayMs": self.retry_delay_ms,
            "lastStatus": self.last_status,
            "lastOk": self.last_ok,
            "lastError": self.last_error,
        }


@dataclass
class HTTPCallResult:
    url: str
    method: str
    retry: RetryTelemetry
    status: Optional[int] = None
    ok: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    error: Optional[str] = None

    @property
    def received_response(self) -> bool:
        return self.status is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.received_response:
            return {
                "status": self.status,
                "ok": self.ok,
                "headers": self.headers,
                "body": self.body,
                "url": self.url,
                "method": self.method,
                "retry": self.retry.to_dict(),
            }
        return {
            "error": self.error or "HTTP request failed",
            "url": self.url,
            "resolvedUrl": self.url,
            "method": self.method,
            "retry": self.retry.to_dict(),
        }


class HTTPClient:
    def __init__(
        self,
        timeout: float = 30.0,
        follow_redirects: bool = True,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=follow_redirects,
            verify=verify_ssl,
            transport=transport,
        )
        self._sleep = sleep

    def call(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[str | bytes] = None,
        retry_count: int = 0,
        retry_delay_ms: int = 0,
    ) -> HTTPCallResult:
        """Issue a request with up to `retry_count` retries.

        Stops on the first 2xx response or after the last attempt. Transport
        exceptions count as failed attempts and are never raised.
        """
        retry_count = max(0, int(retry_count or 0))
        retry_delay_ms = max(0, int(retry_delay_ms or 0))
        method = (method or "GET").upper()
        telemetry = RetryTelemetry(retry_count=retry_count, retry_delay_ms=retry_delay_ms)
        result = HTTPCallResult(url=url, method=method, retry=telemetry)
        total_attempts = 1 + retry_count

        for attempt in range(1, total_attempts + 1):
            telemetry.attempts = attempt
            is_last = attempt == total_attempts
            try:
                resp = self._client.request(method, url, headers=headers or {}, content=content)
                result.status = resp.status_code
                result.ok = resp.is_success
                result.headers = dict(resp.headers)
                result.body = parse_body(resp.text)
                result.error = None
                telemetry.last_status = resp.status_code
                telemetry.last_ok = resp.is_success
                telemetry.last_error = None
                if resp.is_success or is_last:
                    break
                logger.info(
                    "HTTP %s %s returned %s (attempt %d/%d), retrying",
                    method,
                    url,
                    resp.status_code,
                    attempt,
                    total_attempts,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                telemetry.last_error = str(e) or e.__class__.__name__
                telemetry.last_ok = False
                result.error = telemetry.last_error
                logger.warning(
                    "HTTP %s %s failed (attempt %d/%d): %s",
                    method,
                    url,
                    attempt,
                    total_attempts,
                    telemetry.last_error,
                )
                if is_last:
                    break
            if retry_delay_ms > 0:
                self._sleep(retry_delay_ms / 1000.0)

        return result

    def close(self):
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "HTTPClient",
    "HTTPCallResult",
    "RetryTelemetry",
    "resolve_url",
    "is_absolute_url",
    "parse_body",
]
