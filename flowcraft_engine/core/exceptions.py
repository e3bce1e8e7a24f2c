"""Engine-specific exceptions for flowcraft_engine (core)."""

from __future__ import annotations

from typing import Any, Dict, Optional


class EngineError(Exception):
    pass


class ResolutionError(EngineError):
    """A referenced record does not exist."""


class CredentialNotFound(ResolutionError):
    pass


class CredentialConfigInvalid(EngineError):
    pass


class TriggerRejected(EngineError):
    """Trigger request refused before a run was created."""

    def __init__(self, status_code: int, error: str, **details: Any) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        body.update(self.details)
        return body


def error_message(exc: Optional[BaseException], default: str = "Unexpected error") -> str:
    if exc is None:
        return default
    return str(exc) or exc.__class__.__name__ or default


__all__ = [
    "EngineError",
    "ResolutionError",
    "CredentialNotFound",
    "CredentialConfigInvalid",
    "TriggerRejected",
    "error_message",
]
