"""Credential resolution: stored credential records into outbound HTTP headers."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from flowcraft_engine.core.exceptions import CredentialConfigInvalid, CredentialNotFound
from flowcraft_engine.models import Credential
from flowcraft_engine.services.repository import FlowStore

logger = logging.getLogger(__name__)

_BEARER_TYPES = {"http_bearer", "bearer", "bearer_token"}
_BASIC_TYPES = {"basic", "http_basic"}


@dataclass
class ResolvedCredential:
    id: str
    type: str
    headers: Dict[str, str] = field(default_factory=dict)

    def meta(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type}


def _first_present(config: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = config.get(key)
        if value:
            return str(value)
    return None


def headers_for(credential: Credential) -> Dict[str, str]:
    """Synthesize headers for a credential record.

    Raises CredentialConfigInvalid when the type's required field is absent.
    Unknown types yield no headers.
    """
    cred_type = (credential.type or "").strip().lower()
    config = credential.config or {}

    if cred_type == "api_key":
        key = _first_present(config, "apiKey", "key")
        if not key:
            raise CredentialConfigInvalid(f"Credential {credential.id}: api_key requires config.apiKey")
        header_name = str(config.get("headerName") or "x-api-key")
        prefix = str(config.get("prefix") or "").strip()
        return {header_name: f"{prefix} {key}" if prefix else key}

    if cred_type in _BEARER_TYPES:
        token = _first_present(config, "token", "accessToken", "bearerToken")
        if not token:
            raise CredentialConfigInvalid(f"Credential {credential.id}: bearer requires config.token")
        return {"Authorization": f"Bearer {token}"}

    if cred_type in _BASIC_TYPES:
        username = config.get("username")
        password = config.get("password")
        if not username or password is None or password == "":
            raise CredentialConfigInvalid(
                f"Credential {credential.id}: basic requires config.username and config.password"
            )
        encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    if cred_type == "custom":
        raw = config.get("headers")
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    logger.info("Credential %s has unsupported type %r; no headers injected", credential.id, cred_type)
    return {}


class CredentialResolver:
    def __init__(self, store: FlowStore):
        self._store = store

    def resolve(self, credential_id: str, workspace_id: Optional[str] = None) -> ResolvedCredential:
        credential = self._store.get_credential(credential_id, workspace_id)
        if credential is None:
            raise CredentialNotFound(f"Credential not found: {credential_id}")
        return ResolvedCredential(
            id=credential.id,
            type=credential.type,
            headers=headers_for(credential),
        )


__all__ = ["CredentialResolver", "ResolvedCredential", "headers_for"]
