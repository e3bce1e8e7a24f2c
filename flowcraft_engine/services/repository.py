"""Storage abstractions consumed by the engine and the trigger adapters.

Interfaces for reading flows/diagrams/credentials and persisting runs and
node logs. Provides an in-memory impl and a Supabase-backed impl.
"""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from flowcraft_engine.models import (
    Credential,
    Diagram,
    Flow,
    NodeLog,
    NodeLogStatus,
    Run,
    RunHistoryPage,
    RunStatus,
    TriggerType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlowStore:
    """Everything the engine reads or writes, behind one seam."""

    # Flows / diagrams
    def get_flow(
        self, flow_id: str, workspace_id: Optional[str] = None
    ) -> Optional[Flow]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_diagram(
        self, flow_id: str, workspace_id: Optional[str] = None
    ) -> Optional[Diagram]:  # pragma: no cover - interface
        raise NotImplementedError

    # Runs
    def create_run(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        trigger_type: TriggerType = TriggerType.MANUAL,
        trigger_payload: Any = None,
        payload: Any = None,
        user_id: Optional[str] = None,
        error_mode: Optional[str] = None,
    ) -> Run:  # pragma: no cover - interface
        raise NotImplementedError

    def get_run(self, run_id: str) -> Optional[Run]:  # pragma: no cover - interface
        raise NotImplementedError

    def update_run_status(
        self, run_id: str, status: RunStatus, **extra: Any
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def list_runs(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> RunHistoryPage:  # pragma: no cover - interface
        raise NotImplementedError

    # Node logs
    def append_log(
        self, run_id: str, node_id: str, status: NodeLogStatus, output: Any
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def list_logs(self, run_id: str) -> List[NodeLog]:  # pragma: no cover - interface
        raise NotImplementedError

    # Credentials
    def get_credential(
        self, credential_id: str, workspace_id: Optional[str] = None
    ) -> Optional[Credential]:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryFlowStore(FlowStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._flows: Dict[str, Flow] = {}
        self._diagrams: Dict[str, Diagram] = {}
        self._runs: Dict[str, Run] = {}
        self._logs: Dict[str, List[NodeLog]] = {}
        self._credentials: Dict[str, Credential] = {}

    # Seeding helpers (tests / local dev)
    def put_flow(self, flow: Flow, diagram: Optional[Diagram] = None) -> None:
        with self._lock:
            self._flows[flow.id] = flow
            if diagram is not None:
                diagram = diagram.model_copy(
                    update={"flow_id": flow.id, "workspace_id": flow.workspace_id}
                )
                self._diagrams[flow.id] = diagram

    def put_credential(self, credential: Credential) -> None:
        with self._lock:
            self._credentials[credential.id] = credential

    @staticmethod
    def _in_scope(record_workspace: Optional[str], workspace_id: Optional[str]) -> bool:
        return workspace_id is None or record_workspace is None or record_workspace == workspace_id

    def get_flow(self, flow_id: str, workspace_id: Optional[str] = None) -> Optional[Flow]:
        with self._lock:
            flow = self._flows.get(flow_id)
        if flow is None or not self._in_scope(flow.workspace_id, workspace_id):
            return None
        return flow

    def get_diagram(self, flow_id: str, workspace_id: Optional[str] = None) -> Optional[Diagram]:
        with self._lock:
            diagram = self._diagrams.get(flow_id)
        if diagram is None or not self._in_scope(diagram.workspace_id, workspace_id):
            return None
        return diagram.model_copy(deep=True)

    def create_run(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        trigger_type: TriggerType = TriggerType.MANUAL,
        trigger_payload: Any = None,
        payload: Any = None,
        user_id: Optional[str] = None,
        error_mode: Optional[str] = None,
    ) -> Run:
        run = Run(
            id=str(uuid.uuid4()),
            flow_id=flow_id,
            workspace_id=workspace_id,
            user_id=user_id,
            status=RunStatus.QUEUED,
            trigger_type=trigger_type,
            trigger_payload=copy.deepcopy(trigger_payload),
            payload=copy.deepcopy(payload),
            error_mode=error_mode,
            created_at=_utcnow(),
        )
        with self._lock:
            self._runs[run.id] = run
            self._logs[run.id] = []
        return run.model_copy(deep=True)

    def get_run(self, run_id: str) -> Optional[Run]:
        with self._lock:
            run = self._runs.get(run_id)
            return run.model_copy(deep=True) if run else None

    def update_run_status(self, run_id: str, status: RunStatus, **extra: Any) -> None:
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                return
            update = {"status": status}
            update.update(copy.deepcopy(extra))
            self._runs[run_id] = run.model_copy(update=update)

    def list_runs(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> RunHistoryPage:
        with self._lock:
            runs = [
                r.model_copy(deep=True)
                for r in self._runs.values()
                if r.flow_id == flow_id and self._in_scope(r.workspace_id, workspace_id)
            ]
        if status and status != "all":
            runs = [r for r in runs if r.status.value == status]
        runs.sort(key=lambda r: r.created_at or _utcnow(), reverse=True)
        window = runs[offset : offset + limit + 1]
        return RunHistoryPage(runs=window[:limit], has_more=len(window) > limit)

    def append_log(self, run_id: str, node_id: str, status: NodeLogStatus, output: Any) -> None:
        entry = NodeLog(
            run_id=run_id,
            node_id=node_id,
            status=status,
            output=copy.deepcopy(output),
            created_at=_utcnow(),
        )
        with self._lock:
            self._logs.setdefault(run_id, []).append(entry)

    def list_logs(self, run_id: str) -> List[NodeLog]:
        with self._lock:
            return [log.model_copy(deep=True) for log in self._logs.get(run_id, [])]

    def get_credential(
        self, credential_id: str, workspace_id: Optional[str] = None
    ) -> Optional[Credential]:
        with self._lock:
            cred = self._credentials.get(credential_id)
        if cred is None or not self._in_scope(cred.workspace_id, workspace_id):
            return None
        return cred.model_copy(deep=True)


class SupabaseFlowStore(FlowStore):
    """Supabase-based store for persistent storage.

    Tables: flows, flow_diagrams, flow_runs, flow_run_nodes, credentials.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
    ) -> None:
        if client is not None:
            self._client = client
            return
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SECRET_KEY are required for supabase storage")
        self._client = create_client(url, key)

    @staticmethod
    def _first(result) -> Optional[Dict[str, Any]]:
        data = getattr(result, "data", None) or []
        return data[0] if data else None

    def get_flow(self, flow_id: str, workspace_id: Optional[str] = None) -> Optional[Flow]:
        query = self._client.table("flows").select("id, name, description, workspace_id").eq("id", flow_id)
        if workspace_id:
            query = query.eq("workspace_id", workspace_id)
        row = self._first(query.limit(1).execute())
        return Flow(**row) if row else None

    def get_diagram(self, flow_id: str, workspace_id: Optional[str] = None) -> Optional[Diagram]:
        query = self._client.table("flow_diagrams").select("*").eq("flow_id", flow_id)
        if workspace_id:
            query = query.eq("workspace_id", workspace_id)
        row = self._first(query.limit(1).execute())
        if not row:
            return None
        return Diagram(
            flow_id=flow_id,
            workspace_id=row.get("workspace_id"),
            nodes=row.get("nodes") or [],
            edges=row.get("edges") or [],
        )

    def create_run(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        trigger_type: TriggerType = TriggerType.MANUAL,
        trigger_payload: Any = None,
        payload: Any = None,
        user_id: Optional[str] = None,
        error_mode: Optional[str] = None,
    ) -> Run:
        record: Dict[str, Any] = {
            "flow_id": flow_id,
            "status": RunStatus.QUEUED.value,
            "trigger_type": TriggerType.parse(trigger_type).value,
            "trigger_payload": trigger_payload,
            "payload": payload,
        }
        if workspace_id:
            record["workspace_id"] = workspace_id
        if user_id:
            record["user_id"] = user_id
        if error_mode:
            record["error_mode"] = error_mode

        row = self._first(self._client.table("flow_runs").insert(record).execute())
        if not row:
            raise RuntimeError(f"Failed to create run for flow {flow_id}")
        return Run(**row)

    def get_run(self, run_id: str) -> Optional[Run]:
        row = self._first(
            self._client.table("flow_runs").select("*").eq("id", run_id).limit(1).execute()
        )
        return Run(**row) if row else None

    def update_run_status(self, run_id: str, status: RunStatus, **extra: Any) -> None:
        update: Dict[str, Any] = {"status": RunStatus(status).value}
        for key, value in extra.items():
            update[key] = value.isoformat() if isinstance(value, datetime) else value
        self._client.table("flow_runs").update(update).eq("id", run_id).execute()

    def list_runs(
        self,
        flow_id: str,
        *,
        workspace_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> RunHistoryPage:
        query = self._client.table("flow_runs").select("*").eq("flow_id", flow_id)
        if workspace_id:
            query = query.eq("workspace_id", workspace_id)
        if status and status != "all":
            query = query.eq("status", status)
        # Fetch one extra row to compute has_more
        result = query.order("created_at", desc=True).range(offset, offset + limit).execute()
        rows = result.data or []
        runs = [Run(**row) for row in rows[:limit]]
        return RunHistoryPage(runs=runs, has_more=len(rows) > limit)

    def append_log(self, run_id: str, node_id: str, status: NodeLogStatus, output: Any) -> None:
        self._client.table("flow_run_nodes").insert(
            {
                "run_id": run_id,
                "node_id": node_id,
                "status": NodeLogStatus(status).value,
                "output": output,
            }
        ).execute()

    def list_logs(self, run_id: str) -> List[NodeLog]:
        result = (
            self._client.table("flow_run_nodes")
            .select("*")
            .eq("run_id", run_id)
            .order("created_at", desc=False)
            .execute()
        )
        return [NodeLog(**row) for row in (result.data or [])]

    def get_credential(
        self, credential_id: str, workspace_id: Optional[str] = None
    ) -> Optional[Credential]:
        query = (
            self._client.table("credentials")
            .select("id, name, type, config, workspace_id")
            .eq("id", credential_id)
        )
        if workspace_id:
            query = query.eq("workspace_id", workspace_id)
        row = self._first(query.limit(1).execute())
        return Credential(**row) if row else None


__all__ = ["FlowStore", "InMemoryFlowStore", "SupabaseFlowStore"]
