"""
Pytest configuration and shared fixtures for flowcraft_engine tests.
"""

from typing import Any, Optional

import pytest

from flowcraft_engine.config import Settings, get_settings
from flowcraft_engine.core.engine import ExecutionEngine
from flowcraft_engine.models import RunResult, TriggerType
from flowcraft_engine.services.http_client import HTTPClient
from flowcraft_engine.services.repository import InMemoryFlowStore
from flowcraft_engine.tests.helpers import TEST_BASE_URL, FakeSleeper, RecordingTransport


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("FLOWCRAFT_BASE_URL", TEST_BASE_URL)
    monkeypatch.setenv("FLOWCRAFT_STORAGE_BACKEND", "memory")
    for name in (
        "SERVICE_NAME",
        "DEBUG",
        "NEXT_PUBLIC_FLOWCRAFT_BASE_URL",
        "VERCEL_URL",
        "FLOWCRAFT_DEFAULT_WORKSPACE_ID",
        "FLOWCRAFT_WEBHOOK_GLOBAL_TOKEN",
        "FLOWCRAFT_HTTP_TIMEOUT_SECONDS",
        "EMAIL_PROVIDER",
        "EMAIL_API_KEY",
        "RESEND_API_KEY",
        "EMAIL_FROM",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store() -> InMemoryFlowStore:
    return InMemoryFlowStore()


@pytest.fixture
def sleeper() -> FakeSleeper:
    return FakeSleeper()


@pytest.fixture
def http_transport() -> RecordingTransport:
    """Outbound HTTP stub; tests swap `responder` to change behaviour."""
    return RecordingTransport()


@pytest.fixture
def http_client(http_transport, sleeper):
    client = HTTPClient(transport=http_transport.transport, sleep=sleeper)
    yield client
    client.close()


@pytest.fixture
def engine(store, settings, http_client, sleeper) -> ExecutionEngine:
    return ExecutionEngine(store, settings=settings, http_client=http_client, sleep=sleeper)


@pytest.fixture
def run_flow(store, engine):
    """Create a queued run for a flow and execute it."""

    def _run(
        flow_id: str = "flow-1",
        trigger_type: TriggerType = TriggerType.MANUAL,
        payload: Any = None,
        trigger_payload: Any = None,
        error_mode: Optional[str] = None,
    ) -> RunResult:
        run = store.create_run(
            flow_id,
            trigger_type=trigger_type,
            payload=payload,
            trigger_payload=trigger_payload,
            error_mode=error_mode,
        )
        result = engine.execute_run(run.id)
        _run.last_run_id = run.id
        return result

    _run.last_run_id = None
    return _run


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
