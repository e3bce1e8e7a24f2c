"""
Unit tests for individual node runners.
"""

import json
from datetime import datetime, timezone

import pytest

from flowcraft_engine.core.context import EngineServices, NodeExecutionContext
from flowcraft_engine.core.exceptions import CredentialNotFound
from flowcraft_engine.models import ControlSignal, Credential, NodeLogStatus, Run, TriggerType
from flowcraft_engine.runners import UnsupportedRunner, default_runner_for
from flowcraft_engine.runners.action import SendEmailRunner, parse_recipients
from flowcraft_engine.runners.transform import coerce_value
from flowcraft_engine.services.credentials import CredentialResolver
from flowcraft_engine.services.email import RESEND_API_URL, ResendEmailClient
from flowcraft_engine.tests.helpers import TEST_BASE_URL, always_fail, always_status, node

FIXED_NOW = datetime(2026, 1, 5, 14, 3, 25, tzinfo=timezone.utc)


@pytest.fixture
def services(store, http_client, sleeper):
    return EngineServices(
        http=http_client,
        credentials=CredentialResolver(store),
        base_url=TEST_BASE_URL,
        sleep=sleeper,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def run_node(services):
    """Run a single node through the runner the factory picks for it."""

    def _run(node_type, last_output=None, trigger_type=TriggerType.MANUAL, trigger_payload=None, **data):
        run = Run(
            id="run-1",
            flow_id="flow-1",
            workspace_id="ws-1",
            trigger_type=trigger_type,
            trigger_payload=trigger_payload,
        )
        target = node("n1", node_type, **data)
        ctx = NodeExecutionContext(target, last_output, run, services)
        return default_runner_for(target).run(ctx)

    return _run


@pytest.mark.unit
class TestFactory:
    @pytest.mark.parametrize(
        "alias,canonical",
        [
            ("http", "http_request"),
            ("delay", "wait"),
            ("stop", "stop_error"),
            ("set", "set_fields"),
            ("json_formatter", "formatter"),
            ("text_formatter", "formatter"),
        ],
    )
    def test_aliases_share_runner(self, alias, canonical):
        assert type(default_runner_for(node("a", alias))) is type(default_runner_for(node("b", canonical)))

    def test_unknown_type(self, run_node):
        assert isinstance(default_runner_for(node("x", "teleport")), UnsupportedRunner)
        result = run_node("teleport", last_output={"keep": 1})
        assert result.output == {"info": "Unsupported node type: teleport", "type": "teleport"}
        assert result.next_last_output == {"keep": 1}
        assert result.log_status == NodeLogStatus.SUCCESS


@pytest.mark.unit
class TestEntryRunners:
    def test_start_without_context(self, run_node):
        result = run_node("start")
        assert result.output == {"info": "Start node executed"}
        assert result.next_last_output == result.output

    def test_start_merges_object_context(self, run_node):
        result = run_node("start", last_output={"body": {"a": 1}})
        assert result.output == {"body": {"a": 1}, "info": "Start node executed"}

    def test_start_wraps_scalar_context(self, run_node):
        result = run_node("start", last_output=42)
        assert result.output == {"info": "Start node executed", "value": 42}

    def test_webhook_trigger_echoes_request(self, run_node):
        seed = {"trigger": "webhook"}
        result = run_node(
            "webhook_trigger",
            last_output=seed,
            trigger_type=TriggerType.WEBHOOK,
            trigger_payload={"method": "POST", "query": {"q": "1"}, "headers": {}, "body": {"x": 1}},
            method="post",
            authMode="token",
        )
        assert result.output["configuredMethod"] == "POST"
        assert result.output["authMode"] == "token"
        assert result.output["body"] == {"x": 1}
        assert result.output["query"] == {"q": "1"}
        assert result.next_last_output is seed

    def test_schedule_trigger_reports_now(self, run_node):
        result = run_node("schedule_trigger", trigger_type=TriggerType.SCHEDULE, cron="*/5 * * * *")
        assert result.output["cron"] == "*/5 * * * *"
        assert result.output["timezone"] == "UTC"
        assert result.output["now"] == FIXED_NOW.isoformat()
        assert result.next_last_output is None


@pytest.mark.unit
class TestRespondWebhook:
    def test_defaults_to_last_output(self, run_node):
        result = run_node("respond_webhook", last_output={"a": 1})
        assert result.signal == ControlSignal.TERMINAL_RESPOND
        assert result.response_status == 200
        assert result.next_last_output == {"a": 1}
        assert result.output == {"statusCode": 200, "bodyMode": "lastOutput", "body": {"a": 1}}

    def test_static_body_parses_json(self, run_node):
        result = run_node("respond_webhook", bodyMode="static", body='{"ok": true}', statusCode=201)
        assert result.response_status == 201
        assert result.next_last_output == {"ok": True}

    def test_static_plain_text(self, run_node):
        result = run_node("respond_webhook", bodyMode="static", staticBody="thanks")
        assert result.next_last_output == "thanks"

    def test_custom_json_object(self, run_node):
        result = run_node("respond_webhook", bodyMode="customJson", customJson='{"k": [1, 2]}')
        assert result.next_last_output == {"k": [1, 2]}
        assert result.log_status == NodeLogStatus.SUCCESS

    def test_invalid_custom_json_returns_500(self, run_node):
        result = run_node("respond_webhook", bodyMode="customJson", customJson="{nope")
        assert result.response_status == 500
        assert result.next_last_output["error"] == "Invalid custom JSON in respond_webhook node"
        assert result.log_status == NodeLogStatus.ERROR

    @pytest.mark.parametrize("raw,expected", [(42, 100), (700, 599), ("abc", 200), ("404", 404)])
    def test_status_code_is_clamped(self, run_node, raw, expected):
        assert run_node("respond_webhook", statusCode=raw).response_status == expected


@pytest.mark.unit
class TestHttpRequest:
    def test_missing_url(self, run_node, http_transport):
        result = run_node("http_request", method="post")
        assert result.output == {"error": "HTTP node has no URL configured", "method": "POST"}
        assert result.log_status == NodeLogStatus.ERROR
        assert http_transport.requests == []

    def test_relative_url_resolves_against_base(self, run_node, http_transport):
        result = run_node("http", url="/api/ping")
        assert str(http_transport.requests[0].url) == f"{TEST_BASE_URL}/api/ping"
        assert result.output["status"] == 200
        assert result.output["ok"] is True
        assert result.output["body"] == {"hello": "world"}
        assert result.next_last_output == result.output

    def test_json_body_sets_content_type(self, run_node, http_transport):
        run_node("http_request", url="https://api.test/items", method="POST", body={"name": "x"})
        sent = http_transport.requests[0]
        assert sent.headers["content-type"] == "application/json"
        assert json.loads(sent.content) == {"name": "x"}

    def test_declared_content_type_is_kept(self, run_node, http_transport):
        run_node(
            "http_request",
            url="https://api.test/items",
            method="POST",
            headers={"content-type": "text/plain"},
            body="raw",
        )
        sent = http_transport.requests[0]
        assert sent.headers["content-type"] == "text/plain"
        assert sent.content == b"raw"

    def test_credential_headers_override_node_headers(self, store, run_node, http_transport):
        store.put_credential(Credential(id="cred-1", workspace_id="ws-1", type="bearer", config={"token": "abc"}))
        result = run_node(
            "http_request",
            url="https://api.test/me",
            headers={"authorization": "Bearer stale", "X-Other": "1"},
            credentialId="cred-1",
        )
        sent = http_transport.requests[0]
        assert sent.headers.get_list("authorization") == ["Bearer abc"]
        assert sent.headers["x-other"] == "1"
        assert result.output["credential"] == {"id": "cred-1", "type": "bearer"}

    def test_missing_credential_raises(self, run_node, http_transport):
        with pytest.raises(CredentialNotFound):
            run_node("http_request", url="https://api.test/me", credentialId="nope")
        assert http_transport.requests == []

    def test_network_failure_is_an_error_output(self, run_node, http_transport, sleeper):
        http_transport.responder = always_fail("refused")
        result = run_node("http_request", url="/api/ping", retryCount=2, retryDelayMs=10)
        assert len(http_transport.requests) == 3
        assert sleeper.calls == [0.01, 0.01]
        assert result.output["url"] == "/api/ping"
        assert result.output["resolvedUrl"] == f"{TEST_BASE_URL}/api/ping"
        assert result.output["retry"]["attempts"] == 3
        assert result.log_status == NodeLogStatus.ERROR

    def test_non_2xx_is_not_an_error(self, run_node, http_transport):
        http_transport.responder = always_status(404, {"detail": "missing"})
        result = run_node("http_request", url="https://api.test/x")
        assert result.output["status"] == 404
        assert result.output["ok"] is False
        assert result.log_status == NodeLogStatus.SUCCESS


@pytest.mark.unit
class TestSendEmail:
    def test_parse_recipients(self):
        assert parse_recipients("a@x.io, b@x.io,,") == ["a@x.io", "b@x.io"]
        assert parse_recipients(["a@x.io", " ", None]) == ["a@x.io"]
        assert parse_recipients(None) == []

    def test_no_recipients(self, run_node):
        result = run_node("send_email", subject="Hi")
        assert result.output["error"] == "send_email node has no recipients"

    def test_not_configured(self, run_node):
        result = run_node("send_email", to="a@x.io", subject="Hi")
        assert result.output == {
            "error": "Email provider is not configured",
            "configured": False,
            "to": ["a@x.io"],
            "subject": "Hi",
        }
        assert result.log_status == NodeLogStatus.ERROR

    def test_sends_through_resend(self, services, http_client, http_transport):
        services.email = ResendEmailClient("re_key", http_client, default_from="bot@flowcraft.test")
        http_transport.responder = always_status(200, {"id": "email-1"})
        run = Run(id="run-1", flow_id="flow-1")
        target = node("mail", "send_email", to="a@x.io,b@x.io", subject="Hi", body="Hello")

        result = SendEmailRunner().run(NodeExecutionContext(target, None, run, services))

        sent = http_transport.requests[0]
        assert str(sent.url) == RESEND_API_URL
        assert sent.headers["authorization"] == "Bearer re_key"
        assert json.loads(sent.content) == {
            "from": "bot@flowcraft.test",
            "to": ["a@x.io", "b@x.io"],
            "subject": "Hi",
            "text": "Hello",
        }
        assert result.output["ok"] is True
        assert result.output["response"] == {"id": "email-1"}
        assert "error" not in result.output

    def test_provider_rejection_is_an_error(self, services, http_client, http_transport):
        services.email = ResendEmailClient("re_key", http_client, default_from="bot@flowcraft.test")
        http_transport.responder = always_status(422, {"message": "bad"})
        run = Run(id="run-1", flow_id="flow-1")
        target = node("mail", "send_email", to=["a@x.io"], subject="Hi")

        result = SendEmailRunner().run(NodeExecutionContext(target, None, run, services))
        assert result.output["error"] == "Email provider returned status 422"


@pytest.mark.unit
class TestIf:
    @pytest.mark.parametrize("expected,passed", [(200, True), ("200", True), (404, False)])
    def test_status_eq(self, run_node, expected, passed):
        result = run_node("if", last_output={"status": 200}, expected=expected)
        assert result.output["passed"] is passed
        assert result.signal == (ControlSignal.CONTINUE if passed else ControlSignal.BRANCH_FALSE)
        assert result.next_last_output == result.output

    def test_string_status_does_not_match(self, run_node):
        result = run_node("if", last_output={"status": "200"}, expected=200)
        assert result.output["passed"] is False
        assert result.signal == ControlSignal.BRANCH_FALSE

    def test_status_eq_default_expected(self, run_node):
        result = run_node("if", last_output={"status": 200})
        assert result.output["expected"] == 200
        assert result.output["passed"] is True

    def test_ok_true(self, run_node):
        assert run_node("if", last_output={"ok": True}, mode="ok_true").output["passed"] is True
        assert run_node("if", last_output={"ok": False}, mode="ok_true").signal == ControlSignal.BRANCH_FALSE

    def test_no_previous_output(self, run_node):
        result = run_node("if")
        assert result.output["error"] == "IF node: no previous node output"
        assert result.signal == ControlSignal.BRANCH_FALSE

    def test_unknown_mode(self, run_node):
        result = run_node("if", last_output={"status": 200}, mode="regex")
        assert result.output["error"] == "Unknown IF mode: regex"
        assert result.output["passed"] is False


@pytest.mark.unit
class TestWait:
    def test_ms(self, run_node, sleeper):
        result = run_node("wait", last_output={"a": 1}, ms=250)
        assert sleeper.calls == [0.25]
        assert result.output == {"info": "Wait node executed", "waitedMs": 250, "waitedSeconds": 0.25}
        assert result.next_last_output == {"a": 1}

    def test_seconds(self, run_node, sleeper):
        run_node("delay", seconds=2)
        assert sleeper.calls == [2.0]

    def test_default_is_one_second(self, run_node, sleeper):
        assert run_node("wait").output["waitedMs"] == 1000
        assert sleeper.calls == [1.0]

    def test_negative_waits_nothing(self, run_node, sleeper):
        assert run_node("wait", seconds=-5).output["waitedMs"] == 0
        assert sleeper.calls == []


@pytest.mark.unit
class TestStop:
    def test_defaults(self, run_node):
        result = run_node("stop_error", last_output={"a": 1})
        assert result.signal == ControlSignal.STOP_ERROR
        assert result.output == {
            "code": "manual_stop",
            "reason": "Flow stopped by Stop & Error node.",
            "lastOutput": {"a": 1},
        }
        assert result.log_status == NodeLogStatus.ERROR

    def test_custom_reason(self, run_node):
        result = run_node("stop", errorCode="quota", message="Quota exceeded")
        assert result.output["code"] == "quota"
        assert result.output["reason"] == "Quota exceeded"


@pytest.mark.unit
class TestObservers:
    def test_log(self, run_node, caplog):
        with caplog.at_level("INFO"):
            result = run_node("log", last_output={"a": 1}, message="checkpoint")
        assert result.output == {"message": "checkpoint", "lastOutput": {"a": 1}}
        assert result.next_last_output == {"a": 1}
        assert any(getattr(r, "run_id", None) == "run-1" for r in caplog.records)

    def test_execution_data(self, run_node):
        result = run_node("execution_data", last_output=[1, 2])
        assert result.output == {
            "info": "Execution data snapshot",
            "runId": "run-1",
            "flowId": "flow-1",
            "lastOutput": [1, 2],
        }
        assert result.next_last_output == [1, 2]


@pytest.mark.unit
class TestFormatter:
    CONTEXT = {"status": 200, "body": {"title": "  Hello World  ", "other": "keep"}}

    @pytest.mark.parametrize(
        "mode,extra,value",
        [
            ("pick_field", {}, "  Hello World  "),
            ("to_upper", {}, "  HELLO WORLD  "),
            ("to_lower", {}, "  hello world  "),
            ("trim", {}, "Hello World"),
            ("replace", {"from": "World", "to": "There"}, "  Hello There  "),
            ("slice", {"start": 2, "end": 7}, "Hello"),
        ],
    )
    def test_modes_write_target_without_touching_siblings(self, run_node, mode, extra, value):
        result = run_node(
            "formatter",
            last_output=self.CONTEXT,
            mode=mode,
            fieldPath="body.title",
            targetPath="body.formatted",
            **extra,
        )
        assert result.output["value"] == value
        updated = result.next_last_output
        assert updated["body"]["formatted"] == value
        assert updated["body"]["title"] == "  Hello World  "
        assert updated["body"]["other"] == "keep"
        assert updated["status"] == 200
        assert "formatted" not in self.CONTEXT["body"]

    def test_in_place_write_keeps_siblings(self, run_node):
        ctx = {"body": {"title": "x", "other": "y"}}
        result = run_node("formatter", last_output=ctx, mode="to_upper", fieldPath="body.title", targetPath="body.title")
        assert result.next_last_output == {"body": {"title": "X", "other": "y"}}
        assert ctx == {"body": {"title": "x", "other": "y"}}

    def test_replace_with_falsy_replacement(self, run_node):
        result = run_node(
            "formatter", last_output={"code": "A-1"}, mode="replace", fieldPath="code", **{"from": "1", "to": 0}
        )
        assert result.output["value"] == "A-0"

    def test_write_through_list_keeps_other_elements(self, run_node):
        ctx = {"body": [{"title": "x", "other": "y"}, {"title": "z"}]}
        result = run_node("formatter", last_output=ctx, mode="to_upper", fieldPath="body.0.title")

        assert result.next_last_output == {"body": [{"title": "X", "other": "y"}, {"title": "z"}]}
        assert ctx["body"][0]["title"] == "x"

    def test_target_defaults_to_field(self, run_node):
        result = run_node("text_formatter", last_output=self.CONTEXT, mode="trim", fieldPath="body.title")
        assert result.next_last_output["body"]["title"] == "Hello World"

    def test_objects_are_stringified(self, run_node):
        result = run_node("json_formatter", last_output={"body": {"a": 1}}, mode="to_upper")
        assert result.output["value"] == '{"A":1}'

    def test_unknown_mode_keeps_context(self, run_node):
        result = run_node("formatter", last_output=self.CONTEXT, mode="reverse")
        assert result.output["error"] == "Unknown formatter mode: reverse"
        assert result.next_last_output is self.CONTEXT

    def test_requires_previous_output(self, run_node):
        result = run_node("formatter", mode="trim")
        assert result.log_status == NodeLogStatus.ERROR
        assert result.next_last_output is None


@pytest.mark.unit
class TestJson:
    def test_parse(self, run_node):
        result = run_node("json_parse", last_output={"body": '{"a": [1]}'}, targetPath="parsed")
        assert result.next_last_output == {"body": '{"a": [1]}', "parsed": {"a": [1]}}

    def test_parse_invalid(self, run_node):
        ctx = {"body": "{oops"}
        result = run_node("json_parse", last_output=ctx)
        assert result.output["error"].startswith("json_parse: invalid JSON")
        assert result.next_last_output is ctx

    def test_parse_non_string(self, run_node):
        result = run_node("json_parse", last_output={"body": {"a": 1}})
        assert result.output["error"] == "json_parse: value at 'body' is not a string"

    def test_stringify(self, run_node):
        result = run_node("json_stringify", last_output={"body": {"a": 1}}, targetPath="text")
        assert result.next_last_output["text"] == '{"a": 1}'
        assert result.next_last_output["body"] == {"a": 1}

    def test_stringify_pretty(self, run_node):
        result = run_node("json_stringify", last_output={"body": {"a": 1}}, pretty=True)
        assert result.output["value"] == '{\n  "a": 1\n}'


@pytest.mark.unit
class TestNumberFormatter:
    @pytest.mark.parametrize(
        "mode,raw,decimals,value",
        [
            ("round", 2.5, None, 3),
            ("round", 1.234, 2, 1.23),
            ("ceil", 1.21, 1, 1.3),
            ("floor", 1.29, 1, 1.2),
            ("percent", 0.25, None, 25),
            ("round", "7.6", None, 8),
        ],
    )
    def test_modes(self, run_node, mode, raw, decimals, value):
        data = {"mode": mode, "fieldPath": "amount"}
        if decimals is not None:
            data["decimals"] = decimals
        result = run_node("number_formatter", last_output={"amount": raw, "x": 1}, **data)
        assert result.output["value"] == pytest.approx(value)
        assert result.next_last_output["amount"] == pytest.approx(value)
        assert result.next_last_output["x"] == 1

    def test_zero_decimals_yield_int(self, run_node):
        result = run_node("number_formatter", last_output={"body": 4.4})
        assert result.output["value"] == 4
        assert isinstance(result.output["value"], int)

    def test_non_numeric(self, run_node):
        ctx = {"body": "abc"}
        result = run_node("number_formatter", last_output=ctx)
        assert result.output["error"] == "number_formatter: value at 'body' is not numeric"
        assert result.next_last_output is ctx

    def test_unknown_mode(self, run_node):
        result = run_node("number_formatter", last_output={"body": 1}, mode="sqrt")
        assert result.output["error"] == "Unknown number_formatter mode: sqrt"


@pytest.mark.unit
class TestSetFields:
    @pytest.mark.parametrize(
        "raw,coerced",
        [
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-3", -3),
            ("2.5", 2.5),
            ('{"a": 1}', {"a": 1}),
            ("[1, 2]", [1, 2]),
            ("{broken", "{broken"),
            ("hello", "hello"),
            (7, 7),
        ],
    )
    def test_coerce_value(self, raw, coerced):
        assert coerce_value(raw) == coerced

    def test_applies_assignments_cumulatively(self, run_node):
        result = run_node(
            "set_fields",
            last_output={"body": {"a": 1}},
            assignments=[
                {"path": "body.b", "value": "2"},
                {"path": "flags.done", "value": "true"},
                {"value": "ignored"},
            ],
        )
        assert result.next_last_output == {"body": {"a": 1, "b": 2}, "flags": {"done": True}}
        assert result.output["applied"] == [
            {"path": "body.b", "value": 2},
            {"path": "flags.done", "value": True},
        ]

    def test_starts_from_empty_object(self, run_node):
        result = run_node("set", assignments=[{"path": "x", "value": "1"}])
        assert result.next_last_output == {"x": 1}

    def test_no_assignments_keeps_context(self, run_node):
        ctx = {"a": 1}
        result = run_node("set_fields", last_output=ctx)
        assert result.next_last_output is ctx
