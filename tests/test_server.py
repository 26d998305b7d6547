"""Tests for the MCP adapter."""

import asyncio

import httpx
import pytest

from streamlinear.dispatcher import Dispatcher
from streamlinear.server import TOOL_NAME, build_payload, create_server, run_action
from tests.fakes import FakeLinear

_ISSUE_REF = {"issue": {"id": "uuid-eng-1", "identifier": "ENG-1", "team": {"id": "team_eng"}}}


def _updated(assignee: dict | None) -> dict:
    issue = {
        "identifier": "ENG-1",
        "title": "Fix null check",
        "state": {"name": "Todo"},
        "priority": 3,
        "assignee": assignee,
        "labels": {"nodes": []},
    }
    return {"issueUpdate": {"success": True, "issue": issue}}


def _call(dispatcher: Dispatcher, arguments: dict) -> None:
    asyncio.run(create_server(dispatcher).call_tool(TOOL_NAME, arguments))


class TestBuildPayload:
    def test_drops_unset_fields(self) -> None:
        assert build_payload("get", id="ENG-1", state=None, body=None) == {"action": "get", "id": "ENG-1"}

    def test_none_unassigns(self) -> None:
        payload = build_payload("update", id="ENG-1", assignee=None)
        assert "assignee" in payload
        assert payload["assignee"] is None

    def test_null_literal_unassigns(self) -> None:
        payload = build_payload("update", id="ENG-1", assignee="null")
        assert "assignee" in payload
        assert payload["assignee"] is None

    def test_omitted_assignee_absent(self) -> None:
        assert "assignee" not in build_payload("update", id="ENG-1", priority=1)

    def test_assignee_passed_through(self) -> None:
        assert build_payload("update", id="ENG-1", assignee="me")["assignee"] == "me"


class TestRunAction:
    def test_success(self, dispatcher: Dispatcher) -> None:
        assert run_action(dispatcher, {"action": "help"}).startswith("# Linear")

    def test_request_error_as_text(self, dispatcher: Dispatcher) -> None:
        assert run_action(dispatcher, {"action": "delete"}) == "Error: Unknown action: delete"

    def test_transport_error_as_text(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        fake_linear.responses["GetIssue"] = httpx.ConnectError("connection refused")
        assert run_action(dispatcher, {"action": "get", "id": "ENG-1"}) == "Error: connection refused"

    def test_unexpected_errors_propagate(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        fake_linear.responses["GetIssue"] = KeyError("boom")
        with pytest.raises(KeyError):
            run_action(dispatcher, {"action": "get", "id": "ENG-1"})


class TestCreateServer:
    def test_registers_single_tool(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        server = create_server(dispatcher)
        tools = asyncio.run(server.list_tools())

        assert [t.name for t in tools] == [TOOL_NAME]
        assert "ENG: Backlog, Todo, In Progress, In Review, Done, Canceled" in (tools[0].description or "")
        assert fake_linear.operations() == ["Teams"]

    def test_tool_schema_has_action_fields(self, dispatcher: Dispatcher) -> None:
        tool = asyncio.run(create_server(dispatcher).list_tools())[0]
        properties = tool.inputSchema["properties"]
        assert {"action", "query", "id", "state", "priority", "assignee", "body", "title", "team", "graphql"} <= set(
            properties
        )
        assert tool.inputSchema["required"] == ["action"]


class TestCallTool:
    def test_null_assignee_unassigns(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        fake_linear.responses["IssueTeam"] = _ISSUE_REF
        fake_linear.responses["UpdateIssue"] = _updated(assignee=None)

        _call(dispatcher, {"action": "update", "id": "ENG-1", "assignee": None})

        assert fake_linear.variables_for("UpdateIssue") == {"id": "uuid-eng-1", "input": {"assigneeId": None}}

    def test_omitted_assignee_left_alone(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        fake_linear.responses["IssueTeam"] = _ISSUE_REF
        fake_linear.responses["UpdateIssue"] = _updated(assignee={"name": "Jane Doe"})

        _call(dispatcher, {"action": "update", "id": "ENG-1", "priority": 1})

        assert fake_linear.variables_for("UpdateIssue")["input"] == {"priority": 1}

    def test_assign_me(self, fake_linear: FakeLinear, dispatcher: Dispatcher) -> None:
        fake_linear.responses["IssueTeam"] = _ISSUE_REF
        fake_linear.responses["UpdateIssue"] = _updated(assignee={"name": "Jane Doe"})

        _call(dispatcher, {"action": "update", "id": "ENG-1", "assignee": "me"})

        assert fake_linear.variables_for("UpdateIssue")["input"] == {"assigneeId": "user_me"}
