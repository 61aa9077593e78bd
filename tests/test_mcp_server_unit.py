"""Unit tests for MCP server."""

import io
import json

import pytest
from jsonschema import Draft7Validator

from application.dispatcher import OperationDispatcher
from application.operations import OPERATIONS
from application.ports import ExecutionOutput
from core.errors import ScriptTimeoutError
from interface import mcp_server
from interface.mcp_server import (
    MCP_VERSION,
    SERVER_NAME,
    JsonRpcRequest,
    MCPServer,
    get_tool_definitions,
    json_rpc_error,
    json_rpc_response,
    run_stdio,
)


class ReplayExecutor:
    """Answers every script, liveness check included, from a queue."""

    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.scripts = []

    def execute(self, script, params, timeout):
        self.scripts.append(script)
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return ExecutionOutput(json.dumps(payload))


RUNNING = {"success": True, "data": True}


def _server(*payloads):
    server = MCPServer(OperationDispatcher(ReplayExecutor(*payloads)))
    server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="initialize", id=1))
    server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized"))
    return server


def _call(server, name, arguments=None, id=7):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/call", id=id, params=params))


class TestJsonRpc:
    """Tests for JSON-RPC helpers."""

    def test_json_rpc_response(self):
        resp = json_rpc_response(1, {"foo": "bar"})
        assert resp == {"jsonrpc": "2.0", "id": 1, "result": {"foo": "bar"}}

    def test_json_rpc_error(self):
        err = json_rpc_error(2, -32600, "Invalid request")
        assert err["error"] == {"code": -32600, "message": "Invalid request"}

    def test_json_rpc_error_with_data(self):
        err = json_rpc_error(3, -32000, "Custom error", {"detail": "info"})
        assert err["error"]["data"] == {"detail": "info"}

    def test_request_from_dict_minimal(self):
        req = JsonRpcRequest.from_dict({"method": "ping"})
        assert req.method == "ping"
        assert req.id is None
        assert req.params == {}

    def test_request_from_dict_ignores_non_object_params(self):
        req = JsonRpcRequest.from_dict({"method": "tools/call", "id": "a", "params": [1, 2]})
        assert req.params == {}


class TestToolDefinitions:
    """Tests for tool definitions."""

    def test_one_tool_per_operation(self):
        names = [tool["name"] for tool in get_tool_definitions()]
        assert len(names) == 21
        assert set(names) == set(OPERATIONS)

    def test_every_tool_has_a_description(self):
        for tool in get_tool_definitions():
            assert tool["description"]
            assert not tool["description"].startswith("Run Things operation")

    @pytest.mark.parametrize("tool", get_tool_definitions(), ids=lambda tool: tool["name"])
    def test_input_schemas_are_valid(self, tool):
        schema = tool["inputSchema"]
        assert schema["type"] == "object"
        Draft7Validator.check_schema(schema)

    def test_required_arguments(self):
        required = {tool["name"]: tool["inputSchema"].get("required", []) for tool in get_tool_definitions()}
        assert required["update_todo"] == ["id"]
        assert required["show_item"] == ["id"]
        assert required["search_todos"] == ["query"]
        assert required["get_tagged_items"] == ["tag_title"]

    def test_example_arguments_validate(self):
        schemas = {tool["name"]: tool["inputSchema"] for tool in get_tool_definitions()}
        Draft7Validator(schemas["add_todo"]).validate({"title": "Buy milk", "when": "2025-01-10", "tags": ["errand"]})
        Draft7Validator(schemas["get_logbook"]).validate({"period": "2w", "limit": 10})
        assert list(Draft7Validator(schemas["get_todos"]).iter_errors({"status": "done"}))


class TestMCPServer:
    """Tests for MCP server."""

    def test_initialize_returns_capabilities(self):
        server = MCPServer(OperationDispatcher(ReplayExecutor()))
        resp = server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="initialize", id=1))
        result = resp["result"]
        assert result["protocolVersion"] == MCP_VERSION
        assert result["serverInfo"]["name"] == SERVER_NAME
        assert "tools" in result["capabilities"]
        assert "naming contract v1" in result["instructions"]

    def test_not_initialized_error(self):
        server = MCPServer(OperationDispatcher(ReplayExecutor()))
        resp = server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/list", id=1))
        assert resp["error"]["code"] == -32002

    def test_initialized_notification_has_no_response(self):
        server = MCPServer(OperationDispatcher(ReplayExecutor()))
        assert server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized")) is None

    def test_tools_list(self):
        resp = _server().handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/list", id=2))
        assert len(resp["result"]["tools"]) == len(get_tool_definitions())

    def test_ping(self):
        resp = _server().handle_request(JsonRpcRequest(jsonrpc="2.0", method="ping", id=2))
        assert resp["result"] == {}

    def test_unknown_method(self):
        resp = _server().handle_request(JsonRpcRequest(jsonrpc="2.0", method="unknown/method", id=3))
        assert resp["error"]["code"] == -32601

    def test_tools_call_success(self):
        server = _server(RUNNING, {"success": True, "data": ["home", "work"]})
        resp = _call(server, "get_tags", {})
        assert resp["id"] == 7
        assert resp["result"]["isError"] is False
        content = json.loads(resp["result"]["content"][0]["text"])
        assert content == {"success": True, "count": 2, "tags": ["home", "work"]}

    def test_tools_call_without_arguments(self):
        server = _server(RUNNING, {"success": True, "data": []})
        resp = _call(server, "get_inbox")
        assert resp["result"]["isError"] is False

    def test_tools_call_unknown_tool(self):
        resp = _call(_server(), "unknown_tool", {})
        assert resp["error"]["code"] == -32601
        assert resp["error"]["message"] == "Unknown tool: unknown_tool"

    def test_tools_call_invalid_params(self):
        resp = _call(_server(), "add_todo", {"title": "T", "tags": "not-an-array"})
        assert resp["error"]["code"] == -32602
        assert "must be an array" in resp["error"]["message"]

    def test_tools_call_not_found_is_a_result(self):
        not_found = {"success": False, "error": {"type": "NotFound", "message": "To-do not found", "code": -1}}
        resp = _call(_server(RUNNING, not_found), "update_todo", {"id": "zzz"})
        assert "error" not in resp
        assert resp["result"]["isError"] is False
        content = json.loads(resp["result"]["content"][0]["text"])
        assert content["success"] is False
        assert content["error"] == "TODO_NOT_FOUND"
        assert content["message"] == "To-do not found: zzz"

    @pytest.mark.parametrize(
        "tool,code",
        [("update_project", "PROJECT_NOT_FOUND"), ("show_item", "ITEM_NOT_FOUND")],
    )
    def test_every_not_found_code_is_a_successful_call(self, tool, code):
        not_found = {"success": False, "error": {"type": "NotFound", "message": "missing", "code": -1}}
        resp = _call(_server(RUNNING, not_found), tool, {"id": "p1"})
        assert resp["result"]["isError"] is False
        assert json.loads(resp["result"]["content"][0]["text"])["error"] == code

    def test_other_unsuccessful_bodies_are_errors(self):
        class Failing:
            def dispatch(self, name, args):
                return {"success": False, "error": "SOMETHING_ELSE"}

        server = MCPServer(Failing())
        server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="initialize", id=1))
        server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized"))
        assert _call(server, "get_tags", {})["result"]["isError"] is True

    def test_tools_call_things_not_running(self):
        resp = _call(_server({"success": True, "data": False}), "get_today", {})
        assert resp["error"]["code"] == -32603
        assert "not running" in resp["error"]["message"]

    def test_tools_call_timeout(self):
        resp = _call(_server(RUNNING, ScriptTimeoutError(30.0)), "get_today", {})
        assert resp["error"]["code"] == -32603
        assert resp["error"]["message"] == "JXA execution timed out"

    def test_leaked_prints_go_to_stderr(self, capsys):
        class Noisy:
            def dispatch(self, name, args):
                print("stray output")
                return {"success": True}

        server = MCPServer(Noisy())
        server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="initialize", id=1))
        server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized"))
        resp = _call(server, "get_tags", {})
        captured = capsys.readouterr()
        assert resp["result"]["isError"] is False
        assert "stray output" in captured.err
        assert "stray output" not in captured.out


class TestRunStdio:
    """Tests for the stdio loop."""

    def _run(self, monkeypatch, lines, server=None):
        stdout = io.StringIO()
        monkeypatch.setattr(mcp_server.sys, "stdin", io.StringIO("".join(line + "\n" for line in lines)))
        monkeypatch.setattr(mcp_server.sys, "stdout", stdout)
        assert run_stdio(server or MCPServer(OperationDispatcher(ReplayExecutor()))) == 0
        return [json.loads(line) for line in stdout.getvalue().splitlines()]

    def test_session(self, monkeypatch):
        frames = self._run(
            monkeypatch,
            [
                json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
                json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
                "",
                json.dumps({"jsonrpc": "2.0", "id": 2, "method": "ping"}),
            ],
        )
        assert [frame["id"] for frame in frames] == [1, 2]

    def test_parse_error(self, monkeypatch):
        frames = self._run(monkeypatch, ["{not json"])
        assert frames[0]["error"]["code"] == -32700
        assert frames[0]["id"] is None

    def test_invalid_request(self, monkeypatch):
        frames = self._run(monkeypatch, [json.dumps({"jsonrpc": "2.0", "id": 9})])
        assert frames[0]["error"]["code"] == -32600
        assert frames[0]["id"] == 9


class TestMain:
    """Tests for the entrypoint."""

    def test_invalid_config_exits_with_error(self, monkeypatch, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("limits:\n  jxa_timeout: -1\n", encoding="utf-8")
        monkeypatch.setattr("config.USER_CONFIG_PATH", config_path)
        assert mcp_server.main([]) == 2

    def test_empty_input_exits_cleanly(self, monkeypatch, tmp_path):
        monkeypatch.setattr("config.USER_CONFIG_PATH", tmp_path / "missing.yaml")
        monkeypatch.setattr(mcp_server.sys, "stdin", io.StringIO(""))
        assert mcp_server.main(["--debug"]) == 0
