import io
import json

import pytest

from flutterdeps.server import McpServer, build_server


def make_server():
    server = McpServer("demo", "9.9")
    server.register_tool("echo", "Echo the text", lambda args: args.get("text", ""))
    return server


def test_initialize_reports_server_info_and_protocol():
    response = make_server().handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize",
         "params": {"protocolVersion": "2025-01-01"}}
    )
    assert response["id"] == 1
    assert response["result"]["serverInfo"] == {"name": "demo", "version": "9.9"}
    assert response["result"]["protocolVersion"] == "2025-01-01"


def test_tools_list_in_registration_order():
    server = make_server()
    server.register_tool("second", "Another", lambda args: "x")
    response = server.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = [tool["name"] for tool in response["result"]["tools"]]
    assert names == ["echo", "second"]


def test_tools_call_returns_handler_text():
    response = make_server().handle_message(
        {"jsonrpc": "2.0", "id": 3, "method": "tools/call",
         "params": {"name": "echo", "arguments": {"text": "hello"}}}
    )
    assert response["result"]["content"] == [{"type": "text", "text": "hello"}]
    assert response["result"]["isError"] is False


def test_unknown_method_is_an_error():
    response = make_server().handle_message({"jsonrpc": "2.0", "id": 4, "method": "nope"})
    assert response["error"]["code"] == -32601
    assert "result" not in response


def test_unknown_tool_is_an_error():
    response = make_server().handle_message(
        {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "missing"}}
    )
    assert "error" in response
    assert response["id"] == 5


def test_notification_gets_no_answer():
    message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
    assert make_server().handle_message(message) is None


def test_duplicate_tool_rejected():
    server = make_server()
    with pytest.raises(ValueError):
        server.register_tool("echo", "Again", lambda args: "")


def test_serve_answers_requests_line_by_line():
    lines = [
        json.dumps({"jsonrpc": "2.0", "id": 7, "method": "ping"}),
        "",
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        json.dumps({"jsonrpc": "2.0", "id": 8, "method": "tools/call",
                    "params": {"name": "echo", "arguments": {"text": "hi"}}}),
    ]
    stdout = io.StringIO()
    make_server().serve(io.StringIO("\n".join(lines) + "\n"), stdout)
    responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [r["id"] for r in responses] == [7, 8]
    assert responses[0]["result"] == {}
    assert responses[1]["result"]["content"][0]["text"] == "hi"


def test_serve_reports_parse_error():
    stdout = io.StringIO()
    make_server().serve(io.StringIO("{not json\n"), stdout)
    response = json.loads(stdout.getvalue())
    assert response["id"] is None
    assert response["error"]["code"] == -32700


class FakeHandlers:
    def __init__(self):
        self.codes = []

    def check_flutter_deprecations(self, code):
        self.codes.append(code)
        return f"checked {code}"

    def list_flutter_deprecations(self):
        return "listing"

    def check_flutter_version_info(self):
        return "version"


def test_build_server_registers_three_tools():
    handlers = FakeHandlers()
    server = build_server(handlers)
    assert list(server.tools) == [
        "check_flutter_deprecations",
        "list_flutter_deprecations",
        "check_flutter_version_info",
    ]
    response = server.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
         "params": {"name": "check_flutter_deprecations",
                    "arguments": {"code": "RaisedButton()"}}}
    )
    assert handlers.codes == ["RaisedButton()"]
    assert response["result"]["content"][0]["text"] == "checked RaisedButton()"


def test_build_server_rejects_non_string_code():
    server = build_server(FakeHandlers())
    response = server.handle_message(
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call",
         "params": {"name": "check_flutter_deprecations", "arguments": {"code": 5}}}
    )
    assert "error" in response
    assert "result" not in response