"""A small Model Context Protocol server speaking JSON-RPC over standard streams."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

from .handlers import MCPHandlers
from .models import CheckCodeArgs

DEFAULT_PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

ToolHandler = Callable[[Mapping[str, Any]], str]


def _empty_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass
class Tool:
    """A registered tool: its name, description, handler and argument schema."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(default_factory=_empty_schema)


class _RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


class McpServer:
    """Dispatches JSON-RPC requests to registered tools."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self.tools: dict[str, Tool] = {}

    def register_tool(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        input_schema: dict[str, Any] | None = None,
    ) -> Tool:
        """Add a tool; its handler receives the call's arguments and returns text."""
        if name in self.tools:
            raise ValueError(f"tool {name!r} is already registered")
        tool = Tool(name, description, handler, input_schema or _empty_schema())
        self.tools[name] = tool
        return tool

    def handle_message(self, message: Mapping[str, Any]) -> dict[str, Any] | None:
        """Answer one decoded message; notifications and responses yield None."""
        is_notification = "id" not in message
        request_id = message.get("id")
        method = message.get("method")
        if method is None and ("result" in message or "error" in message):
            return None
        if not isinstance(method, str):
            if is_notification:
                return None
            return _error_response(request_id, INVALID_REQUEST, "missing method")

        params = message.get("params")
        if params is None:
            params = {}
        try:
            if not isinstance(params, Mapping):
                raise _RpcError(INVALID_PARAMS, "params must be an object")
            result = self._dispatch(method, params)
        except _RpcError as error:
            if is_notification:
                return None
            return _error_response(request_id, error.code, error.message)
        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _dispatch(self, method: str, params: Mapping[str, Any]) -> dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": self.name, "version": self.version},
            }
        if method == "ping" or method.startswith("notifications/"):
            return {}
        if method == "tools/list":
            return {
                "tools": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "inputSchema": tool.input_schema,
                    }
                    for tool in self.tools.values()
                ]
            }
        if method == "tools/call":
            return self._call_tool(params)
        raise _RpcError(METHOD_NOT_FOUND, f"method not found: {method}")

    def _call_tool(self, params: Mapping[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        tool = self.tools.get(name) if isinstance(name, str) else None
        if tool is None:
            raise _RpcError(INVALID_PARAMS, f"unknown tool: {name}")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise _RpcError(INVALID_PARAMS, "tool arguments must be an object")
        try:
            text = tool.handler(arguments)
        except (TypeError, ValueError) as error:
            raise _RpcError(INVALID_PARAMS, str(error)) from error
        except Exception as error:
            raise _RpcError(INTERNAL_ERROR, str(error)) from error
        return {"content": [{"type": "text", "text": text}], "isError": False}

    def serve(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Read one JSON message per line until end of input, writing each answer as a line."""
        source = sys.stdin if stdin is None else stdin
        sink = sys.stdout if stdout is None else stdout
        for line in source:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError as error:
                response = _error_response(None, PARSE_ERROR, f"parse error: {error}")
            else:
                if isinstance(message, dict):
                    response = self.handle_message(message)
                else:
                    response = _error_response(None, INVALID_REQUEST, "invalid request")
            if response is not None:
                sink.write(json.dumps(response, ensure_ascii=False) + "\n")
                sink.flush()


def _code_argument(arguments: Mapping[str, Any]) -> CheckCodeArgs:
    code = arguments.get("code", "")
    if not isinstance(code, str):
        raise TypeError("argument 'code' must be a string")
    return CheckCodeArgs(code=code)


def build_server(handlers: MCPHandlers) -> McpServer:
    """Create the server with the deprecation and version tools registered."""
    server = McpServer("flutter-deprecations-server", "1.0.0")
    server.register_tool(
        "check_flutter_deprecations",
        "Check Flutter code for deprecated APIs and get suggestions for replacements. "
        "Provide the code snippet to analyze.",
        lambda arguments: handlers.check_flutter_deprecations(_code_argument(arguments).code),
        {
            "type": "object",
            "properties": {
                "code": {"type": "string", "description": "Flutter code to analyze"}
            },
            "required": ["code"],
        },
    )
    server.register_tool(
        "list_flutter_deprecations",
        "Get a list of all known Flutter deprecations from the cache. "
        "Optionally filter by version or API name.",
        lambda arguments: handlers.list_flutter_deprecations(),
    )
    server.register_tool(
        "check_flutter_version_info",
        "Get the latest Flutter version and check availability in FVM and Docker images "
        "(instrumentisto/flutter and cirrusci/flutter).",
        lambda arguments: handlers.check_flutter_version_info(),
    )
    return server