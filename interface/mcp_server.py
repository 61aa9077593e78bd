#!/usr/bin/env python3
"""MCP (Model Context Protocol) stdio server for Things 3.

A thin transport shell around `application.dispatcher.OperationDispatcher`:
it speaks newline-delimited JSON-RPC 2.0 on stdin/stdout, lists the tools,
and turns dispatcher outcomes into tool results or protocol errors.

stdout carries protocol frames only. Logging goes to stderr, and anything a
handler prints by accident is captured and re-routed there too.
"""

from __future__ import annotations

import io
import json
import logging
import sys
from contextlib import redirect_stdout
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from application.dispatcher import OperationDispatcher
from application.operations import NOT_FOUND_CODES, OPERATIONS, TODO_STATUSES
from config import DEFAULT_LIMITS, ServerLimits, is_debug_enabled, load_limits
from core.errors import INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR, BridgeError
from core.naming import NAMING_CONTRACT_VERSION
from infrastructure.jxa.executor import OsascriptExecutor

MCP_VERSION = "2024-11-05"
SERVER_NAME = "things-bridge-mcp"
SERVER_VERSION = "1.0.0"
SERVER_NOT_INITIALIZED = -32002

logger = logging.getLogger("things_bridge.mcp")


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request."""

    jsonrpc: str
    method: str
    id: Optional[int | str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonRpcRequest":
        return cls(
            jsonrpc=str(data.get("jsonrpc", "2.0") or "2.0"),
            method=str(data["method"]),
            id=data.get("id"),
            params=data.get("params", {}) if isinstance(data.get("params", {}), dict) else {},
        )


def json_rpc_response(id: Optional[int | str], result: Any) -> Dict[str, Any]:
    """Create JSON-RPC success response."""
    return {"jsonrpc": "2.0", "id": id, "result": result}


def json_rpc_error(id: Optional[int | str], code: int, message: str, data: Any = None) -> Dict[str, Any]:
    """Create JSON-RPC error response."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


def _date(description: str) -> Dict[str, Any]:
    return {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}$", "description": f"{description} (YYYY-MM-DD)."}


def _strings(description: str) -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


_WHEN = _date("Date to start working on the item (shows up in Today on that day)")
_DEADLINE = _date("Date the item is actually due")
_NO_ARGS: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}

_TOOL_SPECS: Dict[str, Dict[str, Any]] = {
    "add_todo": {
        "description": "Create a to-do. Unknown projects or areas leave it in the Inbox.",
        "schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "To-do title."},
                "name": {"type": "string", "description": "Legacy alias for title."},
                "notes": {"type": "string", "description": "Notes."},
                "when": _WHEN,
                "due_date": _date("Legacy alias for when"),
                "deadline": _DEADLINE,
                "tags": _strings("Tag names; tags must already exist in Things."),
                "checklist_items": _strings("Checklist lines, appended to the notes."),
                "list_id": {"type": "string", "description": "Project id to put the to-do in."},
                "list_title": {"type": "string", "description": "Project name to put the to-do in."},
                "project": {"type": "string", "description": "Alias for list_title."},
                "area_id": {"type": "string", "description": "Area id to put the to-do in."},
                "area_title": {"type": "string", "description": "Area name to put the to-do in."},
                "area": {"type": "string", "description": "Alias for area_title."},
                "heading": {"type": "string", "description": "Heading inside the project (not scriptable; ignored with a warning)."},
            },
            "required": [],
        },
    },
    "add_project": {
        "description": "Create a project, optionally in an area and with initial to-dos.",
        "schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Project title."},
                "name": {"type": "string", "description": "Legacy alias for title."},
                "notes": {"type": "string", "description": "Notes."},
                "when": _WHEN,
                "deadline": _DEADLINE,
                "tags": _strings("Tag names."),
                "area_id": {"type": "string", "description": "Area id."},
                "area_title": {"type": "string", "description": "Area name."},
                "area": {"type": "string", "description": "Alias for area_title."},
                "todos": _strings("Titles of to-dos to create inside the project."),
            },
            "required": [],
        },
    },
    "update_todo": {
        "description": "Update a to-do by id. A missing id answers TODO_NOT_FOUND.",
        "schema": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "To-do id."},
                "title": {"type": "string", "description": "New title."},
                "notes": {"type": "string", "description": "New notes (replaces existing)."},
                "when": _WHEN,
                "deadline": _DEADLINE,
                "tags": _strings("Replacement tag list; an empty list clears tags."),
                "checklist_items": _strings("Checklist lines to append to the notes."),
                "completed": {"type": "boolean", "description": "Mark completed (false reopens)."},
                "canceled": {"type": "boolean", "description": "Mark canceled (false reopens)."},
                "list_id": {"type": "string", "description": "Move to project by id."},
                "list_title": {"type": "string", "description": "Move to project by name."},
                "area_id": {"type": "string", "description": "Move to area by id."},
                "area_title": {"type": "string", "description": "Move to area by name."},
            },
            "required": ["id"],
        },
    },
    "update_project": {
        "description": "Update a project by id. A missing id answers PROJECT_NOT_FOUND.",
        "schema": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Project id."},
                "title": {"type": "string", "description": "New title."},
                "notes": {"type": "string", "description": "New notes (replaces existing)."},
                "when": _WHEN,
                "deadline": _DEADLINE,
                "tags": _strings("Replacement tag list; an empty list clears tags."),
                "completed": {"type": "boolean", "description": "Mark completed (false reopens)."},
                "canceled": {"type": "boolean", "description": "Mark canceled (false reopens)."},
                "area_id": {"type": "string", "description": "Move to area by id."},
                "area_title": {"type": "string", "description": "Move to area by name."},
            },
            "required": ["id"],
        },
    },
    "get_inbox": {"description": "List to-dos in the Inbox.", "schema": _NO_ARGS},
    "get_today": {"description": "List to-dos scheduled for Today.", "schema": _NO_ARGS},
    "get_upcoming": {"description": "List to-dos in Upcoming.", "schema": _NO_ARGS},
    "get_anytime": {"description": "List to-dos in Anytime.", "schema": _NO_ARGS},
    "get_someday": {"description": "List to-dos in Someday.", "schema": _NO_ARGS},
    "get_logbook": {
        "description": "List completed to-dos from the Logbook.",
        "schema": {
            "type": "object",
            "properties": {
                "period": {
                    "type": "string",
                    "pattern": r"^\d+[dwmy]$",
                    "default": "7d",
                    "description": "How far back to look: 3d, 2w, 1m, 1y.",
                },
                "limit": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 50, "description": "Max entries."},
            },
            "required": [],
        },
    },
    "get_trash": {"description": "List to-dos in the Trash.", "schema": _NO_ARGS},
    "get_todos": {
        "description": "List to-dos, optionally limited to one project.",
        "schema": {
            "type": "object",
            "properties": {
                "project_uuid": {"type": "string", "description": "Project id; an unknown id yields an empty list."},
                "status": {"type": "string", "enum": list(TODO_STATUSES), "default": "open", "description": "To-do status."},
            },
            "required": [],
        },
    },
    "get_projects": {
        "description": "List open projects.",
        "schema": {
            "type": "object",
            "properties": {
                "include_items": {"type": "boolean", "default": False, "description": "Include to-do counts."},
            },
            "required": [],
        },
    },
    "get_areas": {
        "description": "List areas.",
        "schema": {
            "type": "object",
            "properties": {
                "include_items": {"type": "boolean", "default": False, "description": "Include project and to-do counts."},
            },
            "required": [],
        },
    },
    "get_tags": {"description": "List tag names.", "schema": _NO_ARGS},
    "get_tagged_items": {
        "description": "List to-dos and projects carrying a tag.",
        "schema": {
            "type": "object",
            "properties": {"tag_title": {"type": "string", "description": "Tag name."}},
            "required": ["tag_title"],
        },
    },
    "search_todos": {
        "description": "Search to-do titles and notes.",
        "schema": {
            "type": "object",
            "properties": {"query": {"type": "string", "description": "Case-insensitive search text."}},
            "required": ["query"],
        },
    },
    "search_advanced": {
        "description": "Search to-dos with tag and status filters.",
        "schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Case-insensitive search text."},
                "tags": _strings("Match to-dos carrying any of these tags."),
                "completed": {"type": "boolean", "default": False, "description": "Search completed to-dos."},
                "canceled": {"type": "boolean", "default": False, "description": "Search canceled to-dos."},
                "trashed": {"type": "boolean", "default": False, "description": "Also search the Trash."},
            },
            "required": ["query"],
        },
    },
    "get_recent": {
        "description": "List to-dos modified in the last N days, newest first.",
        "schema": {
            "type": "object",
            "properties": {
                "days": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 7, "description": "Days to look back."},
            },
            "required": [],
        },
    },
    "show_item": {
        "description": "Show a project, to-do or area by id. A missing id answers ITEM_NOT_FOUND.",
        "schema": {
            "type": "object",
            "properties": {"id": {"type": "string", "description": "Item id."}},
            "required": ["id"],
        },
    },
    "search_items": {
        "description": "Search to-dos, projects and areas by name.",
        "schema": {
            "type": "object",
            "properties": {"query": {"type": "string", "description": "Case-insensitive search text."}},
            "required": ["query"],
        },
    },
}

INSTRUCTIONS = (
    f"Things 3 tools (naming contract v{NAMING_CONTRACT_VERSION}). "
    "'when' is the day to start working on an item; 'deadline' is the day it is due. "
    "Dates are YYYY-MM-DD. Projects and areas that cannot be found are ignored, not errors."
)


def get_tool_definitions() -> List[Dict[str, Any]]:
    """Return MCP tool definitions (1:1 with the operation registry)."""
    tools: List[Dict[str, Any]] = []
    for name in OPERATIONS:
        spec = _TOOL_SPECS.get(name) or {}
        description = str(spec.get("description") or f"Run Things operation '{name}'.")
        schema = dict(spec.get("schema") or _NO_ARGS)
        tools.append({"name": name, "description": description, "inputSchema": schema})
    return tools


def _is_error(body: Dict[str, Any]) -> bool:
    """A missing item is still a successful call; the body carries its code."""
    if body.get("success", False):
        return False
    return body.get("error") not in NOT_FOUND_CODES


class MCPServer:
    """MCP stdio server exposing Things 3 operations."""

    def __init__(self, dispatcher: Optional[OperationDispatcher] = None, limits: ServerLimits = DEFAULT_LIMITS):
        if dispatcher is None:
            dispatcher = OperationDispatcher(OsascriptExecutor(max_buffer=limits.jxa_max_buffer), limits)
        self.dispatcher = dispatcher
        self._initialized = False

    @staticmethod
    def _json_content(payload: Any) -> Dict[str, Any]:
        return {"type": "text", "text": json.dumps(payload, ensure_ascii=False, indent=2)}

    def handle_request(self, request: JsonRpcRequest) -> Optional[Dict[str, Any]]:
        method = request.method
        params = request.params

        if method == "initialize":
            return json_rpc_response(
                request.id,
                {
                    "protocolVersion": MCP_VERSION,
                    "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
                    "capabilities": {"tools": {}},
                    "instructions": INSTRUCTIONS,
                },
            )

        if not self._initialized and method != "notifications/initialized":
            return json_rpc_error(request.id, SERVER_NOT_INITIALIZED, "Server not initialized")

        if method == "notifications/initialized":
            self._initialized = True
            return None

        if method == "tools/list":
            return json_rpc_response(request.id, {"tools": get_tool_definitions()})

        if method == "tools/call":
            return self._handle_tools_call(request.id, params)

        if method == "ping":
            return json_rpc_response(request.id, {})

        return json_rpc_error(request.id, METHOD_NOT_FOUND, f"Method not found: {method}")

    def _handle_tools_call(self, id: Optional[int | str], params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = str(params.get("name") or "")
        arguments = params.get("arguments", {})
        leaked = io.StringIO()
        try:
            with redirect_stdout(leaked):
                body = self.dispatcher.dispatch(tool_name, arguments)
        except BridgeError as exc:
            return json_rpc_error(id, exc.code, str(exc))
        finally:
            leaked_text = leaked.getvalue()
            if leaked_text.strip():
                # Never leak prints into the JSON-RPC channel.
                print(leaked_text, file=sys.stderr, end="")
        return json_rpc_response(
            id,
            {
                "content": [self._json_content(body)],
                "isError": _is_error(body),
            },
        )


def _write(frame: Dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(frame, ensure_ascii=False) + "\n")
    sys.stdout.flush()


def run_stdio(server: Optional[MCPServer] = None) -> int:
    """Run MCP server over stdio (newline-delimited JSON-RPC)."""
    server = server or MCPServer()
    logger.info("Things MCP server ready")
    for line in sys.stdin:
        raw = line.strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            _write(json_rpc_error(None, PARSE_ERROR, f"Parse error: {exc}"))
            continue
        if not isinstance(data, dict) or "method" not in data:
            _write(json_rpc_error(data.get("id") if isinstance(data, dict) else None, INVALID_REQUEST, "Invalid Request"))
            continue
        req = JsonRpcRequest.from_dict(data)
        out = server.handle_request(req)
        if out is None:
            continue
        _write(out)
    return 0


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Module entrypoint for `python -m interface.mcp_server`."""
    import argparse

    parser = argparse.ArgumentParser(prog="things-bridge-mcp", add_help=True)
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr.")
    args = parser.parse_args(argv)

    configure_logging(bool(args.debug) or is_debug_enabled())
    try:
        limits = load_limits()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    return run_stdio(MCPServer(limits=limits))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
