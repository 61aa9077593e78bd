"""Tool handlers and the immutable operation registry.

Each handler validates its arguments, builds the script, runs it through the
per-call `ScriptRunner`, and shapes the response. Handlers never catch
bridge errors; the dispatcher decides what a failure means.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from application.runner import ScriptRunner
from core.errors import InvalidParamsError, ScriptExecutionError
from core.parameters import map_parameters
from core.validation import validate_array, validate_enum, validate_integer, validate_string
from infrastructure.jxa import templates

logger = logging.getLogger("things_bridge.operations")

TODO_STATUSES = ("open", "completed", "canceled")

_PERIOD_PATTERN = re.compile(r"^(\d+)([dwmy])$")
_PERIOD_UNIT_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}


def _expect_list(data: Any, operation: str) -> List[Any]:
    if not isinstance(data, list):
        raise ScriptExecutionError(f"{operation} returned {type(data).__name__}, expected a list")
    return data


def _expect_dict(data: Any, operation: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ScriptExecutionError(f"{operation} returned {type(data).__name__}, expected an object")
    return data


def _required(mapped: Dict[str, Any], key: str, message: str) -> Any:
    value = mapped.get(key)
    if value is None:
        raise InvalidParamsError(message, key)
    return value


def _flag(args: Dict[str, Any], key: str, default: bool = False) -> bool:
    return bool(args[key]) if key in args else default


def _log_assignment_hints(mapped: Dict[str, Any], verb: str) -> None:
    name = mapped.get("name") or mapped.get("id")
    project = mapped.get("project") or mapped.get("list_id")
    area = mapped.get("area") or mapped.get("area_id")
    if project:
        logger.info("Item %s %s with project %s; if it doesn't exist the item stays where it is", name, verb, project)
    elif area:
        logger.info("Item %s %s with area %s; if it doesn't exist the item stays where it is", name, verb, area)


def parse_period(period: str) -> int:
    """Convert `7d` / `2w` / `1m` / `1y` into a number of days."""
    match = _PERIOD_PATTERN.match(period)
    if not match:
        raise InvalidParamsError("period must look like 7d, 2w, 1m or 1y", "period")
    return int(match.group(1)) * _PERIOD_UNIT_DAYS[match.group(2)]


def handle_add_todo(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    mapped = map_parameters(args, limits=runner.limits)
    title = _required(mapped, "name", "title is required")
    logger.info("Creating to-do %r", title)
    data = runner.run(
        templates.create_todo(),
        {
            "title": title,
            "notes": mapped.get("notes"),
            "deadline": mapped.get("due_date"),
            "when": mapped.get("activation_date"),
            "list_id": mapped.get("list_id"),
            "list_title": mapped.get("project"),
            "area_id": mapped.get("area_id"),
            "area_title": mapped.get("area"),
            "heading": mapped.get("heading"),
            "tags": mapped.get("tags"),
            "checklist_items": mapped.get("checklist_items"),
        },
    )
    created = _expect_dict(data, "add_todo")
    _log_assignment_hints(mapped, "created")
    return {"success": True, "message": f"Created to-do: {title}", "id": created.get("id")}


def handle_add_project(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    mapped = map_parameters(args, limits=runner.limits)
    title = _required(mapped, "name", "title is required")
    logger.info("Creating project %r", title)
    data = runner.run(
        templates.create_project(),
        {
            "title": title,
            "notes": mapped.get("notes"),
            "deadline": mapped.get("due_date"),
            "when": mapped.get("activation_date"),
            "area_id": mapped.get("area_id"),
            "area_title": mapped.get("area"),
            "tags": mapped.get("tags"),
            "todos": mapped.get("todos"),
        },
    )
    created = _expect_dict(data, "add_project")
    _log_assignment_hints(mapped, "created")
    return {"success": True, "message": f"Created project: {title}", "id": created.get("id")}


def handle_update_todo(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    mapped = map_parameters(args, limits=runner.limits)
    item_id = _required(mapped, "id", "Todo ID is required for update")
    logger.info("Updating to-do %s", item_id)
    data = runner.run(
        templates.update_todo(),
        {
            "id": item_id,
            "title": mapped.get("name"),
            "notes": mapped.get("notes"),
            "deadline": mapped.get("due_date"),
            "when": mapped.get("activation_date"),
            "list_id": mapped.get("list_id"),
            "list_title": mapped.get("project"),
            "area_id": mapped.get("area_id"),
            "area_title": mapped.get("area"),
            "tags": mapped.get("tags"),
            "checklist_items": mapped.get("checklist_items"),
            "completed": mapped.get("completed"),
            "canceled": mapped.get("canceled"),
        },
    )
    updated = _expect_dict(data, "update_todo")
    _log_assignment_hints(mapped, "updated")
    return {
        "success": True,
        "message": f"Updated to-do: {item_id}",
        "id": item_id,
        "status": updated.get("status"),
    }


def handle_update_project(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    mapped = map_parameters(args, limits=runner.limits)
    item_id = _required(mapped, "id", "Project ID is required for update")
    logger.info("Updating project %s", item_id)
    data = runner.run(
        templates.update_project(),
        {
            "id": item_id,
            "title": mapped.get("name"),
            "notes": mapped.get("notes"),
            "deadline": mapped.get("due_date"),
            "when": mapped.get("activation_date"),
            "area_id": mapped.get("area_id"),
            "area_title": mapped.get("area"),
            "tags": mapped.get("tags"),
            "completed": mapped.get("completed"),
            "canceled": mapped.get("canceled"),
        },
    )
    updated = _expect_dict(data, "update_project")
    _log_assignment_hints(mapped, "updated")
    return {
        "success": True,
        "message": f"Updated project: {item_id}",
        "id": item_id,
        "status": updated.get("status"),
    }


def _list_view(name: str, source: str, *, with_containers: bool = True) -> Callable[[ScriptRunner, Dict[str, Any]], Dict[str, Any]]:
    def handler(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Getting %s to-dos", name)
        todos = _expect_list(runner.run(templates.get_list(source, with_containers=with_containers)), f"get_{name}")
        return {"success": True, "count": len(todos), "todos": todos}

    handler.__name__ = f"handle_get_{name}"
    return handler


handle_get_inbox = _list_view("inbox", templates.INBOX, with_containers=False)
handle_get_today = _list_view("today", templates.TODAY)
handle_get_upcoming = _list_view("upcoming", templates.UPCOMING)
handle_get_anytime = _list_view("anytime", templates.ANYTIME)
handle_get_someday = _list_view("someday", templates.SOMEDAY)
handle_get_trash = _list_view("trash", templates.TRASH)


def handle_get_logbook(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    period = validate_string(args.get("period", "7d"), "period")
    days_back = parse_period(period)
    limit = validate_integer(args.get("limit", 50), "limit", 1, 1000)
    logger.info("Getting logbook for %s (limit %d)", period, limit)
    todos = _expect_list(
        runner.run(templates.get_logbook(), {"days_back": days_back, "limit": limit}),
        "get_logbook",
    )
    return {"success": True, "period": period, "count": len(todos), "todos": todos}


def handle_get_todos(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    project_uuid = args.get("project_uuid")
    if project_uuid is not None:
        project_uuid = validate_string(project_uuid, "project_uuid")
    status = validate_enum(args.get("status", "open"), TODO_STATUSES, "status")
    logger.info("Getting to-dos (project=%s, status=%s)", project_uuid, status)
    todos = _expect_list(
        runner.run(templates.get_todos(), {"project_uuid": project_uuid, "status": status}),
        "get_todos",
    )
    return {"success": True, "count": len(todos), "todos": todos}


def handle_get_projects(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    include_items = _flag(args, "include_items")
    projects = _expect_list(runner.run(templates.get_projects(include_items)), "get_projects")
    return {"success": True, "count": len(projects), "projects": projects}


def handle_get_areas(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    include_items = _flag(args, "include_items")
    areas = _expect_list(runner.run(templates.get_areas(include_items)), "get_areas")
    return {"success": True, "count": len(areas), "areas": areas}


def handle_get_tags(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    tags = _expect_list(runner.run(templates.get_tags()), "get_tags")
    return {"success": True, "count": len(tags), "tags": tags}


def handle_get_tagged_items(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    tag_title = validate_string(args.get("tag_title"), "tag_title")
    items = _expect_list(runner.run(templates.get_tagged_items(), {"tag_title": tag_title}), "get_tagged_items")
    return {"success": True, "tag": tag_title, "count": len(items), "items": items}


def handle_search_todos(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    query = validate_string(args.get("query"), "query")
    logger.info("Searching to-dos for %r", query)
    todos = _expect_list(runner.run(templates.search_todos(), {"query": query}), "search_todos")
    return {"success": True, "query": query, "count": len(todos), "todos": todos}


def handle_search_advanced(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    query = validate_string(args.get("query"), "query")
    tags = args.get("tags")
    tags = (
        validate_array(tags, "tags", runner.limits.max_array_length, item_max_length=runner.limits.max_item_length)
        if tags is not None
        else []
    )
    filters = {
        "tags": tags,
        "completed": _flag(args, "completed"),
        "canceled": _flag(args, "canceled"),
        "trashed": _flag(args, "trashed"),
    }
    logger.info("Advanced search for %r with %s", query, filters)
    results = _expect_list(runner.run(templates.search_advanced(), dict(filters, query=query)), "search_advanced")
    return {"success": True, "query": query, "filters": filters, "count": len(results), "results": results}


def handle_get_recent(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    days = validate_integer(args.get("days", 7), "days", 1, 1000)
    items = _expect_list(runner.run(templates.get_recent(), {"days": days}), "get_recent")
    return {"success": True, "days": days, "count": len(items), "items": items}


def handle_show_item(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    item_id = validate_string(args.get("id"), "id")
    logger.info("Showing item %s", item_id)
    item = _expect_dict(runner.run(templates.show_item(), {"id": item_id}), "show_item")
    return {"success": True, "id": item_id, "item": item}


def handle_search_items(runner: ScriptRunner, args: Dict[str, Any]) -> Dict[str, Any]:
    query = validate_string(args.get("query"), "query")
    results = _expect_list(runner.run(templates.search_items(), {"query": query}), "search_items")
    return {"success": True, "query": query, "count": len(results), "results": results}


@dataclass(frozen=True)
class Operation:
    name: str
    handler: Callable[[ScriptRunner, Dict[str, Any]], Dict[str, Any]]
    # Set for lookups by id: a missing item is answered, not raised.
    not_found_code: Optional[str] = None
    subject: str = ""


OPERATIONS: Mapping[str, Operation] = MappingProxyType(
    {
        op.name: op
        for op in (
            Operation("add_todo", handle_add_todo),
            Operation("add_project", handle_add_project),
            Operation("update_todo", handle_update_todo, "TODO_NOT_FOUND", "To-do"),
            Operation("update_project", handle_update_project, "PROJECT_NOT_FOUND", "Project"),
            Operation("get_inbox", handle_get_inbox),
            Operation("get_today", handle_get_today),
            Operation("get_upcoming", handle_get_upcoming),
            Operation("get_anytime", handle_get_anytime),
            Operation("get_someday", handle_get_someday),
            Operation("get_logbook", handle_get_logbook),
            Operation("get_trash", handle_get_trash),
            Operation("get_todos", handle_get_todos),
            Operation("get_projects", handle_get_projects),
            Operation("get_areas", handle_get_areas),
            Operation("get_tags", handle_get_tags),
            Operation("get_tagged_items", handle_get_tagged_items),
            Operation("search_todos", handle_search_todos),
            Operation("search_advanced", handle_search_advanced),
            Operation("get_recent", handle_get_recent),
            Operation("show_item", handle_show_item, "ITEM_NOT_FOUND", "Item"),
            Operation("search_items", handle_search_items),
        )
    }
)

# Answers that mean "the item asked about does not exist", not a failed call.
NOT_FOUND_CODES = frozenset(op.not_found_code for op in OPERATIONS.values() if op.not_found_code)


__all__ = [
    "Operation",
    "OPERATIONS",
    "NOT_FOUND_CODES",
    "TODO_STATUSES",
    "parse_period",
]
