"""Published vocabulary: caller-facing argument names → Things field names.

Things calls the day you plan to work on something its *activation date*
and the day it is due its *due date*. Callers say `when` and `deadline`.
Once a row is published it never changes meaning.

Known quirk: early clients sent `due_date` meaning "when". That alias still
resolves to `activation_date`, even though the internal key `due_date` holds
the deadline. Keep it that way; changing it would silently reschedule items
for those clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

NAMING_CONTRACT_VERSION = "1"

KIND_STRING = "string"
KIND_NOTES = "notes"
KIND_DATE = "date"
KIND_ARRAY = "array"
KIND_FLAG = "flag"


@dataclass(frozen=True)
class FieldMapping:
    user_name: str
    internal_name: str
    kind: str
    meaning: str
    aliases: Tuple[str, ...] = ()

    @property
    def sources(self) -> Tuple[str, ...]:
        """Argument names checked in order; the first present one wins."""
        return (self.user_name,) + self.aliases


NAMING_CONTRACT: Tuple[FieldMapping, ...] = (
    FieldMapping("title", "name", KIND_STRING, "item title", aliases=("name",)),
    FieldMapping("title", "title", KIND_STRING, "title exactly as supplied"),
    FieldMapping("id", "id", KIND_STRING, "Things item id"),
    FieldMapping("notes", "notes", KIND_NOTES, "free-text notes"),
    FieldMapping("when", "activation_date", KIND_DATE, "date work should start", aliases=("due_date",)),
    FieldMapping("deadline", "due_date", KIND_DATE, "date item is due"),
    FieldMapping("area_title", "area", KIND_STRING, "area, by name", aliases=("area",)),
    FieldMapping("area_id", "area_id", KIND_STRING, "area, by id"),
    FieldMapping("list_title", "project", KIND_STRING, "project, by name", aliases=("project",)),
    FieldMapping("list_id", "list_id", KIND_STRING, "project, by id"),
    FieldMapping("tags", "tags", KIND_ARRAY, "tag names"),
    FieldMapping("checklist_items", "checklist_items", KIND_ARRAY, "checklist lines"),
    FieldMapping("todos", "todos", KIND_ARRAY, "to-do titles created inside a new project"),
    FieldMapping("heading", "heading", KIND_STRING, "heading inside a project"),
    FieldMapping("completed", "completed", KIND_FLAG, "mark completed"),
    FieldMapping("canceled", "canceled", KIND_FLAG, "mark canceled"),
)


def internal_name_for(argument: str) -> str:
    """Return the internal key an argument name resolves to.

    Canonical names take precedence over legacy aliases so that `title`
    resolves to `name` and `due_date` resolves to `activation_date`.
    """
    for mapping in NAMING_CONTRACT:
        if mapping.user_name == argument:
            return mapping.internal_name
    for mapping in NAMING_CONTRACT:
        if argument in mapping.aliases:
            return mapping.internal_name
    raise KeyError(argument)


__all__ = [
    "NAMING_CONTRACT_VERSION",
    "NAMING_CONTRACT",
    "FieldMapping",
    "KIND_STRING",
    "KIND_NOTES",
    "KIND_DATE",
    "KIND_ARRAY",
    "KIND_FLAG",
    "internal_name_for",
]
