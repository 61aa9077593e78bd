"""Unit tests for argument mapping and the naming contract."""

import pytest

from config import ServerLimits
from core.errors import InvalidParamsError
from core.naming import NAMING_CONTRACT, internal_name_for
from core.parameters import map_parameters


class TestNamingContract:
    """Tests for the published argument vocabulary."""

    def test_canonical_names_win_over_aliases(self):
        assert internal_name_for("title") == "name"
        assert internal_name_for("when") == "activation_date"
        assert internal_name_for("deadline") == "due_date"

    def test_legacy_due_date_alias_means_when(self):
        assert internal_name_for("due_date") == internal_name_for("when")

    def test_location_aliases(self):
        assert internal_name_for("project") == "project"
        assert internal_name_for("list_title") == "project"
        assert internal_name_for("area") == "area"
        assert internal_name_for("area_title") == "area"

    def test_unknown_argument(self):
        with pytest.raises(KeyError):
            internal_name_for("priority")

    def test_every_mapping_has_a_meaning(self):
        assert all(mapping.meaning for mapping in NAMING_CONTRACT)


class TestMapParameters:
    """Tests for map_parameters."""

    def test_title_and_when(self):
        mapped = map_parameters({"title": "Buy milk", "when": "2025-01-10"})
        assert mapped == {"name": "Buy milk", "title": "Buy milk", "activation_date": "2025-01-10"}
        assert "due_date" not in mapped

    def test_deadline_maps_to_due_date(self):
        mapped = map_parameters({"title": "Taxes", "deadline": "2025-04-15"})
        assert mapped["due_date"] == "2025-04-15"
        assert "activation_date" not in mapped

    def test_legacy_name_and_due_date_resolve_like_title_and_when(self):
        legacy = map_parameters({"name": "X", "due_date": "2024-01-01"})
        canonical = map_parameters({"title": "X", "when": "2024-01-01"})
        assert legacy["activation_date"] == canonical["activation_date"]
        assert legacy["name"] == canonical["name"]
        assert "due_date" not in legacy

    def test_title_takes_precedence_over_name(self):
        mapped = map_parameters({"title": "New", "name": "Old"})
        assert mapped["name"] == "New"

    def test_when_takes_precedence_over_legacy_due_date(self):
        mapped = map_parameters({"when": "2025-01-10", "due_date": "2025-02-01"})
        assert mapped["activation_date"] == "2025-01-10"

    def test_list_title_takes_precedence_over_project(self):
        mapped = map_parameters({"list_title": "Work", "project": "Home"})
        assert mapped["project"] == "Work"

    def test_area_title_takes_precedence_over_area(self):
        mapped = map_parameters({"area_title": "Personal", "area": "Work"})
        assert mapped["area"] == "Personal"

    def test_mapping_is_idempotent(self):
        args = {"title": "Plan trip", "when": "2025-03-01", "deadline": "2025-03-15"}
        assert map_parameters(args) == map_parameters(args)

    def test_absent_and_null_fields_are_omitted(self):
        mapped = map_parameters({"title": "T", "notes": None, "tags": None, "area_id": None})
        assert None not in mapped.values()
        assert set(mapped) == {"name", "title"}

    def test_flags_only_when_supplied(self):
        assert "completed" not in map_parameters({"id": "abc"})
        assert map_parameters({"id": "abc", "completed": True})["completed"] is True
        assert map_parameters({"id": "abc", "canceled": 0})["canceled"] is False

    def test_explicit_null_flag_is_false(self):
        assert map_parameters({"id": "abc", "completed": None})["completed"] is False

    def test_empty_tags_are_kept(self):
        assert map_parameters({"id": "abc", "tags": []})["tags"] == []

    def test_tags_must_be_array(self):
        with pytest.raises(InvalidParamsError, match="tags must be an array"):
            map_parameters({"title": "T", "tags": "not-an-array"})

    def test_alias_errors_name_the_supplied_field(self):
        with pytest.raises(InvalidParamsError) as exc:
            map_parameters({"due_date": "2025-13-01"})
        assert exc.value.field_name == "due_date"

    def test_notes_use_notes_limit(self):
        notes = "n" * 5000
        assert map_parameters({"notes": notes})["notes"] == notes

    def test_limits_are_honoured(self):
        limits = ServerLimits(max_string_length=10)
        with pytest.raises(InvalidParamsError, match="title cannot exceed 10 characters"):
            map_parameters({"title": "x" * 11}, limits=limits)

    def test_extra_fields_are_merged_last(self):
        mapped = map_parameters({"title": "T"}, {"status": "open", "skip": None})
        assert mapped["status"] == "open"
        assert "skip" not in mapped

    def test_none_arguments_map_to_empty(self):
        assert map_parameters(None) == {}

    def test_non_object_arguments(self):
        with pytest.raises(InvalidParamsError, match="arguments must be an object"):
            map_parameters(["title"])

    def test_unknown_arguments_are_ignored(self):
        assert map_parameters({"priority": "high"}) == {}
