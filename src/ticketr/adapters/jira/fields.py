"""
Jira field mappings - translate ticket custom fields to and from Jira fields.

Tickets store every custom field as text under a human readable name
("Priority", "Story Points"). A FieldMapping names the Jira field behind
it and how the text is shaped on the wire.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class FieldType:
    """Wire shapes a mapped field can take."""

    STRING = "string"  # "value"
    NUMBER = "number"  # 5
    ARRAY = "array"  # ["a", "b"]
    NAME = "name"  # {"name": "value"}
    KEY = "key"  # {"key": "value"}
    ACCOUNT = "account"  # {"accountId": "value"}
    NAME_ARRAY = "name_array"  # [{"name": "a"}, {"name": "b"}]

    ALL = frozenset({STRING, NUMBER, ARRAY, NAME, KEY, ACCOUNT, NAME_ARRAY})


# Jira fields that carry the ticket title/description rather than custom fields
CORE_FIELDS = frozenset({"summary", "description"})


@dataclass(frozen=True)
class FieldMapping:
    """A human field name bound to a Jira field id and wire shape."""

    name: str
    field_id: str
    field_type: str = FieldType.STRING

    @classmethod
    def from_config(cls, name: str, raw: Any) -> FieldMapping:
        """
        Build a mapping from config: either a field id string or a mapping
        with "id" and optional "type".

        Raises:
            ValueError: If the entry is malformed.
        """
        if isinstance(raw, str):
            return cls(name, raw, DEFAULT_TYPES.get(raw, FieldType.STRING))
        if isinstance(raw, dict) and isinstance(raw.get("id"), str):
            field_type = raw.get("type") or DEFAULT_TYPES.get(raw["id"], FieldType.STRING)
            if field_type not in FieldType.ALL:
                raise ValueError(f"Unknown field type '{field_type}' for field '{name}'")
            return cls(name, raw["id"], field_type)
        raise ValueError(f"Invalid field mapping for '{name}': {raw!r}")

    def to_jira(self, value: str) -> Any:
        """Convert ticket text to the Jira wire value."""
        if self.field_type == FieldType.NUMBER:
            if not value.strip():
                return None
            try:
                number = float(value)
            except ValueError:
                return value
            return int(number) if number.is_integer() else number
        if self.field_type in (FieldType.ARRAY, FieldType.NAME_ARRAY):
            items = [part.strip() for part in value.split(",") if part.strip()]
            if self.field_type == FieldType.NAME_ARRAY:
                return [{"name": item} for item in items]
            return items
        if self.field_type == FieldType.NAME:
            return {"name": value} if value else None
        if self.field_type == FieldType.KEY:
            return {"key": value} if value else None
        if self.field_type == FieldType.ACCOUNT:
            return {"accountId": value} if value else None
        return value

    def from_jira(self, value: Any) -> str | None:
        """Convert a Jira wire value to ticket text, or None when unset."""
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return _number_text(value)
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            items = [text for text in (_object_text(item) for item in value) if text]
            return ", ".join(items) if items else None
        if isinstance(value, dict):
            if self.field_type == FieldType.ACCOUNT and value.get("accountId"):
                return str(value["accountId"])
            if self.field_type == FieldType.KEY and value.get("key"):
                return str(value["key"])
            return _object_text(value)
        return str(value)


DEFAULT_TYPES: dict[str, str] = {
    "issuetype": FieldType.NAME,
    "project": FieldType.KEY,
    "parent": FieldType.KEY,
    "priority": FieldType.NAME,
    "assignee": FieldType.ACCOUNT,
    "reporter": FieldType.ACCOUNT,
    "labels": FieldType.ARRAY,
    "components": FieldType.NAME_ARRAY,
    "fixVersions": FieldType.NAME_ARRAY,
}

DEFAULT_FIELD_MAPPINGS: dict[str, Any] = {
    "Type": "issuetype",
    "Project": "project",
    "Parent": "parent",
    "Assignee": "assignee",
    "Reporter": "reporter",
    "Priority": "priority",
    "Labels": "labels",
    "Components": "components",
    "Fix Version": "fixVersions",
    "Sprint": "customfield_10020",
    "Story Points": {"id": "customfield_10010", "type": FieldType.NUMBER},
}


def build_field_mappings(raw: dict[str, Any] | None = None) -> dict[str, FieldMapping]:
    """
    Merge configured mappings over the defaults.

    Title and description are never mapped; they travel as summary and
    description.
    """
    merged = dict(DEFAULT_FIELD_MAPPINGS)
    merged.update(raw or {})

    mappings = {}
    for name, entry in merged.items():
        mapping = FieldMapping.from_config(name, entry)
        if mapping.field_id in CORE_FIELDS:
            continue
        mappings[name] = mapping
    return mappings


def _number_text(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _object_text(value: Any) -> str:
    if isinstance(value, dict):
        for key in ("name", "displayName", "key", "value"):
            if value.get(key):
                return str(value[key])
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _number_text(value)
    return "" if value is None else str(value)
