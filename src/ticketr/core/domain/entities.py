"""
Domain Entities - Tickets and the tasks they own.

A Ticket is the unit of synchronization: it is edited locally, pushed to
the tracker, and pulled back. Tasks are sub-items owned by exactly one
ticket and are always synchronized through their parent.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Task:
    """
    A sub-item of a ticket.

    When pushed, a task inherits its parent's custom fields; any field the
    task sets itself overrides the inherited value.
    """

    title: str = ""
    description: str = ""
    custom_fields: dict[str, str] = field(default_factory=dict)
    acceptance_criteria: list[str] = field(default_factory=list)
    jira_id: str = ""
    source_line: int = 0

    def copy(self) -> Task:
        """Return an independent deep copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "jira_id": self.jira_id,
            "title": self.title,
            "description": self.description,
            "fields": dict(self.custom_fields),
            "acceptance_criteria": list(self.acceptance_criteria),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Create a task from a dictionary produced by to_dict()."""
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            custom_fields={
                str(k): _field_text(v) for k, v in (data.get("fields") or {}).items()
            },
            acceptance_criteria=[str(ac) for ac in data.get("acceptance_criteria") or []],
            jira_id=str(data.get("jira_id") or ""),
        )


@dataclass
class Ticket:
    """
    A work item synchronized with the remote tracker.

    An empty jira_id means the ticket has not been created remotely yet;
    a non-empty jira_id means it exists remotely under that key.
    source_line is diagnostic only and never participates in comparisons
    of content.
    """

    title: str = ""
    description: str = ""
    custom_fields: dict[str, str] = field(default_factory=dict)
    acceptance_criteria: list[str] = field(default_factory=list)
    jira_id: str = ""
    tasks: list[Task] = field(default_factory=list)
    source_line: int = 0

    def copy(self) -> Ticket:
        """Return an independent deep copy, tasks included."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "jira_id": self.jira_id,
            "title": self.title,
            "description": self.description,
            "fields": dict(self.custom_fields),
            "acceptance_criteria": list(self.acceptance_criteria),
            "tasks": [task.to_dict() for task in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ticket:
        """Create a ticket from a dictionary produced by to_dict()."""
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            custom_fields={
                str(k): _field_text(v) for k, v in (data.get("fields") or {}).items()
            },
            acceptance_criteria=[str(ac) for ac in data.get("acceptance_criteria") or []],
            jira_id=str(data.get("jira_id") or ""),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
        )


def _field_text(value: Any) -> str:
    """Render a loosely typed field value (YAML may yield ints, bools, lists) as text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)
