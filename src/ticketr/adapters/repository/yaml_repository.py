"""
YAML Ticket Repository - Local ticket file stored as YAML.

Example file:

```yaml
tickets:
  - jira_id: PROJ-12       # empty or missing until pushed
    title: "Login page"
    description: |
      Users sign in with email and password.
    fields:
      Priority: High
      Story Points: 5
    acceptance_criteria:
      - "Wrong password shows an error"
    tasks:
      - title: "Build form"
        fields:
          Assignee: 5b10ac8d82e05b22cc7d4ef5
      - "Write tests"       # shorthand: title only
```
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import LocalFileNotFoundError, RepositoryError
from ticketr.core.ports.ticket_repository import TicketRepositoryPort


class YamlTicketRepository(TicketRepositoryPort):
    """Reads and writes tickets in a YAML document with a 'tickets' list."""

    ROOT_KEY = "tickets"

    def __init__(self) -> None:
        self.logger = logging.getLogger("YamlTicketRepository")

    # -------------------------------------------------------------------------
    # TicketRepositoryPort Implementation
    # -------------------------------------------------------------------------

    def get_tickets(self, path: str) -> list[Ticket]:
        content = self._read(path)
        data = self._load_yaml(content, path)

        entries = data.get(self.ROOT_KEY) or []
        if not isinstance(entries, list):
            raise RepositoryError(f"'{self.ROOT_KEY}' must be a list in {path}")

        lines = self._entry_lines(content)
        tickets = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise RepositoryError(f"{self.ROOT_KEY}[{index}] must be a mapping in {path}")
            # Tasks accept a title-only shorthand, so they are parsed separately
            ticket = Ticket.from_dict({k: v for k, v in entry.items() if k != "tasks"})
            ticket.tasks = self._parse_tasks(entry.get("tasks") or [], index, path)
            ticket.source_line = lines[index] if index < len(lines) else 0
            tickets.append(ticket)

        self.logger.debug(f"Loaded {len(tickets)} tickets from {path}")
        return tickets

    def save_tickets(self, path: str, tickets: list[Ticket]) -> None:
        document = {self.ROOT_KEY: [self._dump_ticket(ticket) for ticket in tickets]}
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(suffix=".tmp", prefix=f".{target.name}.", dir=target.parent)
        except OSError as e:
            raise RepositoryError(f"Failed to write {path}", cause=e) from e

        # Readers never see a partially written file
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yaml.safe_dump(
                    document,
                    handle,
                    sort_keys=False,
                    allow_unicode=True,
                    default_flow_style=False,
                )
            if target.exists():
                os.chmod(temp_path, target.stat().st_mode & 0o777)
            os.replace(temp_path, target)
        except (OSError, yaml.YAMLError) as e:
            Path(temp_path).unlink(missing_ok=True)
            raise RepositoryError(f"Failed to write {path}", cause=e) from e

        self.logger.debug(f"Saved {len(tickets)} tickets to {path}")

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, path: str) -> list[str]:
        """Check a ticket file without raising; returns a list of problems."""
        try:
            tickets = self.get_tickets(path)
        except RepositoryError as e:
            return [str(e)]

        errors = []
        for index, ticket in enumerate(tickets):
            if not ticket.title:
                errors.append(f"{self.ROOT_KEY}[{index}]: missing required field 'title'")
        return errors

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _read(self, path: str) -> str:
        source = Path(path)
        if not source.exists():
            raise LocalFileNotFoundError(path)
        try:
            return source.read_text(encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Failed to read {path}", cause=e) from e

    def _load_yaml(self, content: str, path: str) -> dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise RepositoryError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RepositoryError(f"YAML root must be a mapping in {path}")
        return data

    def _entry_lines(self, content: str) -> list[int]:
        """1-based line of every entry of the tickets list."""
        try:
            root = yaml.compose(content, Loader=yaml.SafeLoader)
        except yaml.YAMLError:
            return []
        if not isinstance(root, yaml.MappingNode):
            return []
        for key_node, value_node in root.value:
            if key_node.value == self.ROOT_KEY and isinstance(value_node, yaml.SequenceNode):
                return [item.start_mark.line + 1 for item in value_node.value]
        return []

    def _parse_tasks(self, entries: Any, ticket_index: int, path: str) -> list[Task]:
        if not isinstance(entries, list):
            raise RepositoryError(
                f"{self.ROOT_KEY}[{ticket_index}].tasks must be a list in {path}"
            )
        tasks = []
        for entry in entries:
            if isinstance(entry, str):
                tasks.append(Task(title=entry))
            elif isinstance(entry, dict):
                tasks.append(Task.from_dict(entry))
            else:
                raise RepositoryError(
                    f"{self.ROOT_KEY}[{ticket_index}].tasks entries must be mappings in {path}"
                )
        return tasks

    def _dump_ticket(self, ticket: Ticket) -> dict[str, Any]:
        data = ticket.to_dict()
        data["tasks"] = [self._compact(task.to_dict()) for task in ticket.tasks]
        return self._compact(data)

    @staticmethod
    def _compact(data: dict[str, Any]) -> dict[str, Any]:
        """Drop empty values, keeping the title so every entry stays readable."""
        return {key: value for key, value in data.items() if value or key == "title"}
