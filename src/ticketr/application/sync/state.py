"""
Sync State - Remembers what every ticket looked like at its last sync.

For each remote ticket id the store keeps two content hashes:

- local_hash: the hash of the local ticket at the last sync point
- remote_hash: the hash of the remote ticket at the last sync point

Comparing fresh hashes against these tells the pull reconciler which side
changed, and lets push skip tickets nobody touched.

The whole table is persisted as a single JSON file:

    {
      "PROJ-1": {"local_hash": "...", "remote_hash": "..."}
    }
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import StateError
from ticketr.core.ports.config_provider import DEFAULT_STATE_FILE


@dataclass
class TicketState:
    """Hashes recorded for one ticket at its last conflict-free sync."""

    local_hash: str = ""
    remote_hash: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {"local_hash": self.local_hash, "remote_hash": self.remote_hash}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketState:
        """Create from a dictionary produced by to_dict()."""
        return cls(
            local_hash=str(data.get("local_hash", "")),
            remote_hash=str(data.get("remote_hash", "")),
        )


def calculate_hash(ticket: Ticket | Task) -> str:
    """
    Compute the content hash of a ticket.

    Covers title, description, acceptance criteria, custom fields (sorted
    by name) and, for tickets, every task in order. Remote ids and source
    line numbers are not content and are excluded. Every value is length
    prefixed so that adjacent values can never run together.

    Returns:
        Lowercase hex SHA-256 digest.
    """
    digest = hashlib.sha256()
    _hash_item(digest, ticket)

    tasks = getattr(ticket, "tasks", None) or []
    _write(digest, f"tasks:{len(tasks)}")
    for task in tasks:
        _hash_item(digest, task)

    return digest.hexdigest()


def _hash_item(digest: Any, item: Ticket | Task) -> None:
    _write(digest, item.title)
    _write(digest, item.description)

    _write(digest, f"ac:{len(item.acceptance_criteria)}")
    for criterion in item.acceptance_criteria:
        _write(digest, criterion)

    _write(digest, f"fields:{len(item.custom_fields)}")
    for key in sorted(item.custom_fields):
        _write(digest, key)
        _write(digest, item.custom_fields[key])


def _write(digest: Any, value: str) -> None:
    data = value.encode("utf-8")
    digest.update(f"{len(data)}:".encode("ascii"))
    digest.update(data)


class StateStore:
    """
    Persistent table of TicketState keyed by remote ticket id.

    One run should load once, mutate, and save once. The store is not safe
    for concurrent writers; callers serialize runs against the same file.
    """

    def __init__(self, state_file: str | Path = DEFAULT_STATE_FILE):
        """
        Initialize the store.

        Args:
            state_file: Path of the JSON file backing the table.
        """
        self.state_file = Path(state_file)
        self._states: dict[str, TicketState] = {}
        self.logger = logging.getLogger("StateStore")

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Replace the in-memory table with the contents of the state file.

        A missing file is not an error: the table is simply empty.

        Raises:
            StateError: If the file exists but cannot be read or parsed.
        """
        if not self.state_file.exists():
            self.logger.debug(f"No state file at {self.state_file}, starting empty")
            self._states = {}
            return

        try:
            raw = json.loads(self.state_file.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StateError(f"Failed to read state file {self.state_file}", cause=e) from e

        if not isinstance(raw, dict):
            raise StateError(f"State file {self.state_file} must contain a JSON object")

        self._states = {
            str(ticket_id): TicketState.from_dict(entry)
            for ticket_id, entry in raw.items()
            if isinstance(entry, dict)
        }
        self.logger.debug(f"Loaded state for {len(self._states)} tickets")

    def save(self) -> None:
        """
        Write the whole table to the state file, creating parent directories.

        Raises:
            StateError: If the file cannot be written.
        """
        data = {ticket_id: state.to_dict() for ticket_id, state in self._states.items()}
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StateError(f"Failed to write state file {self.state_file}", cause=e) from e
        self.logger.debug(f"Saved state for {len(self._states)} tickets")

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    def calculate_hash(self, ticket: Ticket) -> str:
        """Compute the content hash of a ticket."""
        return calculate_hash(ticket)

    def has_changed(self, ticket: Ticket) -> bool:
        """
        Check if a ticket differs from its last synced local version.

        Tickets without a remote id, and tickets never synced, always count
        as changed.
        """
        if not ticket.jira_id:
            return True
        stored = self._states.get(ticket.jira_id)
        if stored is None:
            return True
        return calculate_hash(ticket) != stored.local_hash

    # -------------------------------------------------------------------------
    # Table Access
    # -------------------------------------------------------------------------

    def get_stored_state(self, ticket_id: str) -> TicketState | None:
        """Get the recorded state for a ticket id, or None if never synced."""
        return self._states.get(ticket_id)

    def set_stored_state(self, ticket_id: str, state: TicketState) -> None:
        """Record a state for a ticket id, replacing any previous entry."""
        self._states[ticket_id] = TicketState(state.local_hash, state.remote_hash)

    def update_hash(self, ticket: Ticket) -> None:
        """Mark a ticket as in sync: both hashes become its current hash."""
        if not ticket.jira_id:
            return
        digest = calculate_hash(ticket)
        self._states[ticket.jira_id] = TicketState(local_hash=digest, remote_hash=digest)

    def update_local_hash(self, ticket: Ticket) -> None:
        """Record the ticket's current hash as local only; remote_hash is kept."""
        if not ticket.jira_id:
            return
        stored = self._states.get(ticket.jira_id) or TicketState()
        self._states[ticket.jira_id] = TicketState(
            local_hash=calculate_hash(ticket),
            remote_hash=stored.remote_hash,
        )

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, ticket_id: object) -> bool:
        return ticket_id in self._states

    def ticket_ids(self) -> list[str]:
        """Get every ticket id with recorded state."""
        return list(self._states)
