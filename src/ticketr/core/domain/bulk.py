"""
Bulk operation model - requests and results for multi-ticket mutations.

A BulkOperation is an ephemeral request: it is validated, executed once by
the BulkOperationExecutor, and discarded. Change values are resolved into
ChangeValue instances during validation so the executor never has to guess
how to render an arbitrary value.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ticketr.core.exceptions import BulkValidationError


MIN_TICKET_COUNT = 1
MAX_TICKET_COUNT = 100

# Uppercase project key, hyphen, digits (PROJ-123). Rejecting anything else
# keeps ticket ids safe to interpolate into search queries.
JIRA_ID_PATTERN = re.compile(r"[A-Z]+-[0-9]+")


def is_valid_ticket_id(ticket_id: str) -> bool:
    """Check if a string is a well-formed tracker ticket id."""
    return bool(JIRA_ID_PATTERN.fullmatch(ticket_id))


class BulkAction(Enum):
    """Actions a bulk operation can perform."""

    UPDATE = "update"
    MOVE = "move"
    DELETE = "delete"

    @classmethod
    def from_string(cls, value: str) -> BulkAction:
        """
        Parse an action name.

        Raises:
            BulkValidationError: If the name is not a known action.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise BulkValidationError(
                "invalid action: must be one of 'update', 'move', or 'delete'"
            ) from e


class ChangeKind(Enum):
    """The shape of a bulk change value."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class ChangeValue:
    """
    A tagged field value for bulk updates.

    Tickets store custom fields as text, so every value must have exactly
    one text rendering; as_text() provides it.
    """

    kind: ChangeKind
    value: Any

    @classmethod
    def of(cls, raw: Any) -> ChangeValue:
        """
        Resolve an arbitrary value into a ChangeValue.

        Raises:
            ValueError: If the value has no text rendering (None, NaN,
                non-JSON-serializable objects).
        """
        if isinstance(raw, ChangeValue):
            return raw
        if raw is None:
            raise ValueError("value cannot be null")
        if isinstance(raw, str):
            return cls(ChangeKind.STRING, raw)
        # bool is an int subclass, check it first
        if isinstance(raw, bool):
            return cls(ChangeKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and not math.isfinite(raw):
                raise ValueError(f"number must be finite, got {raw!r}")
            return cls(ChangeKind.NUMBER, raw)
        if isinstance(raw, (dict, list, tuple)):
            try:
                json.dumps(raw)
            except (TypeError, ValueError) as e:
                raise ValueError(f"structured value is not serializable: {e}") from e
            return cls(ChangeKind.STRUCTURED, raw)
        raise ValueError(f"unsupported value type: {type(raw).__name__}")

    def as_text(self) -> str:
        """Render the value as the text stored in a ticket field."""
        if self.kind == ChangeKind.STRING:
            return self.value
        if self.kind == ChangeKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind == ChangeKind.NUMBER:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        return json.dumps(self.value, sort_keys=True, separators=(",", ":"))

    @property
    def is_string(self) -> bool:
        return self.kind == ChangeKind.STRING


@dataclass
class BulkOperation:
    """
    A request to apply one action to many tickets.

    Attributes:
        action: What to do (update, move or delete). Plain strings are
            accepted and parsed during validation.
        ticket_ids: Target ticket ids, processed in this order.
        changes: Field name to value. Required for update; move reads the
            target parent from the "parent" key; ignored for delete.
    """

    action: BulkAction | str
    ticket_ids: list[str] = field(default_factory=list)
    changes: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> dict[str, ChangeValue]:
        """
        Validate the request and resolve its changes.

        No remote call is made. On success the action is normalized to a
        BulkAction and the resolved changes are returned.

        Raises:
            BulkValidationError: Describing the first rule that failed.
        """
        action = self._validate_action()
        self._validate_ticket_ids()
        resolved = self._resolve_changes()

        if action == BulkAction.UPDATE and not resolved:
            raise BulkValidationError("changes are required for 'update' action")

        self.action = action
        return resolved

    def _validate_action(self) -> BulkAction:
        if isinstance(self.action, BulkAction):
            return self.action
        if isinstance(self.action, str):
            return BulkAction.from_string(self.action)
        raise BulkValidationError(
            "invalid action: must be one of 'update', 'move', or 'delete'"
        )

    def _validate_ticket_ids(self) -> None:
        count = len(self.ticket_ids)
        if count < MIN_TICKET_COUNT:
            raise BulkValidationError(
                f"ticket_ids cannot be empty: must contain at least {MIN_TICKET_COUNT} ticket"
            )
        if count > MAX_TICKET_COUNT:
            raise BulkValidationError(
                f"ticket_ids cannot exceed {MAX_TICKET_COUNT} tickets: found {count}"
            )

        seen: set[str] = set()
        for i, ticket_id in enumerate(self.ticket_ids):
            if not ticket_id:
                raise BulkValidationError(f"ticket_ids[{i}] cannot be an empty string")
            if not isinstance(ticket_id, str) or not is_valid_ticket_id(ticket_id):
                raise BulkValidationError(
                    f"ticket_ids[{i}]: invalid Jira ID format: {ticket_id} "
                    "(expected format: PROJECT-123)"
                )
            if ticket_id in seen:
                raise BulkValidationError(f"ticket_ids[{i}]: duplicate ticket id: {ticket_id}")
            seen.add(ticket_id)

    def _resolve_changes(self) -> dict[str, ChangeValue]:
        resolved: dict[str, ChangeValue] = {}
        for name, raw in (self.changes or {}).items():
            if not name:
                raise BulkValidationError("changes cannot contain an empty field name")
            try:
                resolved[name] = ChangeValue.of(raw)
            except ValueError as e:
                raise BulkValidationError(f"changes[{name}]: {e}") from e
        return resolved


@dataclass
class BulkOperationResult:
    """
    Outcome of one bulk operation.

    Owned by a single execution; every processed ticket lands in exactly
    one of successful_tickets / failed_tickets, and every failed ticket
    has an entry in errors.
    """

    success_count: int = 0
    failure_count: int = 0
    successful_tickets: list[str] = field(default_factory=list)
    failed_tickets: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def processed_count(self) -> int:
        return self.success_count + self.failure_count

    def record_success(self, ticket_id: str) -> None:
        """Record a ticket that was processed successfully."""
        self.success_count += 1
        self.successful_tickets.append(ticket_id)

    def record_failure(self, ticket_id: str, error: str) -> None:
        """Record a ticket that failed, with its error message."""
        self.failure_count += 1
        self.failed_tickets.append(ticket_id)
        self.errors[ticket_id] = error

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "successful_tickets": list(self.successful_tickets),
            "failed_tickets": list(self.failed_tickets),
            "errors": dict(self.errors),
        }
