"""
Tests for bulk operation validation and change values.
"""

import math

import pytest

from ticketr.core.domain import (
    MAX_TICKET_COUNT,
    BulkAction,
    BulkOperation,
    BulkOperationResult,
    ChangeKind,
    ChangeValue,
    is_valid_ticket_id,
)
from ticketr.core.exceptions import BulkValidationError


def ids(count: int) -> list[str]:
    return [f"PROJ-{i}" for i in range(1, count + 1)]


# =============================================================================
# Ticket ID Format
# =============================================================================


class TestTicketIdFormat:
    """Tests for is_valid_ticket_id."""

    @pytest.mark.parametrize("ticket_id", ["PROJ-1", "A-0", "ABC-123456"])
    def test_valid(self, ticket_id):
        assert is_valid_ticket_id(ticket_id)

    @pytest.mark.parametrize(
        "ticket_id",
        ["proj-1", "PROJ 1", "PROJ-", "-1", "PROJ1-1", "PROJ-1 ", "PROJ-1\nX", ""],
    )
    def test_invalid(self, ticket_id):
        assert not is_valid_ticket_id(ticket_id)


# =============================================================================
# BulkOperation.validate
# =============================================================================


class TestBulkOperationValidate:
    """Tests for BulkOperation.validate."""

    def test_string_action_is_normalized(self):
        operation = BulkOperation("update", ["PROJ-1"], {"Priority": "High"})

        resolved = operation.validate()

        assert operation.action is BulkAction.UPDATE
        assert resolved == {"Priority": ChangeValue(ChangeKind.STRING, "High")}

    def test_invalid_action(self):
        operation = BulkOperation("archive", ["PROJ-1"], {"a": "b"})

        with pytest.raises(BulkValidationError, match="invalid action"):
            operation.validate()

    def test_empty_ids_rejected(self):
        with pytest.raises(BulkValidationError, match="ticket_ids cannot be empty"):
            BulkOperation(BulkAction.DELETE, []).validate()

    def test_one_id_accepted(self):
        BulkOperation(BulkAction.DELETE, ids(1)).validate()

    def test_max_ids_accepted(self):
        BulkOperation(BulkAction.DELETE, ids(MAX_TICKET_COUNT)).validate()

    def test_over_max_ids_rejected(self):
        with pytest.raises(BulkValidationError, match="cannot exceed 100 tickets: found 101"):
            BulkOperation(BulkAction.DELETE, ids(101)).validate()

    def test_empty_id_string_rejected(self):
        with pytest.raises(BulkValidationError, match=r"ticket_ids\[1\] cannot be an empty string"):
            BulkOperation(BulkAction.DELETE, ["PROJ-1", ""]).validate()

    def test_lowercase_id_rejected(self):
        with pytest.raises(BulkValidationError, match=r"ticket_ids\[0\]: invalid Jira ID format: proj-1"):
            BulkOperation(BulkAction.DELETE, ["proj-1"]).validate()

    def test_id_with_space_rejected(self):
        with pytest.raises(BulkValidationError, match="invalid Jira ID format"):
            BulkOperation(BulkAction.DELETE, ["PROJ 1"]).validate()

    def test_duplicate_id_rejected(self):
        with pytest.raises(BulkValidationError, match=r"ticket_ids\[2\]: duplicate ticket id: PROJ-1"):
            BulkOperation(BulkAction.DELETE, ["PROJ-1", "PROJ-2", "PROJ-1"]).validate()

    def test_update_requires_changes(self):
        with pytest.raises(BulkValidationError, match="changes are required for 'update' action"):
            BulkOperation(BulkAction.UPDATE, ["PROJ-1"], {}).validate()

    def test_move_without_changes_passes_validation(self):
        # The parent requirement is checked by the executor
        BulkOperation(BulkAction.MOVE, ["PROJ-1"]).validate()

    def test_unresolvable_change_rejected(self):
        operation = BulkOperation(BulkAction.UPDATE, ["PROJ-1"], {"Points": float("nan")})

        with pytest.raises(BulkValidationError, match=r"changes\[Points\]"):
            operation.validate()

    def test_null_change_rejected(self):
        operation = BulkOperation(BulkAction.UPDATE, ["PROJ-1"], {"Assignee": None})

        with pytest.raises(BulkValidationError, match="null"):
            operation.validate()


# =============================================================================
# ChangeValue
# =============================================================================


class TestChangeValue:
    """Tests for ChangeValue resolution and text rendering."""

    def test_string(self):
        value = ChangeValue.of("High")
        assert value.kind is ChangeKind.STRING
        assert value.is_string
        assert value.as_text() == "High"

    def test_bool_before_number(self):
        assert ChangeValue.of(True).kind is ChangeKind.BOOLEAN
        assert ChangeValue.of(True).as_text() == "true"
        assert ChangeValue.of(False).as_text() == "false"

    def test_integral_float_renders_as_int(self):
        assert ChangeValue.of(5.0).as_text() == "5"
        assert ChangeValue.of(2.5).as_text() == "2.5"
        assert ChangeValue.of(8).as_text() == "8"

    def test_structured_is_canonical_json(self):
        value = ChangeValue.of({"b": 1, "a": [1, 2]})
        assert value.kind is ChangeKind.STRUCTURED
        assert value.as_text() == '{"a":[1,2],"b":1}'

    @pytest.mark.parametrize("raw", [None, math.inf, -math.inf, math.nan, object(), {"x": object()}])
    def test_rejected(self, raw):
        with pytest.raises(ValueError):
            ChangeValue.of(raw)

    def test_of_is_idempotent(self):
        value = ChangeValue.of("x")
        assert ChangeValue.of(value) is value


# =============================================================================
# BulkOperationResult
# =============================================================================


class TestBulkOperationResult:
    """Tests for result accounting."""

    def test_accounting(self):
        result = BulkOperationResult()
        result.record_success("PROJ-1")
        result.record_failure("PROJ-2", "boom")

        assert result.success_count == 1
        assert result.failure_count == 1
        assert result.processed_count == 2
        assert result.successful_tickets == ["PROJ-1"]
        assert result.failed_tickets == ["PROJ-2"]
        assert result.errors == {"PROJ-2": "boom"}

    def test_to_dict(self):
        result = BulkOperationResult()
        result.record_success("PROJ-1")

        assert result.to_dict() == {
            "success_count": 1,
            "failure_count": 0,
            "successful_tickets": ["PROJ-1"],
            "failed_tickets": [],
            "errors": {},
        }
