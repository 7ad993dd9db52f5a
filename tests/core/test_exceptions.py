"""
Tests for the exception hierarchy.
"""

import pytest

from ticketr.core.domain import BulkOperationResult
from ticketr.core.exceptions import (
    AuthenticationError,
    BulkAllFailedError,
    BulkOperationError,
    BulkPartialFailureError,
    BulkUnsupportedActionError,
    BulkValidationError,
    ConfigError,
    ConflictDetectedError,
    ConflictResolutionError,
    LocalFileNotFoundError,
    OperationCancelledError,
    RepositoryError,
    SyncError,
    TicketrError,
    TrackerError,
    UnknownStrategyError,
    UnresolvableConflictError,
    UnsupportedOperationError,
    ValidationError,
)


class TestTicketrError:
    """Tests for the base error."""

    def test_message(self):
        assert str(TicketrError("boom")) == "boom"

    def test_cause_is_appended(self):
        err = TicketrError("outer", cause=ValueError("inner"))

        assert err.cause.args == ("inner",)
        assert str(err) == "outer (caused by: inner)"


class TestHierarchy:
    """Tests that errors can be caught by their family."""

    @pytest.mark.parametrize(
        "error, family",
        [
            (AuthenticationError("x"), TrackerError),
            (UnsupportedOperationError("delete"), TrackerError),
            (LocalFileNotFoundError("a.yaml"), RepositoryError),
            (BulkValidationError("x"), ValidationError),
            (UnknownStrategyError("x"), SyncError),
            (UnresolvableConflictError(["Title"]), SyncError),
            (BulkUnsupportedActionError("x"), BulkAllFailedError),
            (BulkAllFailedError("x"), BulkOperationError),
            (ConfigError("x"), TicketrError),
        ],
    )
    def test_family(self, error, family):
        assert isinstance(error, family)
        assert isinstance(error, TicketrError)


class TestMessages:
    """Tests for the messages of structured errors."""

    def test_unsupported_operation(self):
        err = UnsupportedOperationError("delete", "Jira")

        assert str(err) == "delete operation not supported by Jira adapter"
        assert err.operation == "delete"
        assert err.tracker == "Jira"

    def test_unresolvable_conflict_lists_fields(self):
        err = UnresolvableConflictError(["Title", "CustomFields[Priority]"])

        assert err.fields == ["Title", "CustomFields[Priority]"]
        assert "fields [Title, CustomFields[Priority]] have conflicting changes" in str(err)

    def test_conflict_detected_names_tickets(self):
        err = ConflictDetectedError(["PROJ-1", "PROJ-2"], result="partial")

        assert err.conflicts == ["PROJ-1", "PROJ-2"]
        assert err.result == "partial"
        assert str(err).endswith("PROJ-1, PROJ-2")

    def test_conflict_resolution_names_strategy(self):
        err = ConflictResolutionError("PROJ-1", "three-way-merge")

        assert "PROJ-1" in str(err)
        assert "three-way-merge" in str(err)

    def test_partial_failure_counts(self):
        result = BulkOperationResult()
        result.record_success("PROJ-1")
        result.record_failure("PROJ-2", "boom")

        err = BulkPartialFailureError(result, total=2)

        assert str(err) == "partial failure: 1 of 2 tickets failed (rollback attempted)"
        assert err.result is result

    def test_partial_failure_without_rollback(self):
        err = BulkPartialFailureError(BulkOperationResult(), total=3, rollback_attempted=False)

        assert "rollback" not in str(err)
        assert err.rollback_attempted is False

    def test_cancelled_carries_result(self):
        result = BulkOperationResult()
        err = OperationCancelledError(result)

        assert err.result is result
        assert str(err) == "operation cancelled"

    def test_config_error_includes_path(self):
        err = ConfigError("Config file not found", config_path="/tmp/.ticketr.yaml")

        assert str(err) == "Config file not found (/tmp/.ticketr.yaml)"
        assert err.config_path == "/tmp/.ticketr.yaml"

    def test_local_file_not_found_path(self):
        err = LocalFileNotFoundError("tickets.yaml")

        assert err.path == "tickets.yaml"
        assert "tickets.yaml" in str(err)
