"""
Centralized exception hierarchy for ticketr.

All exceptions raised by ticketr derive from TicketrError so callers can
catch everything the tool raises with a single except clause, while still
being able to discriminate by category:

- TrackerError: failures talking to the remote issue tracker
- RepositoryError / StateError: local ticket file and sync state failures
- ValidationError: malformed requests, rejected before any remote call
- SyncError: pull/push reconciliation failures (conflicts, strategies)
- BulkOperationError: batch mutation failures, carrying the partial result
- ConfigError: configuration loading and validation failures
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from ticketr.core.domain.bulk import BulkOperationResult


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "BulkAllFailedError",
    "BulkOperationError",
    "BulkPartialFailureError",
    "BulkUnsupportedActionError",
    "BulkValidationError",
    "ConfigError",
    "ConfigFileError",
    "ConflictDetectedError",
    "ConflictResolutionError",
    "LocalFileNotFoundError",
    "NotFoundError",
    "OperationCancelledError",
    "PushError",
    "RateLimitError",
    "RepositoryError",
    "StateError",
    "SyncError",
    "TicketrError",
    "TrackerError",
    "TransientError",
    "UnknownStrategyError",
    "UnresolvableConflictError",
    "UnsupportedOperationError",
    "ValidationError",
]


# =============================================================================
# Base
# =============================================================================


class TicketrError(Exception):
    """
    Base exception for all ticketr errors.

    Attributes:
        message: Human readable description of the failure.
        cause: The underlying exception, if this error wraps another one.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# =============================================================================
# Tracker Errors
# =============================================================================


class TrackerError(TicketrError):
    """Error raised by an issue tracker adapter."""

    def __init__(
        self,
        message: str,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.issue_key = issue_key


class AuthenticationError(TrackerError):
    """Credentials were rejected by the tracker (HTTP 401)."""


class AccessDeniedError(TrackerError):
    """The authenticated user lacks permission (HTTP 403)."""


class NotFoundError(TrackerError):
    """The requested resource does not exist (HTTP 404)."""


class RateLimitError(TrackerError):
    """The tracker kept rate limiting us after all retries."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, issue_key=issue_key, cause=cause)
        self.retry_after = retry_after


class TransientError(TrackerError):
    """Server or network failure (5xx, connection error) that persisted after all retries."""


class UnsupportedOperationError(TrackerError):
    """The tracker adapter does not implement the requested operation."""

    def __init__(self, operation: str, tracker: str = "tracker"):
        super().__init__(f"{operation} operation not supported by {tracker} adapter")
        self.operation = operation
        self.tracker = tracker


# =============================================================================
# Local Storage Errors
# =============================================================================


class RepositoryError(TicketrError):
    """The local ticket file could not be read or written."""


class LocalFileNotFoundError(RepositoryError):
    """The local ticket file does not exist yet."""

    def __init__(self, path: str):
        super().__init__(f"Ticket file not found: {path}")
        self.path = path


class StateError(TicketrError):
    """The sync state file could not be read or written."""


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(TicketrError):
    """A request was rejected before any remote call was attempted."""


class BulkValidationError(ValidationError):
    """A bulk operation request failed validation."""


# =============================================================================
# Sync Errors
# =============================================================================


class SyncError(TicketrError):
    """Base class for reconciliation failures."""


class UnknownStrategyError(SyncError):
    """No conflict resolution strategy is registered under the given name."""

    def __init__(self, name: str, available: list[str] | None = None):
        message = f"unknown sync strategy: {name}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.name = name


class UnresolvableConflictError(SyncError):
    """A strategy could not merge a local/remote pair automatically."""

    def __init__(self, fields: list[str]):
        super().__init__(
            "conflict cannot be automatically resolved: "
            f"fields [{', '.join(fields)}] have conflicting changes"
        )
        self.fields = list(fields)


class ConflictDetectedError(SyncError):
    """
    A pull finished but some tickets changed on both sides.

    The local file and state have already been written when this is raised;
    conflicting tickets kept their local version.
    """

    def __init__(self, conflicts: list[str], result: Any = None):
        super().__init__(
            "conflict detected: tickets changed both locally and remotely: "
            + ", ".join(conflicts)
        )
        self.conflicts = list(conflicts)
        self.result = result


class ConflictResolutionError(SyncError):
    """A configured strategy failed to resolve a conflict; the pull was aborted."""

    def __init__(
        self,
        ticket_id: str,
        strategy: str,
        result: Any = None,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"conflict resolution failed for {ticket_id} using {strategy} strategy",
            cause=cause,
        )
        self.ticket_id = ticket_id
        self.strategy = strategy
        self.result = result


class PushError(SyncError):
    """One or more tickets or tasks failed to push."""

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result


# =============================================================================
# Bulk Operation Errors
# =============================================================================


class BulkOperationError(TicketrError):
    """
    A bulk operation failed as a whole.

    Always carries the (possibly partial) result so callers can inspect
    which tickets succeeded and which failed.
    """

    def __init__(
        self,
        message: str,
        result: BulkOperationResult | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.result = result


class BulkPartialFailureError(BulkOperationError):
    """Some tickets succeeded and some failed."""

    def __init__(
        self,
        result: BulkOperationResult,
        total: int,
        rollback_attempted: bool = True,
    ):
        suffix = " (rollback attempted)" if rollback_attempted else ""
        super().__init__(
            f"partial failure: {result.failure_count} of {total} tickets failed{suffix}",
            result=result,
        )
        self.rollback_attempted = rollback_attempted


class BulkAllFailedError(BulkOperationError):
    """Every ticket in the operation failed."""


class BulkUnsupportedActionError(BulkAllFailedError):
    """The tracker cannot perform the requested action, so every ticket failed."""


class OperationCancelledError(TicketrError):
    """The caller cancelled a running operation; the partial result is attached."""

    def __init__(self, result: Any = None, message: str = "operation cancelled"):
        super().__init__(message)
        self.result = result


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(TicketrError):
    """Configuration could not be loaded or is invalid."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        cause: BaseException | None = None,
    ):
        if config_path:
            message = f"{message} ({config_path})"
        super().__init__(message, cause=cause)
        self.config_path = config_path


class ConfigFileError(ConfigError):
    """The configuration file exists but cannot be parsed."""
