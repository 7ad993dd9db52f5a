"""
Exit Codes - Process exit codes for the ticketr CLI.

Scripts and CI jobs can branch on these:

    ticketr --pull -f tickets.yaml
    case $? in
      0) echo "up to date" ;;
      7) echo "conflicts, rerun with --force or --strategy" ;;
    esac
"""

from enum import IntEnum

from ticketr.core.exceptions import (
    AuthenticationError,
    BulkPartialFailureError,
    ConfigError,
    LocalFileNotFoundError,
    OperationCancelledError,
    PushError,
    SyncError,
    TransientError,
    UnknownStrategyError,
    ValidationError,
)


class ExitCode(IntEnum):
    """Exit codes returned by the CLI."""

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    FILE_NOT_FOUND = 3
    CONNECTION_ERROR = 4
    AUTH_ERROR = 5
    VALIDATION_ERROR = 6
    SYNC_ERROR = 7
    PARTIAL_SUCCESS = 8
    CANCELLED = 9
    SIGINT = 130

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """Map an exception to the exit code that describes it."""
        if isinstance(exc, KeyboardInterrupt):
            return cls.SIGINT
        if isinstance(exc, OperationCancelledError):
            return cls.CANCELLED
        if isinstance(exc, (ConfigError, UnknownStrategyError)):
            return cls.CONFIG_ERROR
        if isinstance(exc, (LocalFileNotFoundError, FileNotFoundError)):
            return cls.FILE_NOT_FOUND
        if isinstance(exc, AuthenticationError):
            return cls.AUTH_ERROR
        if isinstance(exc, (TransientError, ConnectionError)):
            return cls.CONNECTION_ERROR
        if isinstance(exc, ValidationError):
            return cls.VALIDATION_ERROR
        if isinstance(exc, (BulkPartialFailureError, PushError)):
            return cls.PARTIAL_SUCCESS
        if isinstance(exc, SyncError):
            return cls.SYNC_ERROR
        return cls.ERROR


_DESCRIPTIONS = {
    ExitCode.SUCCESS: "Operation completed successfully",
    ExitCode.ERROR: "Operation failed",
    ExitCode.CONFIG_ERROR: "Configuration is missing or invalid",
    ExitCode.FILE_NOT_FOUND: "Ticket file not found",
    ExitCode.CONNECTION_ERROR: "Could not reach the tracker",
    ExitCode.AUTH_ERROR: "Tracker rejected the credentials",
    ExitCode.VALIDATION_ERROR: "Input failed validation",
    ExitCode.SYNC_ERROR: "Conflicts need to be resolved",
    ExitCode.PARTIAL_SUCCESS: "Some tickets failed",
    ExitCode.CANCELLED: "Operation cancelled",
    ExitCode.SIGINT: "Interrupted by user",
}
