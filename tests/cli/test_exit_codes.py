"""
Tests for exit codes and exception mapping.
"""

import pytest

from ticketr.cli.exit_codes import ExitCode
from ticketr.core.domain import BulkOperationResult
from ticketr.core.exceptions import (
    AuthenticationError,
    BulkAllFailedError,
    BulkPartialFailureError,
    BulkValidationError,
    ConfigFileError,
    ConflictDetectedError,
    ConflictResolutionError,
    LocalFileNotFoundError,
    OperationCancelledError,
    PushError,
    RateLimitError,
    TransientError,
    UnknownStrategyError,
)


class TestExitCodeValues:
    """Tests for the numeric values scripts rely on."""

    def test_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.ERROR == 1
        assert ExitCode.CONFIG_ERROR == 2
        assert ExitCode.SYNC_ERROR == 7
        assert ExitCode.PARTIAL_SUCCESS == 8
        assert ExitCode.CANCELLED == 9
        assert ExitCode.SIGINT == 130

    def test_every_code_has_description(self):
        for code in ExitCode:
            assert code.description


class TestFromException:
    """Tests for ExitCode.from_exception."""

    @pytest.mark.parametrize(
        "exc, code",
        [
            (KeyboardInterrupt(), ExitCode.SIGINT),
            (OperationCancelledError(), ExitCode.CANCELLED),
            (ConfigFileError("bad"), ExitCode.CONFIG_ERROR),
            (UnknownStrategyError("x"), ExitCode.CONFIG_ERROR),
            (LocalFileNotFoundError("t.yaml"), ExitCode.FILE_NOT_FOUND),
            (FileNotFoundError(), ExitCode.FILE_NOT_FOUND),
            (AuthenticationError("denied"), ExitCode.AUTH_ERROR),
            (TransientError("down"), ExitCode.CONNECTION_ERROR),
            (ConnectionError(), ExitCode.CONNECTION_ERROR),
            (BulkValidationError("bad id"), ExitCode.VALIDATION_ERROR),
            (BulkPartialFailureError(BulkOperationResult(), total=2), ExitCode.PARTIAL_SUCCESS),
            (PushError("1 failed"), ExitCode.PARTIAL_SUCCESS),
            (ConflictDetectedError(["PROJ-1"]), ExitCode.SYNC_ERROR),
            (ConflictResolutionError("PROJ-1", "three-way-merge"), ExitCode.SYNC_ERROR),
            (BulkAllFailedError("all failed"), ExitCode.ERROR),
            (RateLimitError("slow down"), ExitCode.ERROR),
            (RuntimeError("boom"), ExitCode.ERROR),
        ],
    )
    def test_mapping(self, exc, code):
        assert ExitCode.from_exception(exc) == code
