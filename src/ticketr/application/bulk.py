"""
Bulk Operation Executor - Apply one change to many remote tickets.

Tickets are processed one at a time, in the order given. Each ticket is
fetched and snapshotted before it is changed; if some tickets succeed and
others fail, the successful ones are restored from their snapshots on a
best-effort basis. A failing ticket never stops the batch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from ticketr.core.domain.bulk import (
    BulkAction,
    BulkOperation,
    BulkOperationResult,
    ChangeValue,
    is_valid_ticket_id,
)
from ticketr.core.domain.entities import Ticket
from ticketr.core.exceptions import (
    BulkAllFailedError,
    BulkOperationError,
    BulkPartialFailureError,
    BulkUnsupportedActionError,
    NotFoundError,
    OperationCancelledError,
    TrackerError,
    UnsupportedOperationError,
)
from ticketr.core.ports.issue_tracker import IssueTrackerPort


# (ticket_id, success, error)
BulkProgressCallback = Callable[[str, bool, BaseException | None], None]

PARENT_CHANGE = "parent"
PARENT_FIELD = "Parent"


class BulkOperationExecutor:
    """
    Executes validated bulk operations against an issue tracker.

    Cancellation is cooperative: the optional cancel_event is checked once
    per ticket before any remote call for it, so an in-flight call always
    completes. Cancelling does not trigger rollback.
    """

    def __init__(self, tracker: IssueTrackerPort):
        self.tracker = tracker
        self.logger = logging.getLogger("BulkOperationExecutor")

    def execute(
        self,
        operation: BulkOperation,
        progress_callback: BulkProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BulkOperationResult:
        """
        Validate and run a bulk operation.

        Args:
            operation: The request to run.
            progress_callback: Optional (ticket_id, success, error) callback,
                invoked after every processed ticket.
            cancel_event: Optional event; once set, processing stops before
                the next ticket.

        Returns:
            The result, when every ticket succeeded.

        Raises:
            BulkValidationError: The request is malformed; nothing was sent.
            BulkOperationError: Operation level failure (missing move parent).
            BulkPartialFailureError: Some tickets failed; rollback attempted.
            BulkAllFailedError: Every ticket failed.
            BulkUnsupportedActionError: The tracker cannot perform the action.
            OperationCancelledError: cancel_event was set.
        """
        changes = operation.validate()
        action = operation.action
        total = len(operation.ticket_ids)

        self.logger.info(f"Starting bulk {action.value} of {total} tickets")

        if action == BulkAction.UPDATE:
            return self._mutate(
                operation.ticket_ids,
                lambda ticket: _apply_changes(ticket, changes),
                "update",
                progress_callback,
                cancel_event,
            )

        if action == BulkAction.MOVE:
            parent = changes.get(PARENT_CHANGE)
            if parent is None:
                raise BulkOperationError(
                    "move operation requires 'parent' field in changes",
                    result=BulkOperationResult(),
                )
            if not parent.is_string or not parent.value:
                raise BulkOperationError(
                    "parent field must be a non-empty string",
                    result=BulkOperationResult(),
                )
            if not is_valid_ticket_id(parent.value):
                raise BulkOperationError(
                    f"invalid parent Jira ID format: {parent.value} (expected format: PROJECT-123)",
                    result=BulkOperationResult(),
                )

            def reparent(ticket: Ticket) -> None:
                ticket.custom_fields[PARENT_FIELD] = parent.value

            return self._mutate(
                operation.ticket_ids,
                reparent,
                "move",
                progress_callback,
                cancel_event,
            )

        return self._delete(operation.ticket_ids, progress_callback, cancel_event)

    # -------------------------------------------------------------------------
    # Update / Move
    # -------------------------------------------------------------------------

    def _mutate(
        self,
        ticket_ids: list[str],
        mutate: Callable[[Ticket], None],
        verb: str,
        progress_callback: BulkProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> BulkOperationResult:
        result = BulkOperationResult()
        snapshots: dict[str, Ticket] = {}

        for ticket_id in ticket_ids:
            self._check_cancelled(cancel_event, result)

            try:
                found = self.tracker.search_tickets("", f'key = "{ticket_id}"')
            except TrackerError as e:
                self._fail(
                    result,
                    ticket_id,
                    TrackerError("failed to fetch ticket for backup", issue_key=ticket_id, cause=e),
                    progress_callback,
                )
                continue

            if not found:
                self._fail(
                    result,
                    ticket_id,
                    NotFoundError(f"ticket not found: {ticket_id}", issue_key=ticket_id),
                    progress_callback,
                )
                continue

            ticket = found[0]
            ticket.jira_id = ticket.jira_id or ticket_id
            snapshots[ticket_id] = ticket.copy()
            mutate(ticket)

            try:
                self.tracker.update_ticket(ticket)
            except TrackerError as e:
                self._fail(
                    result,
                    ticket_id,
                    TrackerError(f"failed to {verb} ticket", issue_key=ticket_id, cause=e),
                    progress_callback,
                )
                continue

            result.record_success(ticket_id)
            self.logger.debug(f"Bulk {verb} applied to {ticket_id}")
            if progress_callback is not None:
                progress_callback(ticket_id, True, None)

        if result.success_count and result.failure_count:
            self._rollback(snapshots, result, cancel_event)
            raise BulkPartialFailureError(result, total=len(ticket_ids))

        if result.failure_count:
            raise BulkAllFailedError(f"all tickets failed to {verb}", result=result)

        self.logger.info(f"Bulk {verb} succeeded for {result.success_count} tickets")
        return result

    def _rollback(
        self,
        snapshots: dict[str, Ticket],
        result: BulkOperationResult,
        cancel_event: threading.Event | None,
    ) -> None:
        """Restore successfully changed tickets from their snapshots, best effort."""
        self.logger.warning(
            f"Rolling back {len(result.successful_tickets)} tickets after partial failure"
        )
        for ticket_id in result.successful_tickets:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning("Rollback interrupted by cancellation")
                return

            snapshot = snapshots.get(ticket_id)
            if snapshot is None:
                continue

            try:
                self.tracker.update_ticket(snapshot)
                self.logger.info(f"Rolled back {ticket_id}")
            except TrackerError as e:
                self.logger.warning(f"Rollback failed for {ticket_id}: {e}")

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def _delete(
        self,
        ticket_ids: list[str],
        progress_callback: BulkProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> BulkOperationResult:
        result = BulkOperationResult()

        if not self.tracker.supports_delete:
            for ticket_id in ticket_ids:
                self._check_cancelled(cancel_event, result)
                self._fail(
                    result,
                    ticket_id,
                    UnsupportedOperationError("delete", self.tracker.name),
                    progress_callback,
                )
            raise BulkUnsupportedActionError(
                f"delete operation not supported: {self.tracker.name} adapter "
                "does not implement ticket deletion",
                result=result,
            )

        for ticket_id in ticket_ids:
            self._check_cancelled(cancel_event, result)
            try:
                self.tracker.delete_ticket(ticket_id)
            except TrackerError as e:
                self._fail(result, ticket_id, e, progress_callback)
                continue

            result.record_success(ticket_id)
            if progress_callback is not None:
                progress_callback(ticket_id, True, None)

        # No rollback for deletes
        if result.success_count and result.failure_count:
            raise BulkPartialFailureError(
                result, total=len(ticket_ids), rollback_attempted=False
            )
        if result.failure_count:
            raise BulkAllFailedError("all tickets failed to delete", result=result)
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_cancelled(
        self,
        cancel_event: threading.Event | None,
        result: BulkOperationResult,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.warning(
                f"Bulk operation cancelled after {result.processed_count} tickets"
            )
            raise OperationCancelledError(result)

    def _fail(
        self,
        result: BulkOperationResult,
        ticket_id: str,
        error: BaseException,
        progress_callback: BulkProgressCallback | None,
    ) -> None:
        result.record_failure(ticket_id, str(error))
        self.logger.error(f"Bulk operation failed for {ticket_id}: {error}")
        if progress_callback is not None:
            progress_callback(ticket_id, False, error)


def _apply_changes(ticket: Ticket, changes: dict[str, ChangeValue]) -> None:
    for name, value in changes.items():
        ticket.custom_fields[name] = value.as_text()
