"""
Push Service - Send locally changed tickets and their tasks to the tracker.

Tickets whose content hash matches the last synced local hash are skipped.
Failures are collected per ticket/task and never stop the run; the ticket
file is rewritten at the end so newly created remote keys are remembered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import PushError, RepositoryError, StateError, TrackerError
from ticketr.core.ports.issue_tracker import IssueTrackerPort
from ticketr.core.ports.ticket_repository import TicketRepositoryPort

from .state import StateStore


@dataclass
class PushResult:
    """Aggregate outcome of a push."""

    tickets_created: int = 0
    tickets_updated: int = 0
    tickets_skipped: int = 0
    tasks_created: int = 0
    tasks_updated: int = 0
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tickets_created": self.tickets_created,
            "tickets_updated": self.tickets_updated,
            "tickets_skipped": self.tickets_skipped,
            "tasks_created": self.tasks_created,
            "tasks_updated": self.tasks_updated,
            "errors": list(self.errors),
            "dry_run": self.dry_run,
        }


def final_task_fields(parent: Ticket, task: Task) -> dict[str, str]:
    """Parent fields overridden field by field by the task's own fields."""
    fields = dict(parent.custom_fields)
    fields.update(task.custom_fields)
    return fields


class PushService:
    """Pushes a local ticket file to the tracker."""

    def __init__(
        self,
        repository: TicketRepositoryPort,
        tracker: IssueTrackerPort,
        state_store: StateStore,
        dry_run: bool = False,
    ):
        """
        Initialize the push service.

        Args:
            repository: Local ticket file access.
            tracker: Remote ticket sink.
            state_store: Sync state used to skip unchanged tickets.
            dry_run: If True, only count what would be pushed; nothing is
                sent or written.
        """
        self.repository = repository
        self.tracker = tracker
        self.state_store = state_store
        self.dry_run = dry_run
        self.logger = logging.getLogger("PushService")

    def push(self, file_path: str) -> PushResult:
        """
        Push every changed ticket in a file.

        Raises:
            PushError: If any ticket or task failed; the result is attached.
            RepositoryError: If the ticket file cannot be read.
        """
        result = PushResult(dry_run=self.dry_run)

        try:
            self.state_store.load()
        except StateError as e:
            self.logger.warning(f"Could not load state file, pushing everything: {e}")

        tickets = self.repository.get_tickets(file_path)

        for ticket in tickets:
            if not self.state_store.has_changed(ticket):
                self.logger.debug(f"Skipping unchanged ticket '{ticket.title}' ({ticket.jira_id})")
                result.tickets_skipped += 1
                continue

            if self.dry_run:
                self._preview(ticket, result)
                continue

            if not self._push_ticket(ticket, result):
                continue

            for task in ticket.tasks:
                self._push_task(ticket, task, result)

            self.state_store.update_hash(ticket)

        if not self.dry_run:
            self._persist(file_path, tickets)

        self.logger.info(
            f"Push complete: {result.tickets_created} created, {result.tickets_updated} updated, "
            f"{result.tickets_skipped} unchanged, {len(result.errors)} errors"
        )

        if result.errors:
            raise PushError(f"{len(result.errors)} ticket(s) failed to process", result=result)

        return result

    def _push_ticket(self, ticket: Ticket, result: PushResult) -> bool:
        try:
            if ticket.jira_id:
                self.tracker.update_ticket(ticket)
                result.tickets_updated += 1
                self.logger.info(f"Updated ticket '{ticket.title}' ({ticket.jira_id})")
            else:
                ticket.jira_id = self.tracker.create_ticket(ticket)
                result.tickets_created += 1
                self.logger.info(f"Created ticket '{ticket.title}' as {ticket.jira_id}")
        except TrackerError as e:
            action = "update" if ticket.jira_id else "create"
            label = f" ({ticket.jira_id})" if ticket.jira_id else ""
            self._fail(result, f"Failed to {action} ticket '{ticket.title}'{label}: {e}")
            return False
        return True

    def _push_task(self, parent: Ticket, task: Task, result: PushResult) -> None:
        outgoing = task.copy()
        outgoing.custom_fields = final_task_fields(parent, task)

        if not task.jira_id and not parent.jira_id:
            self._fail(result, f"Cannot create task '{task.title}': parent ticket has no Jira ID")
            return

        try:
            if task.jira_id:
                self.tracker.update_task(outgoing)
                result.tasks_updated += 1
                self.logger.info(f"  Updated task '{task.title}' ({task.jira_id})")
            else:
                task.jira_id = self.tracker.create_task(outgoing, parent.jira_id)
                result.tasks_created += 1
                self.logger.info(f"  Created task '{task.title}' as {task.jira_id}")
        except TrackerError as e:
            action = "update" if task.jira_id else "create"
            self._fail(result, f"Failed to {action} task '{task.title}': {e}")

    def _preview(self, ticket: Ticket, result: PushResult) -> None:
        if ticket.jira_id:
            result.tickets_updated += 1
        else:
            result.tickets_created += 1
        for task in ticket.tasks:
            if task.jira_id:
                result.tasks_updated += 1
            else:
                result.tasks_created += 1
        self.logger.info(f"[DRY-RUN] Would push '{ticket.title}' ({ticket.jira_id or 'new'})")

    def _persist(self, file_path: str, tickets: list[Ticket]) -> None:
        try:
            self.repository.save_tickets(file_path, tickets)
        except RepositoryError as e:
            self.logger.warning(f"Failed to save tickets back to {file_path}: {e}")

        try:
            self.state_store.save()
        except StateError as e:
            self.logger.warning(f"Could not save state file: {e}")

    def _fail(self, result: PushResult, message: str) -> None:
        result.errors.append(message)
        self.logger.error(message)
