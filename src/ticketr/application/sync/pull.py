"""
Pull Reconciler - Merge remote tickets into the local ticket file.

For every remote ticket the reconciler compares the current local and
remote content hashes against the hashes recorded at the last sync and
classifies the pair:

    state         local changed   remote changed   outcome
    -----------   -------------   --------------   --------------------------
    new           -               -                take remote   (pulled)
    first sync    -               -                take remote   (updated)
    conflict      yes             yes              force/strategy/keep local
    remote only   no              yes              take remote   (updated)
    local only    yes             no               keep local    (skipped)
    unchanged     no              no               keep local    (skipped)

Local tickets the remote query did not return (including tickets never
pushed) are kept unchanged after the remote ones.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ticketr.core.domain.entities import Ticket
from ticketr.core.exceptions import (
    ConflictDetectedError,
    ConflictResolutionError,
    LocalFileNotFoundError,
    UnresolvableConflictError,
)
from ticketr.core.ports.issue_tracker import IssueTrackerPort
from ticketr.core.ports.sync_strategy import SyncStrategy
from ticketr.core.ports.ticket_repository import TicketRepositoryPort

from .state import StateStore, TicketState


# Per-ticket progress is only worth reporting for larger pulls
PROGRESS_THRESHOLD = 10


@dataclass
class PullOptions:
    """Inputs of a pull."""

    project_key: str = ""
    jql: str = ""
    epic_key: str = ""
    force: bool = False
    progress_callback: Callable[[int, int, str], None] | None = None


@dataclass
class PullResult:
    """Aggregate outcome of a pull."""

    tickets_pulled: int = 0
    tickets_updated: int = 0
    tickets_skipped: int = 0
    conflicts: list[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def total(self) -> int:
        return self.tickets_pulled + self.tickets_updated + self.tickets_skipped

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tickets_pulled": self.tickets_pulled,
            "tickets_updated": self.tickets_updated,
            "tickets_skipped": self.tickets_skipped,
            "conflicts": list(self.conflicts),
        }


def build_query(options: PullOptions) -> str:
    """
    Build the remote search query for a pull.

    Combines the project filter, the extra filter and the parent filter
    with AND; each part is optional.
    """
    parts = []
    if options.project_key:
        parts.append(f'project = "{options.project_key}"')
    if options.jql:
        parts.append(f"({options.jql})")
    if options.epic_key:
        parts.append(f'parent = "{options.epic_key}"')
    return " AND ".join(parts)


class PullService:
    """
    Reconciles the remote ticket set with the local ticket file.

    Without a strategy, conflicts are handled by the force flag: forced pulls
    take the remote ticket, unforced pulls keep the local one and report the
    conflict. With a strategy, unforced conflicts are handed to the strategy
    and an unresolvable conflict aborts the pull before anything is written.
    """

    def __init__(
        self,
        tracker: IssueTrackerPort,
        repository: TicketRepositoryPort,
        state_store: StateStore,
        strategy: SyncStrategy | None = None,
    ):
        """
        Initialize the pull service.

        Args:
            tracker: Remote ticket source.
            repository: Local ticket file access.
            state_store: Sync state, loaded and saved once per pull.
            strategy: Optional conflict resolution strategy.
        """
        self.tracker = tracker
        self.repository = repository
        self.state_store = state_store
        self.strategy = strategy
        self.logger = logging.getLogger("PullService")

    def pull(self, file_path: str, options: PullOptions) -> PullResult:
        """
        Pull remote tickets into a local file.

        Args:
            file_path: Local ticket file; created if missing.
            options: Query and conflict handling options.

        Returns:
            The aggregate result when no conflict remains unresolved.

        Raises:
            ConflictDetectedError: Conflicts were kept local (file and state
                were still written). The result is attached.
            ConflictResolutionError: The strategy could not resolve a
                conflict. Nothing was written.
            TrackerError: The remote search failed.
            RepositoryError / StateError: Local I/O failed.
        """
        result = PullResult()
        report = options.progress_callback or _no_progress

        self.state_store.load()

        query = build_query(options)
        self.logger.info(f"Searching remote tickets: {query or '<all>'}")
        remote_tickets = self.tracker.search_tickets(
            options.project_key, query, progress_callback=report
        )

        local_tickets = self._load_local(file_path)
        local_by_id: dict[str, Ticket] = {}
        for ticket in local_tickets:
            if ticket.jira_id:
                local_by_id[ticket.jira_id] = ticket

        merged: list[Ticket] = []
        total = len(remote_tickets)

        for index, remote in enumerate(remote_tickets, start=1):
            if total >= PROGRESS_THRESHOLD:
                report(index, total, f"Processing {remote.jira_id}")

            local = local_by_id.pop(remote.jira_id, None)
            if local is None:
                merged.append(remote)
                self.state_store.update_hash(remote)
                result.tickets_pulled += 1
                continue

            merged.append(self._reconcile(local, remote, options, result))

        # Local-only tickets keep their original relative order
        unmatched = {id(ticket) for ticket in local_by_id.values()}
        for ticket in local_tickets:
            if not ticket.jira_id or id(ticket) in unmatched:
                merged.append(ticket)

        self.repository.save_tickets(file_path, merged)
        self.state_store.save()

        self.logger.info(
            f"Pull complete: {result.tickets_pulled} pulled, {result.tickets_updated} updated, "
            f"{result.tickets_skipped} skipped, {len(result.conflicts)} conflicts"
        )

        if result.conflicts and not options.force and self.strategy is None:
            raise ConflictDetectedError(result.conflicts, result=result)

        return result

    def _load_local(self, file_path: str) -> list[Ticket]:
        try:
            return self.repository.get_tickets(file_path)
        except LocalFileNotFoundError:
            self.logger.info(f"No local file at {file_path}, starting from an empty set")
            return []

    def _reconcile(
        self,
        local: Ticket,
        remote: Ticket,
        options: PullOptions,
        result: PullResult,
    ) -> Ticket:
        """Decide which version of a ticket present on both sides to keep."""
        ticket_id = remote.jira_id
        remote_hash = self.state_store.calculate_hash(remote)
        local_hash = self.state_store.calculate_hash(local)
        stored = self.state_store.get_stored_state(ticket_id)

        if stored is None:
            self.state_store.update_hash(remote)
            result.tickets_updated += 1
            return remote

        local_changed = local_hash != stored.local_hash
        if self.strategy is not None:
            remote_changed = self.strategy.should_sync(
                local_hash, remote_hash, stored.local_hash, stored.remote_hash
            )
        else:
            remote_changed = remote_hash != stored.remote_hash

        if local_changed and remote_changed:
            return self._resolve(local, remote, options, result)

        if remote_changed:
            self.state_store.set_stored_state(ticket_id, TicketState(remote_hash, remote_hash))
            result.tickets_updated += 1
            return remote

        if local_changed:
            self.state_store.update_local_hash(local)

        result.tickets_skipped += 1
        return local

    def _resolve(
        self,
        local: Ticket,
        remote: Ticket,
        options: PullOptions,
        result: PullResult,
    ) -> Ticket:
        ticket_id = remote.jira_id
        result.conflicts.append(ticket_id)

        if options.force:
            self.logger.warning(f"Conflict on {ticket_id}: forcing remote version")
            self.state_store.update_hash(remote)
            result.tickets_updated += 1
            return remote

        if self.strategy is None:
            self.logger.warning(f"Conflict on {ticket_id}: keeping local version")
            result.tickets_skipped += 1
            return local

        try:
            resolved = self.strategy.resolve_conflict(local, remote)
        except UnresolvableConflictError as e:
            raise ConflictResolutionError(
                ticket_id, self.strategy.name, result=result, cause=e
            ) from e

        self.logger.info(f"Conflict on {ticket_id} resolved with {self.strategy.name}")
        self.state_store.update_hash(resolved)
        result.tickets_updated += 1
        return resolved


def _no_progress(current: int, total: int, message: str) -> None:
    return None
