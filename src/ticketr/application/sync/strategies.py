"""
Conflict Resolution Strategies - What to keep when a ticket changed on both sides.

Three built-in, stateless strategies:

- local-wins: keep the local ticket unchanged
- remote-wins: take the remote ticket unchanged
- three-way-merge: merge field by field, failing when both sides hold
  different non-empty values for the same field

The merge has no common ancestor to compare against. A field that is empty
on one side and set on the other is treated as "set by that side".
"""

from __future__ import annotations

import logging

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import UnknownStrategyError, UnresolvableConflictError
from ticketr.core.ports.sync_strategy import SyncStrategy


STRATEGY_LOCAL_WINS = "local-wins"
STRATEGY_REMOTE_WINS = "remote-wins"
STRATEGY_THREE_WAY_MERGE = "three-way-merge"


def _require_pair(local: Ticket | None, remote: Ticket | None) -> None:
    if local is None:
        raise ValueError("local ticket is None")
    if remote is None:
        raise ValueError("remote ticket is None")


class LocalWinsStrategy(SyncStrategy):
    """Always keep the local version of a conflicting ticket."""

    @property
    def name(self) -> str:
        return STRATEGY_LOCAL_WINS

    def resolve_conflict(self, local: Ticket, remote: Ticket) -> Ticket:
        _require_pair(local, remote)
        return local.copy()


class RemoteWinsStrategy(SyncStrategy):
    """Always take the remote version of a conflicting ticket."""

    @property
    def name(self) -> str:
        return STRATEGY_REMOTE_WINS

    def resolve_conflict(self, local: Ticket, remote: Ticket) -> Ticket:
        _require_pair(local, remote)
        return remote.copy()


class ThreeWayMergeStrategy(SyncStrategy):
    """
    Field-level merge of a local/remote pair.

    Per field:
    - equal values pass through
    - a value present on only one side wins
    - different non-empty values are a conflict

    Custom fields are merged key by key and tasks are matched by their
    remote key. If anything conflicts the whole merge fails with an
    UnresolvableConflictError naming every conflicting field.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger("ThreeWayMergeStrategy")

    @property
    def name(self) -> str:
        return STRATEGY_THREE_WAY_MERGE

    def resolve_conflict(self, local: Ticket, remote: Ticket) -> Ticket:
        _require_pair(local, remote)

        merged = local.copy()
        conflicts: list[str] = []

        merged.title = _merge_text(local.title, remote.title, "Title", conflicts)
        merged.description = _merge_text(
            local.description, remote.description, "Description", conflicts
        )
        merged.acceptance_criteria = _merge_list(
            local.acceptance_criteria,
            remote.acceptance_criteria,
            "AcceptanceCriteria",
            conflicts,
        )

        fields, field_conflicts = merge_custom_fields(local.custom_fields, remote.custom_fields)
        merged.custom_fields = fields
        conflicts.extend(f"CustomFields[{key}]" for key in field_conflicts)

        tasks, task_conflicts = merge_tasks(local.tasks, remote.tasks)
        merged.tasks = tasks
        conflicts.extend(task_conflicts)

        if conflicts:
            self.logger.debug(f"Merge of {remote.jira_id} failed on {conflicts}")
            raise UnresolvableConflictError(conflicts)

        merged.jira_id = remote.jira_id
        return merged


# -------------------------------------------------------------------------
# Merge Helpers
# -------------------------------------------------------------------------


def _merge_text(local: str, remote: str, label: str, conflicts: list[str]) -> str:
    if local == remote or not remote:
        return local
    if not local:
        return remote
    conflicts.append(label)
    return local


def _merge_list(
    local: list[str], remote: list[str], label: str, conflicts: list[str]
) -> list[str]:
    if local == remote or not remote:
        return list(local)
    if not local:
        return list(remote)
    conflicts.append(label)
    return list(local)


def merge_custom_fields(
    local: dict[str, str], remote: dict[str, str]
) -> tuple[dict[str, str], list[str]]:
    """
    Merge two custom field maps.

    Starts from the remote map and adds local-only keys. Keys present on
    both sides with different values are reported as conflicts; the remote
    value is kept for them.

    Returns:
        Tuple of (merged fields, sorted conflicting keys).
    """
    merged = dict(remote)
    conflicts = []
    for key, value in local.items():
        if key not in remote:
            merged[key] = value
        elif remote[key] != value:
            conflicts.append(key)
    return merged, sorted(conflicts)


def _task_conflicts(local: Task, remote: Task) -> bool:
    if local.title != remote.title and local.title and remote.title:
        return True
    if local.description != remote.description and local.description and remote.description:
        return True
    if (
        local.acceptance_criteria != remote.acceptance_criteria
        and local.acceptance_criteria
        and remote.acceptance_criteria
    ):
        return True
    _, field_conflicts = merge_custom_fields(local.custom_fields, remote.custom_fields)
    return bool(field_conflicts)


def _merge_task(local: Task, remote: Task) -> Task:
    merged = remote.copy()
    merged.title = remote.title or local.title
    merged.description = remote.description or local.description
    merged.acceptance_criteria = list(remote.acceptance_criteria or local.acceptance_criteria)
    merged.custom_fields, _ = merge_custom_fields(local.custom_fields, remote.custom_fields)
    return merged


def merge_tasks(local: list[Task], remote: list[Task]) -> tuple[list[Task], list[str]]:
    """
    Merge two task lists, matching tasks by remote key.

    Remote tasks come first in remote order, followed by local-only tasks in
    local order (including tasks not created remotely yet). A task changed
    incompatibly on both sides is reported as Task[KEY] and the remote
    version is kept.

    Returns:
        Tuple of (merged tasks, conflict labels).
    """
    local_by_id = {task.jira_id: task for task in local if task.jira_id}
    conflicts: list[str] = []
    merged: list[Task] = []
    seen: set[str] = set()

    for remote_task in remote:
        local_task = local_by_id.get(remote_task.jira_id) if remote_task.jira_id else None
        if remote_task.jira_id:
            seen.add(remote_task.jira_id)

        if local_task is None:
            merged.append(remote_task.copy())
        elif _task_conflicts(local_task, remote_task):
            conflicts.append(f"Task[{remote_task.jira_id}]")
            merged.append(remote_task.copy())
        else:
            merged.append(_merge_task(local_task, remote_task))

    for local_task in local:
        if not local_task.jira_id or local_task.jira_id not in seen:
            merged.append(local_task.copy())

    return merged, conflicts


# -------------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------------


_STRATEGIES: dict[str, type[SyncStrategy]] = {
    STRATEGY_LOCAL_WINS: LocalWinsStrategy,
    STRATEGY_REMOTE_WINS: RemoteWinsStrategy,
    STRATEGY_THREE_WAY_MERGE: ThreeWayMergeStrategy,
}


def available_strategies() -> list[str]:
    """Get the names of all built-in strategies."""
    return list(_STRATEGIES)


def create_strategy(name: str) -> SyncStrategy:
    """
    Create a strategy by registry name.

    Raises:
        UnknownStrategyError: If no strategy has that name.
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise UnknownStrategyError(name, available_strategies()) from None
