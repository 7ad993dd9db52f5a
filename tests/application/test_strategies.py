"""
Tests for conflict resolution strategies.
"""

import pytest

from ticketr.application.sync import (
    LocalWinsStrategy,
    RemoteWinsStrategy,
    ThreeWayMergeStrategy,
    available_strategies,
    create_strategy,
)
from ticketr.application.sync.strategies import merge_custom_fields, merge_tasks
from ticketr.core.domain import Task, Ticket
from ticketr.core.exceptions import UnknownStrategyError, UnresolvableConflictError


@pytest.fixture
def local():
    return Ticket(
        title="Login page",
        description="Local description",
        custom_fields={"Priority": "High"},
        jira_id="PROJ-1",
    )


@pytest.fixture
def remote():
    return Ticket(
        title="Login page",
        description="Remote description",
        custom_fields={"Priority": "Low"},
        jira_id="PROJ-1",
    )


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    """Tests for strategy lookup by name."""

    def test_available(self):
        assert available_strategies() == ["local-wins", "remote-wins", "three-way-merge"]

    @pytest.mark.parametrize(
        "name, cls",
        [
            ("local-wins", LocalWinsStrategy),
            ("remote-wins", RemoteWinsStrategy),
            ("three-way-merge", ThreeWayMergeStrategy),
        ],
    )
    def test_create(self, name, cls):
        strategy = create_strategy(name)

        assert isinstance(strategy, cls)
        assert strategy.name == name

    def test_unknown(self):
        with pytest.raises(UnknownStrategyError) as exc_info:
            create_strategy("newest-wins")

        assert "unknown sync strategy: newest-wins" in str(exc_info.value)
        assert "three-way-merge" in str(exc_info.value)


# =============================================================================
# Whole-ticket strategies
# =============================================================================


class TestWholeTicketStrategies:
    """Tests for local-wins and remote-wins."""

    def test_local_wins_returns_copy_of_local(self, local, remote):
        result = LocalWinsStrategy().resolve_conflict(local, remote)

        assert result == local
        assert result is not local

    def test_remote_wins_returns_copy_of_remote(self, local, remote):
        result = RemoteWinsStrategy().resolve_conflict(local, remote)

        assert result == remote
        assert result is not remote

    @pytest.mark.parametrize("strategy", [LocalWinsStrategy(), RemoteWinsStrategy(), ThreeWayMergeStrategy()])
    def test_missing_side_rejected(self, strategy, local):
        with pytest.raises(ValueError, match="remote ticket is None"):
            strategy.resolve_conflict(local, None)
        with pytest.raises(ValueError, match="local ticket is None"):
            strategy.resolve_conflict(None, local)


# =============================================================================
# Three-way merge
# =============================================================================


class TestThreeWayMerge:
    """Tests for the field-level merge."""

    def test_disjoint_changes_merge(self):
        local = Ticket(title="T", description="Written locally", jira_id="PROJ-1")
        remote = Ticket(title="T", custom_fields={"Priority": "High"}, jira_id="PROJ-1")

        merged = ThreeWayMergeStrategy().resolve_conflict(local, remote)

        assert merged.description == "Written locally"
        assert merged.custom_fields == {"Priority": "High"}
        assert merged.jira_id == "PROJ-1"

    def test_empty_remote_keeps_local_text(self):
        local = Ticket(title="Local title", jira_id="PROJ-1")
        remote = Ticket(title="", jira_id="PROJ-1")

        assert ThreeWayMergeStrategy().resolve_conflict(local, remote).title == "Local title"

    def test_empty_local_takes_remote_criteria(self):
        local = Ticket(title="T", jira_id="PROJ-1")
        remote = Ticket(title="T", acceptance_criteria=["Works"], jira_id="PROJ-1")

        merged = ThreeWayMergeStrategy().resolve_conflict(local, remote)

        assert merged.acceptance_criteria == ["Works"]

    def test_conflicts_are_all_reported(self, local, remote):
        local.title = "Local title"
        remote.title = "Remote title"

        with pytest.raises(UnresolvableConflictError) as exc_info:
            ThreeWayMergeStrategy().resolve_conflict(local, remote)

        assert exc_info.value.fields == ["Title", "Description", "CustomFields[Priority]"]

    def test_inputs_not_mutated(self, local, remote):
        before_local, before_remote = local.copy(), remote.copy()

        with pytest.raises(UnresolvableConflictError):
            ThreeWayMergeStrategy().resolve_conflict(local, remote)

        assert local == before_local
        assert remote == before_remote

    def test_task_conflict(self):
        local = Ticket(title="T", jira_id="PROJ-1", tasks=[Task(title="Local", jira_id="PROJ-2")])
        remote = Ticket(title="T", jira_id="PROJ-1", tasks=[Task(title="Remote", jira_id="PROJ-2")])

        with pytest.raises(UnresolvableConflictError) as exc_info:
            ThreeWayMergeStrategy().resolve_conflict(local, remote)

        assert exc_info.value.fields == ["Task[PROJ-2]"]


class TestMergeHelpers:
    """Tests for the public merge helpers."""

    def test_merge_custom_fields(self):
        merged, conflicts = merge_custom_fields(
            {"A": "1", "B": "local", "C": "3"},
            {"B": "remote", "C": "3", "D": "4"},
        )

        assert merged == {"A": "1", "B": "remote", "C": "3", "D": "4"}
        assert conflicts == ["B"]

    def test_merge_tasks_order(self):
        local = [
            Task(title="Shared", jira_id="PROJ-2", description="Local detail"),
            Task(title="Not created yet"),
            Task(title="Deleted remotely?", jira_id="PROJ-9"),
        ]
        remote = [
            Task(title="Remote only", jira_id="PROJ-3"),
            Task(title="Shared", jira_id="PROJ-2"),
        ]

        merged, conflicts = merge_tasks(local, remote)

        assert conflicts == []
        assert [t.title for t in merged] == [
            "Remote only",
            "Shared",
            "Not created yet",
            "Deleted remotely?",
        ]
        assert merged[1].description == "Local detail"
