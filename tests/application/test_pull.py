"""
Tests for the pull reconciler.
"""

from unittest.mock import Mock

import pytest

from ticketr.application.sync import (
    PullOptions,
    PullService,
    StateStore,
    TicketState,
    ThreeWayMergeStrategy,
    build_query,
    calculate_hash,
)
from ticketr.application.sync.strategies import LocalWinsStrategy
from ticketr.core.domain import Ticket
from ticketr.core.exceptions import ConflictDetectedError, ConflictResolutionError


FILE = "tickets.yaml"


def remote_ticket(jira_id: str, title: str = "Remote", **kwargs) -> Ticket:
    return Ticket(title=title, jira_id=jira_id, **kwargs)


@pytest.fixture
def service(mock_tracker, repository, state_store):
    return PullService(mock_tracker, repository, state_store)


def seed_conflict(repository, state_store, mock_tracker):
    """PROJ-1 edited locally and remotely since the recorded sync."""
    base = Ticket(title="Base", jira_id="PROJ-1")
    digest = calculate_hash(base)
    state_store.set_stored_state("PROJ-1", TicketState(digest, digest))
    state_store.save()

    local = Ticket(title="Base", description="Local edit", jira_id="PROJ-1")
    remote = Ticket(title="Base", custom_fields={"Priority": "High"}, jira_id="PROJ-1")
    repository.files[FILE] = [local]
    mock_tracker.search_tickets.return_value = [remote]
    return local, remote


# =============================================================================
# build_query
# =============================================================================


class TestBuildQuery:
    """Tests for the remote search query."""

    def test_empty(self):
        assert build_query(PullOptions()) == ""

    def test_project_only(self):
        assert build_query(PullOptions(project_key="PROJ")) == 'project = "PROJ"'

    def test_all_parts(self):
        query = build_query(PullOptions(project_key="PROJ", jql="status = Open", epic_key="PROJ-5"))

        assert query == 'project = "PROJ" AND (status = Open) AND parent = "PROJ-5"'


# =============================================================================
# Reconciliation
# =============================================================================


class TestPullBasics:
    """Tests for pulls without conflicts."""

    def test_new_remote_tickets_are_pulled(self, service, repository, mock_tracker, state_file):
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1"), remote_ticket("PROJ-2")]

        result = service.pull(FILE, PullOptions(project_key="PROJ"))

        assert result.tickets_pulled == 2
        assert [t.jira_id for t in repository.files[FILE]] == ["PROJ-1", "PROJ-2"]
        assert state_file.exists()

        reloaded = StateStore(state_file)
        reloaded.load()
        assert reloaded.ticket_ids() == ["PROJ-1", "PROJ-2"]

    def test_search_receives_query(self, service, mock_tracker):
        service.pull(FILE, PullOptions(project_key="PROJ", epic_key="PROJ-5"))

        args, kwargs = mock_tracker.search_tickets.call_args
        assert args == ("PROJ", 'project = "PROJ" AND parent = "PROJ-5"')

    def test_first_sync_of_existing_ticket_takes_remote(self, service, repository, mock_tracker):
        repository.files[FILE] = [Ticket(title="Local", jira_id="PROJ-1")]
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1", "Remote")]

        result = service.pull(FILE, PullOptions())

        assert result.tickets_updated == 1
        assert repository.files[FILE][0].title == "Remote"

    def test_second_pull_is_idempotent(self, service, repository, mock_tracker):
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1")]
        service.pull(FILE, PullOptions())

        result = service.pull(FILE, PullOptions())

        assert result.tickets_pulled == 0
        assert result.tickets_updated == 0
        assert result.tickets_skipped == 1
        assert result.conflicts == []

    def test_remote_change_is_taken(self, service, repository, mock_tracker):
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1", "v1")]
        service.pull(FILE, PullOptions())
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1", "v2")]

        result = service.pull(FILE, PullOptions())

        assert result.tickets_updated == 1
        assert repository.files[FILE][0].title == "v2"

    def test_local_change_is_kept(self, service, repository, mock_tracker, state_store):
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1", "v1")]
        service.pull(FILE, PullOptions())
        repository.files[FILE][0].title = "edited locally"

        result = service.pull(FILE, PullOptions())

        assert result.tickets_skipped == 1
        assert repository.files[FILE][0].title == "edited locally"
        stored = state_store.get_stored_state("PROJ-1")
        assert stored.local_hash == calculate_hash(repository.files[FILE][0])
        assert stored.remote_hash == calculate_hash(remote_ticket("PROJ-1", "v1"))

    def test_local_only_tickets_are_appended_in_order(self, service, repository, mock_tracker):
        repository.files[FILE] = [
            Ticket(title="Never pushed"),
            Ticket(title="Not in query", jira_id="PROJ-9"),
            Ticket(title="Shared", jira_id="PROJ-1"),
        ]
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1", "Shared")]

        service.pull(FILE, PullOptions())

        assert [t.title for t in repository.files[FILE]] == ["Shared", "Never pushed", "Not in query"]

    def test_progress_reported_for_large_pulls(self, service, mock_tracker):
        mock_tracker.search_tickets.return_value = [remote_ticket(f"PROJ-{i}") for i in range(1, 11)]
        progress = Mock()

        service.pull(FILE, PullOptions(progress_callback=progress))

        processing = [c for c in progress.call_args_list if c.args[2].startswith("Processing")]
        assert len(processing) == 10
        assert processing[-1].args[:2] == (10, 10)

    def test_progress_not_reported_for_small_pulls(self, service, mock_tracker):
        mock_tracker.search_tickets.return_value = [remote_ticket(f"PROJ-{i}") for i in range(1, 10)]
        progress = Mock()

        service.pull(FILE, PullOptions(progress_callback=progress))

        assert not [c for c in progress.call_args_list if c.args[2].startswith("Processing")]


# =============================================================================
# Conflicts
# =============================================================================


class TestPullConflicts:
    """Tests for tickets changed on both sides."""

    def test_unforced_conflict_keeps_local_and_raises(self, service, repository, mock_tracker, state_store):
        local, _ = seed_conflict(repository, state_store, mock_tracker)

        with pytest.raises(ConflictDetectedError) as exc_info:
            service.pull(FILE, PullOptions())

        assert exc_info.value.conflicts == ["PROJ-1"]
        result = exc_info.value.result
        assert result.tickets_skipped == 1
        assert result.has_conflicts
        assert repository.files[FILE] == [local]

    def test_forced_conflict_takes_remote(self, service, repository, mock_tracker, state_store):
        _, remote = seed_conflict(repository, state_store, mock_tracker)

        result = service.pull(FILE, PullOptions(force=True))

        assert result.conflicts == ["PROJ-1"]
        assert result.tickets_updated == 1
        assert repository.files[FILE] == [remote]
        assert state_store.get_stored_state("PROJ-1") == TicketState(
            calculate_hash(remote), calculate_hash(remote)
        )

    def test_strategy_resolves_conflict(self, mock_tracker, repository, state_store):
        seed_conflict(repository, state_store, mock_tracker)
        service = PullService(mock_tracker, repository, state_store, ThreeWayMergeStrategy())

        result = service.pull(FILE, PullOptions())

        merged = repository.files[FILE][0]
        assert result.conflicts == ["PROJ-1"]
        assert result.tickets_updated == 1
        assert merged.description == "Local edit"
        assert merged.custom_fields == {"Priority": "High"}

    def test_local_wins_strategy(self, mock_tracker, repository, state_store):
        local, _ = seed_conflict(repository, state_store, mock_tracker)
        service = PullService(mock_tracker, repository, state_store, LocalWinsStrategy())

        service.pull(FILE, PullOptions())

        assert repository.files[FILE] == [local]

    def test_strategy_failure_writes_nothing(self, mock_tracker, repository, state_store, state_file):
        seed_conflict(repository, state_store, mock_tracker)
        repository.files[FILE][0].title = "Local title"
        mock_tracker.search_tickets.return_value[0].title = "Remote title"
        before_state = state_file.read_text()
        service = PullService(mock_tracker, repository, state_store, ThreeWayMergeStrategy())

        with pytest.raises(ConflictResolutionError) as exc_info:
            service.pull(FILE, PullOptions())

        assert "three-way-merge" in str(exc_info.value)
        assert repository.saved == []
        assert state_file.read_text() == before_state

    def test_missing_local_file_starts_empty(self, service, repository, mock_tracker):
        mock_tracker.search_tickets.return_value = [remote_ticket("PROJ-1")]

        result = service.pull("missing.yaml", PullOptions())

        assert result.tickets_pulled == 1
        assert "missing.yaml" in repository.files
