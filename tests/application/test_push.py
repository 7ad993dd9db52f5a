"""
Tests for the push service.
"""

import pytest

from ticketr.application.sync import PushService, calculate_hash, final_task_fields
from ticketr.core.domain import Task, Ticket
from ticketr.core.exceptions import PushError, TrackerError


FILE = "tickets.yaml"


@pytest.fixture
def service(repository, mock_tracker, state_store):
    return PushService(repository, mock_tracker, state_store)


class TestFinalTaskFields:
    """Tests for field inheritance."""

    def test_task_overrides_parent(self):
        parent = Ticket(custom_fields={"Priority": "High", "Component": "Auth"})
        task = Task(custom_fields={"Priority": "Low", "Assignee": "acc-1"})

        assert final_task_fields(parent, task) == {
            "Priority": "Low",
            "Component": "Auth",
            "Assignee": "acc-1",
        }


class TestPush:
    """Tests for pushing ticket files."""

    def test_creates_new_ticket_and_tasks(self, service, repository, mock_tracker, new_ticket, state_store):
        repository.files[FILE] = [new_ticket]
        mock_tracker.create_ticket.return_value = "PROJ-20"
        mock_tracker.create_task.return_value = "PROJ-21"

        result = service.push(FILE)

        assert result.tickets_created == 1
        assert result.tasks_created == 1
        assert result.success
        mock_tracker.create_task.assert_called_once()
        assert mock_tracker.create_task.call_args.args[1] == "PROJ-20"

        saved = repository.files[FILE][0]
        assert saved.jira_id == "PROJ-20"
        assert saved.tasks[0].jira_id == "PROJ-21"
        assert state_store.get_stored_state("PROJ-20").local_hash == calculate_hash(saved)

    def test_updates_existing_ticket(self, service, repository, mock_tracker, sample_ticket):
        repository.files[FILE] = [sample_ticket]

        result = service.push(FILE)

        assert result.tickets_updated == 1
        assert result.tasks_updated == 1
        mock_tracker.update_ticket.assert_called_once()
        mock_tracker.create_ticket.assert_not_called()

    def test_tasks_inherit_parent_fields(self, service, repository, mock_tracker, sample_ticket):
        repository.files[FILE] = [sample_ticket]

        service.push(FILE)

        sent = mock_tracker.update_task.call_args.args[0]
        assert sent.custom_fields == {"Priority": "High", "Story Points": "5", "Assignee": "acc-1"}

    def test_local_task_fields_not_rewritten(self, service, repository, sample_ticket):
        repository.files[FILE] = [sample_ticket]

        service.push(FILE)

        assert repository.files[FILE][0].tasks[0].custom_fields == {"Assignee": "acc-1"}

    def test_unchanged_ticket_skipped(self, service, repository, mock_tracker, sample_ticket):
        repository.files[FILE] = [sample_ticket]
        service.push(FILE)
        mock_tracker.reset_mock()

        result = service.push(FILE)

        assert result.tickets_skipped == 1
        mock_tracker.update_ticket.assert_not_called()

    def test_dry_run_sends_and_writes_nothing(self, repository, mock_tracker, state_store, state_file, new_ticket, sample_ticket):
        repository.files[FILE] = [new_ticket, sample_ticket]
        service = PushService(repository, mock_tracker, state_store, dry_run=True)

        result = service.push(FILE)

        assert result.dry_run
        assert result.tickets_created == 1
        assert result.tickets_updated == 1
        assert result.tasks_created == 1
        assert result.tasks_updated == 1
        mock_tracker.create_ticket.assert_not_called()
        mock_tracker.update_ticket.assert_not_called()
        assert repository.saved == []
        assert not state_file.exists()

    def test_failures_are_collected(self, service, repository, mock_tracker, sample_ticket, new_ticket):
        repository.files[FILE] = [sample_ticket, new_ticket]
        mock_tracker.update_ticket.side_effect = TrackerError("HTTP 500")
        mock_tracker.create_ticket.return_value = "PROJ-20"
        mock_tracker.create_task.return_value = "PROJ-21"

        with pytest.raises(PushError) as exc_info:
            service.push(FILE)

        result = exc_info.value.result
        assert result.tickets_created == 1
        assert len(result.errors) == 1
        assert "Failed to update ticket 'Login page' (PROJ-10)" in result.errors[0]
        mock_tracker.update_task.assert_not_called()
        assert repository.files[FILE][1].jira_id == "PROJ-20"

    def test_task_failure_is_reported(self, service, repository, mock_tracker, sample_ticket):
        repository.files[FILE] = [sample_ticket]
        mock_tracker.update_task.side_effect = TrackerError("boom")

        with pytest.raises(PushError) as exc_info:
            service.push(FILE)

        assert exc_info.value.result.tickets_updated == 1
        assert "Failed to update task 'Build login form'" in exc_info.value.result.errors[0]

    def test_task_without_parent_id(self, service, repository, mock_tracker, new_ticket):
        repository.files[FILE] = [new_ticket]
        mock_tracker.create_ticket.return_value = ""

        with pytest.raises(PushError) as exc_info:
            service.push(FILE)

        assert "parent ticket has no Jira ID" in exc_info.value.result.errors[0]
        mock_tracker.create_task.assert_not_called()

    def test_corrupt_state_pushes_everything(self, service, repository, mock_tracker, sample_ticket, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("not json")
        repository.files[FILE] = [sample_ticket]

        result = service.push(FILE)

        assert result.tickets_updated == 1
