"""
Shared pytest fixtures for the ticketr test suite.

Fixture Categories:
- Domain: Sample tickets and tasks
- Configuration: TrackerConfig
- Doubles: Mock tracker, in-memory ticket repository, state store
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from ticketr.application.sync import StateStore
from ticketr.core.domain import Task, Ticket
from ticketr.core.exceptions import LocalFileNotFoundError
from ticketr.core.ports import IssueTrackerPort, TicketRepositoryPort, TrackerConfig


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def sample_task() -> Task:
    """A task already created remotely."""
    return Task(
        title="Build login form",
        description="Email and password inputs",
        custom_fields={"Assignee": "acc-1"},
        jira_id="PROJ-11",
    )


@pytest.fixture
def sample_ticket(sample_task: Task) -> Ticket:
    """A remote ticket with one task."""
    return Ticket(
        title="Login page",
        description="Users sign in with email and password.",
        custom_fields={"Priority": "High", "Story Points": "5"},
        acceptance_criteria=["Wrong password shows an error"],
        jira_id="PROJ-10",
        tasks=[sample_task],
    )


@pytest.fixture
def new_ticket() -> Ticket:
    """A ticket that has never been pushed."""
    return Ticket(
        title="Password reset",
        description="Send a reset link by email.",
        tasks=[Task(title="Reset email template")],
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """A complete tracker configuration."""
    return TrackerConfig(
        url="https://example.atlassian.net",
        email="dev@example.com",
        api_token="token",
        project_key="PROJ",
    )


# =============================================================================
# Doubles
# =============================================================================


class InMemoryTicketRepository(TicketRepositoryPort):
    """Ticket repository keeping files in a dict."""

    def __init__(self, files: dict[str, list[Ticket]] | None = None):
        self.files: dict[str, list[Ticket]] = files or {}
        self.saved: list[tuple[str, list[Ticket]]] = []

    def get_tickets(self, path: str) -> list[Ticket]:
        if path not in self.files:
            raise LocalFileNotFoundError(path)
        return [ticket.copy() for ticket in self.files[path]]

    def save_tickets(self, path: str, tickets: list[Ticket]) -> None:
        self.files[path] = [ticket.copy() for ticket in tickets]
        self.saved.append((path, self.files[path]))


@pytest.fixture
def repository() -> InMemoryTicketRepository:
    """An empty in-memory ticket repository."""
    return InMemoryTicketRepository()


@pytest.fixture
def mock_tracker() -> Mock:
    """Mock issue tracker; deletion unsupported unless a test says otherwise."""
    tracker = Mock(spec=IssueTrackerPort)
    tracker.name = "Mock"
    tracker.supports_delete = False
    tracker.search_tickets.return_value = []
    return tracker


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    """Path of a state file that does not exist yet."""
    return tmp_path / "state" / ".ticketr.state"


@pytest.fixture
def state_store(state_file: Path) -> StateStore:
    """A state store backed by a temporary file."""
    return StateStore(state_file)
