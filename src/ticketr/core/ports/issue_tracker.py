"""
Issue Tracker Port - Abstract interface for the remote issue tracker.

Implementations:
- JiraAdapter: Atlassian Jira (REST API v2)
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerError,
    TransientError,
    UnsupportedOperationError,
)


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "IssueTrackerPort",
    "NotFoundError",
    "ProgressCallback",
    "RateLimitError",
    "TrackerError",
    "TransientError",
    "UnsupportedOperationError",
]


# (current, total, message)
ProgressCallback = Callable[[int, int, str], None]


class IssueTrackerPort(ABC):
    """
    Abstract interface for issue tracker operations.

    Every method may raise a TrackerError subclass; callers decide whether
    a failure is fatal or only affects a single ticket.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tracker name (e.g., 'Jira')."""
        ...

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    @abstractmethod
    def authenticate(self) -> None:
        """
        Verify connectivity and credentials.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        ...

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def search_tickets(
        self,
        project_key: str,
        jql: str,
        progress_callback: ProgressCallback | None = None,
    ) -> list[Ticket]:
        """
        Fetch every ticket matching a query.

        Implementations paginate internally and return the complete list.

        Args:
            project_key: Project used when the query is empty.
            jql: Full search query; when empty every ticket in the project
                is returned.
            progress_callback: Optional (current, total, message) callback
                invoked as pages arrive.
        """
        ...

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_ticket(self, ticket: Ticket) -> str:
        """Create a ticket and return its new remote key."""
        ...

    @abstractmethod
    def update_ticket(self, ticket: Ticket) -> None:
        """Overwrite the remote ticket identified by ticket.jira_id."""
        ...

    @abstractmethod
    def create_task(self, task: Task, parent_id: str) -> str:
        """Create a task under a parent ticket and return its new remote key."""
        ...

    @abstractmethod
    def update_task(self, task: Task) -> None:
        """Overwrite the remote task identified by task.jira_id."""
        ...

    # -------------------------------------------------------------------------
    # Optional Capabilities
    # -------------------------------------------------------------------------

    @property
    def supports_delete(self) -> bool:
        """Whether delete_ticket is implemented by this tracker."""
        return False

    def delete_ticket(self, ticket_id: str) -> None:
        """
        Delete a remote ticket.

        Raises:
            UnsupportedOperationError: Unless the adapter overrides this.
        """
        raise UnsupportedOperationError("delete", self.name)
