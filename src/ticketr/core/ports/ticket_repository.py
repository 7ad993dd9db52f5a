"""
Ticket Repository Port - Abstract interface for the local ticket file.

Implementations:
- YamlTicketRepository: tickets stored in a YAML document
"""

from abc import ABC, abstractmethod

from ticketr.core.domain.entities import Ticket


class TicketRepositoryPort(ABC):
    """Reads and writes the locally editable ticket collection."""

    @abstractmethod
    def get_tickets(self, path: str) -> list[Ticket]:
        """
        Load every ticket from a file, in file order.

        Raises:
            LocalFileNotFoundError: If the file does not exist.
            RepositoryError: If the file cannot be read or parsed.
        """
        ...

    @abstractmethod
    def save_tickets(self, path: str, tickets: list[Ticket]) -> None:
        """
        Replace the contents of a file with the given tickets.

        Raises:
            RepositoryError: If the file cannot be written.
        """
        ...
