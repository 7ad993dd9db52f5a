"""
Sync Strategy Port - Contract for conflict resolution policies.

A strategy answers two questions during a pull:
- should a remote change be taken into account at all?
- given a ticket that changed on both sides, what is the merged ticket?
"""

from abc import ABC, abstractmethod

from ticketr.core.domain.entities import Ticket


class SyncStrategy(ABC):
    """
    Stateless conflict resolution policy.

    Implementations must be safe to share and reuse across pulls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the strategy (e.g., 'local-wins')."""
        ...

    def should_sync(
        self,
        local_hash: str,
        remote_hash: str,
        stored_local_hash: str,
        stored_remote_hash: str,
    ) -> bool:
        """
        Check if the remote side changed since the last sync.

        The local hashes are accepted for symmetry; every built-in strategy
        only looks at the remote side.
        """
        return remote_hash != stored_remote_hash

    @abstractmethod
    def resolve_conflict(self, local: Ticket, remote: Ticket) -> Ticket:
        """
        Produce the ticket to keep when both sides changed.

        Raises:
            ValueError: If either ticket is None.
            UnresolvableConflictError: If the pair cannot be merged.
        """
        ...
