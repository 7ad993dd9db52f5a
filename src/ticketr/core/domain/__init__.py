"""
Domain layer - tickets, tasks and bulk operation models.
"""

from .bulk import (
    MAX_TICKET_COUNT,
    MIN_TICKET_COUNT,
    BulkAction,
    BulkOperation,
    BulkOperationResult,
    ChangeKind,
    ChangeValue,
    is_valid_ticket_id,
)
from .entities import Task, Ticket


__all__ = [
    "MAX_TICKET_COUNT",
    "MIN_TICKET_COUNT",
    "BulkAction",
    "BulkOperation",
    "BulkOperationResult",
    "ChangeKind",
    "ChangeValue",
    "Task",
    "Ticket",
    "is_valid_ticket_id",
]
