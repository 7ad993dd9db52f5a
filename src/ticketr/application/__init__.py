"""
Application layer - use cases built on the core ports.
"""

from .bulk import BulkOperationExecutor
from .sync import (
    PullOptions,
    PullResult,
    PullService,
    PushResult,
    PushService,
    StateStore,
    create_strategy,
)


__all__ = [
    "BulkOperationExecutor",
    "PullOptions",
    "PullResult",
    "PullService",
    "PushResult",
    "PushService",
    "StateStore",
    "create_strategy",
]
