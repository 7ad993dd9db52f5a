"""
Sync module - pull reconciliation, push, sync state and conflict strategies.
"""

from .pull import PullOptions, PullResult, PullService, build_query
from .push import PushResult, PushService, final_task_fields
from .state import StateStore, TicketState, calculate_hash
from .strategies import (
    STRATEGY_LOCAL_WINS,
    STRATEGY_REMOTE_WINS,
    STRATEGY_THREE_WAY_MERGE,
    LocalWinsStrategy,
    RemoteWinsStrategy,
    ThreeWayMergeStrategy,
    available_strategies,
    create_strategy,
)


__all__ = [
    "STRATEGY_LOCAL_WINS",
    "STRATEGY_REMOTE_WINS",
    "STRATEGY_THREE_WAY_MERGE",
    "LocalWinsStrategy",
    "PullOptions",
    "PullResult",
    "PullService",
    "PushResult",
    "PushService",
    "RemoteWinsStrategy",
    "StateStore",
    "ThreeWayMergeStrategy",
    "TicketState",
    "available_strategies",
    "build_query",
    "calculate_hash",
    "create_strategy",
    "final_task_fields",
]
