"""
Ports - Abstract interfaces between the application core and the outside world.
"""

from .config_provider import (
    DEFAULT_STATE_FILE,
    AppConfig,
    ConfigProviderPort,
    SyncConfig,
    TrackerConfig,
)
from .issue_tracker import IssueTrackerPort, ProgressCallback
from .sync_strategy import SyncStrategy
from .ticket_repository import TicketRepositoryPort


__all__ = [
    "DEFAULT_STATE_FILE",
    "AppConfig",
    "ConfigProviderPort",
    "IssueTrackerPort",
    "ProgressCallback",
    "SyncConfig",
    "SyncStrategy",
    "TicketRepositoryPort",
    "TrackerConfig",
]
