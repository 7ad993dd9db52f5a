"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- FileConfigProvider: Load from YAML/TOML config files
- EnvironmentConfigProvider: Layer env vars, .env and CLI overrides on top
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


DEFAULT_STATE_FILE = ".ticketr.state"


@dataclass
class TrackerConfig:
    """Configuration for the issue tracker (Jira)."""

    url: str
    email: str
    api_token: str
    project_key: str | None = None

    # Issue types used when creating tickets and tasks
    story_type: str = "Task"
    subtask_type: str = "Sub-task"

    # Human field name -> Jira field id, or {"id": ..., "type": ...}
    field_mappings: dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncConfig:
    """Configuration for pull, push and bulk operations."""

    dry_run: bool = True
    verbose: bool = False

    # State tracking
    state_file: str = DEFAULT_STATE_FILE

    # Conflict handling
    strategy: str | None = None  # local-wins, remote-wins, three-way-merge
    force: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""

    tracker: TrackerConfig
    sync: SyncConfig

    # Paths and queries
    ticket_file: str | None = None
    epic_key: str | None = None
    jql: str | None = None


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - Environment variables
    - .env files
    - YAML/TOML config files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
