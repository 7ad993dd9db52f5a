"""
File Config Provider - Load configuration from YAML or TOML files.

Looked up in the working directory when no path is given:
- .ticketr.yaml / .ticketr.yml
- .ticketr.toml
- pyproject.toml ([tool.ticketr] section)

Example .ticketr.yaml:

```yaml
jira:
  url: https://company.atlassian.net
  email: dev@company.com
  api_token: secret
  project: PROJ
  story_type: Story
  subtask_type: Sub-task
  fields:
    Story Points: {id: customfield_10016, type: number}

sync:
  execute: false
  verbose: false
  state_file: .ticketr.state
  strategy: three-way-merge

file: tickets.yaml
epic: PROJ-100
```
"""

import copy
import logging
from pathlib import Path
from typing import Any


try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python

import yaml

from ticketr.core.exceptions import ConfigError, ConfigFileError
from ticketr.core.ports.config_provider import (
    DEFAULT_STATE_FILE,
    AppConfig,
    ConfigProviderPort,
    SyncConfig,
    TrackerConfig,
)


CONFIG_FILE_NAMES = (
    ".ticketr.yaml",
    ".ticketr.yml",
    ".ticketr.toml",
    "pyproject.toml",
)

PYPROJECT_SECTION = "ticketr"

# argparse destination -> dotted config key
CLI_OVERRIDE_KEYS = {
    "jira_url": "jira.url",
    "jira_email": "jira.email",
    "jira_token": "jira.api_token",
    "project": "jira.project",
    "verbose": "sync.verbose",
    "execute": "sync.execute",
    "state_file": "sync.state_file",
    "strategy": "sync.strategy",
    "force": "sync.force",
    "file": "file",
    "epic": "epic",
    "jql": "jql",
}


class FileConfigProvider(ConfigProviderPort):
    """
    Configuration provider that reads a YAML or TOML config file.

    CLI overrides are applied on top of the file values.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_path: Explicit config file; auto-detected when None
            cli_overrides: Parsed command line arguments (argparse vars)
        """
        self._explicit_path = Path(config_path) if config_path else None
        self._cli_overrides = cli_overrides or {}
        self._data: dict[str, Any] | None = None
        self._config_file: Path | None = None
        self.logger = logging.getLogger("FileConfigProvider")

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        path = self.config_file_path
        return f"File ({path.name})" if path else "File (none)"

    @property
    def config_file_path(self) -> Path | None:
        """The config file in use, if any."""
        if self._explicit_path is not None:
            return self._explicit_path
        if self._config_file is None:
            self._config_file = find_config_file(Path.cwd())
        return self._config_file

    def load(self) -> AppConfig:
        data = self.load_data()
        apply_cli_overrides(data, self._cli_overrides)
        return build_app_config(data)

    def get(self, key: str, default: Any = None) -> Any:
        data = self.load_data()
        apply_cli_overrides(data, self._cli_overrides)
        return get_path(data, key, default)

    def validate(self) -> list[str]:
        try:
            config = self.load()
        except ConfigError as e:
            return [str(e)]

        errors = []
        source = self.config_file_path.name if self.config_file_path else "config file"
        if not config.tracker.url:
            errors.append(f"Missing jira.url in {source}")
        if not config.tracker.email:
            errors.append(f"Missing jira.email in {source}")
        if not config.tracker.api_token:
            errors.append(f"Missing jira.api_token in {source}")
        return errors

    # -------------------------------------------------------------------------
    # File Loading
    # -------------------------------------------------------------------------

    def load_data(self) -> dict[str, Any]:
        """
        Raw nested config values from the file (empty without a file).

        Raises:
            ConfigFileError: If the file is missing or cannot be parsed.
        """
        if self._data is None:
            path = self.config_file_path
            if path is None:
                self._data = {}
            else:
                self._data = load_config_file(path)
                self.logger.debug(f"Loaded configuration from {path}")
        return copy.deepcopy(self._data)


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def find_config_file(directory: Path) -> Path | None:
    """First known config file in a directory; pyproject.toml only with a [tool.ticketr] table."""
    for file_name in CONFIG_FILE_NAMES:
        candidate = directory / file_name
        if not candidate.is_file():
            continue
        if file_name == "pyproject.toml" and not _has_tool_section(candidate):
            continue
        return candidate
    return None


def _has_tool_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return PYPROJECT_SECTION in data.get("tool", {})


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or TOML config file into a dict."""
    if not path.is_file():
        raise ConfigFileError("Config file not found", config_path=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError("Cannot read config file", config_path=str(path), cause=e) from e

    if path.suffix == ".toml":
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ConfigFileError(
                f"Invalid TOML syntax: {e}", config_path=str(path), cause=e
            ) from e
        if path.name == "pyproject.toml":
            data = data.get("tool", {}).get(PYPROJECT_SECTION, {})
    else:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigFileError(
                f"Invalid YAML syntax: {e}", config_path=str(path), cause=e
            ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError("Config root must be a mapping", config_path=str(path))
    return data


def get_path(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up a dotted key such as 'sync.verbose'."""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_path(data: dict[str, Any], key: str, value: Any) -> None:
    """Set a dotted key, creating intermediate tables."""
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested
    current[parts[-1]] = value


def apply_cli_overrides(data: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Overlay argparse values; None and False mean the flag was not given."""
    for dest, key in CLI_OVERRIDE_KEYS.items():
        value = overrides.get(dest)
        if value is None or value is False:
            continue
        set_path(data, key, value)


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def build_app_config(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from nested config values."""
    jira = data.get("jira") or {}
    sync = data.get("sync") or {}

    tracker = TrackerConfig(
        url=str(jira.get("url") or "").rstrip("/"),
        email=str(jira.get("email") or ""),
        api_token=str(jira.get("api_token") or ""),
        project_key=jira.get("project") or None,
        story_type=jira.get("story_type") or "Task",
        subtask_type=jira.get("subtask_type") or "Sub-task",
        field_mappings=dict(jira.get("fields") or {}),
    )

    sync_config = SyncConfig(
        dry_run=not to_bool(sync.get("execute", False)),
        verbose=to_bool(sync.get("verbose", False)),
        state_file=sync.get("state_file") or DEFAULT_STATE_FILE,
        strategy=sync.get("strategy") or None,
        force=to_bool(sync.get("force", False)),
    )

    return AppConfig(
        tracker=tracker,
        sync=sync_config,
        ticket_file=data.get("file") or None,
        epic_key=data.get("epic") or None,
        jql=data.get("jql") or None,
    )
