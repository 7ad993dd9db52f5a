"""
Environment Config Provider - Layer environment variables over file config.

Precedence (highest first):
1. CLI overrides
2. Environment variables
3. .env file
4. Config file (.ticketr.yaml, .ticketr.toml, pyproject.toml)
"""

import logging
import os
from pathlib import Path
from typing import Any

from ticketr.core.exceptions import ConfigError
from ticketr.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_provider import (
    FileConfigProvider,
    apply_cli_overrides,
    build_app_config,
    get_path,
    set_path,
)


# Environment variable -> dotted config key
ENV_KEYS = {
    "JIRA_URL": "jira.url",
    "JIRA_EMAIL": "jira.email",
    "JIRA_API_TOKEN": "jira.api_token",
    "JIRA_PROJECT_KEY": "jira.project",
    "JIRA_STORY_TYPE": "jira.story_type",
    "JIRA_SUBTASK_TYPE": "jira.subtask_type",
    "TICKETR_STATE_FILE": "sync.state_file",
    "TICKETR_STRATEGY": "sync.strategy",
}

# Accepted for compatibility when the primary variable is unset
ENV_ALIASES = {
    "JIRA_API_KEY": "JIRA_API_TOKEN",
}


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider combining CLI, environment, .env and config file.
    """

    def __init__(
        self,
        config_file: str | Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
        env_file: str | Path | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_file: Explicit config file; auto-detected when None
            cli_overrides: Parsed command line arguments (argparse vars)
            env_file: .env file; defaults to .env in the working directory
        """
        self._file_provider = FileConfigProvider(config_path=config_file)
        self._cli_overrides = cli_overrides or {}
        self._env_file = Path(env_file) if env_file else None
        self._config: AppConfig | None = None
        self.logger = logging.getLogger("EnvironmentConfigProvider")

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        path = self._file_provider.config_file_path
        if path is not None:
            return f"Environment + {path.name}"
        return "Environment"

    def load(self) -> AppConfig:
        if self._config is None:
            self._config = build_app_config(self._merged())
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        return get_path(self._merged(), key, default)

    def validate(self) -> list[str]:
        try:
            config = self.load()
        except ConfigError as e:
            return [str(e)]

        errors = []
        if not config.tracker.url:
            errors.append(
                "Missing Jira URL: set jira.url in the config file or the JIRA_URL environment variable"
            )
        if not config.tracker.email:
            errors.append(
                "Missing Jira email: set jira.email in the config file or the JIRA_EMAIL environment variable"
            )
        if not config.tracker.api_token:
            errors.append(
                "Missing API token: set jira.api_token in the config file or the "
                "JIRA_API_TOKEN environment variable"
            )
        return errors

    # -------------------------------------------------------------------------
    # Layering
    # -------------------------------------------------------------------------

    def _merged(self) -> dict[str, Any]:
        data = self._file_provider.load_data()

        env_file = self._env_file or Path.cwd() / ".env"
        if env_file.is_file():
            self._apply_env(data, load_env_file(env_file))
            self.logger.debug(f"Loaded environment from {env_file}")

        self._apply_env(data, os.environ)
        apply_cli_overrides(data, self._cli_overrides)
        return data

    @staticmethod
    def _apply_env(data: dict[str, Any], env: Any) -> None:
        for alias, primary in ENV_ALIASES.items():
            if env.get(alias) and not env.get(primary):
                set_path(data, ENV_KEYS[primary], env[alias])
        for var, key in ENV_KEYS.items():
            value = env.get(var)
            if value:
                set_path(data, key, value)


def load_env_file(path: Path) -> dict[str, str]:
    """Parse KEY=VALUE lines from a .env file."""
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values
