"""
Shared setup for CLI command handlers.
"""

from pathlib import Path

from ticketr.adapters import EnvironmentConfigProvider, JiraAdapter
from ticketr.core.ports.config_provider import AppConfig

from ..output import Console


def create_console(args) -> Console:
    """Build the console from the output flags."""
    return Console(
        color=not getattr(args, "no_color", False),
        verbose=getattr(args, "verbose", False),
        quiet=getattr(args, "quiet", False),
    )


def load_config(args, console: Console) -> AppConfig | None:
    """
    Load configuration with CLI overrides applied.

    Returns:
        The configuration, or None after printing the problems.
    """
    config_file = Path(args.config) if getattr(args, "config", None) else None
    provider = EnvironmentConfigProvider(config_file=config_file, cli_overrides=vars(args))

    errors = provider.validate()
    if errors:
        console.config_errors(errors)
        return None

    console.debug(f"Configuration: {provider.name}")
    return provider.load()


def connect(config: AppConfig, console: Console, dry_run: bool = False) -> JiraAdapter | None:
    """
    Create the Jira adapter and check the connection.

    Returns:
        The adapter, or None after printing the connection problem.
    """
    tracker = JiraAdapter(config=config.tracker, dry_run=dry_run)

    console.section("Connecting to Jira")
    if not tracker.test_connection():
        console.error(f"Could not connect to {config.tracker.url}")
        console.detail("Check JIRA_URL, JIRA_EMAIL and JIRA_API_TOKEN")
        return None

    user = tracker.get_current_user()
    console.success(f"Connected as: {user.get('displayName', user.get('emailAddress', 'Unknown'))}")
    return tracker
