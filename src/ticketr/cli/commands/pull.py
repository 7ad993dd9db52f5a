"""
Pull command - Bring remote Jira tickets into the local ticket file.
"""

from ticketr.adapters import YamlTicketRepository
from ticketr.application.sync import PullOptions, PullService, StateStore, create_strategy
from ticketr.core.exceptions import ConflictDetectedError

from ..exit_codes import ExitCode
from .common import connect, create_console, load_config


def run_pull(args) -> int:
    """
    Run a pull: search Jira and reconcile the results into the ticket file.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    console = create_console(args)
    console.header("ticketr Pull")

    config = load_config(args, console)
    if config is None:
        return ExitCode.CONFIG_ERROR

    ticket_file = config.ticket_file
    if not ticket_file:
        console.error("No ticket file given (use --file or set 'file' in the config)")
        return ExitCode.CONFIG_ERROR

    strategy = create_strategy(config.sync.strategy) if config.sync.strategy else None

    console.info(f"File: {ticket_file}")
    if config.epic_key:
        console.info(f"Epic: {config.epic_key}")
    if strategy is not None:
        console.info(f"Conflict strategy: {strategy.name}")
    elif config.sync.force:
        console.info("Conflicts: remote version wins (--force)")

    # Pull only reads from Jira
    tracker = connect(config, console, dry_run=True)
    if tracker is None:
        return ExitCode.CONNECTION_ERROR

    service = PullService(
        tracker=tracker,
        repository=YamlTicketRepository(),
        state_store=StateStore(config.sync.state_file),
        strategy=strategy,
    )
    options = PullOptions(
        project_key=config.tracker.project_key or "",
        jql=config.jql or "",
        epic_key=config.epic_key or "",
        force=config.sync.force,
        progress_callback=console.progress,
    )

    console.section("Pulling from Jira")
    try:
        result = service.pull(ticket_file, options)
    except ConflictDetectedError as e:
        if e.result is not None:
            console.pull_result(e.result)
        console.error(str(e))
        console.detail("Rerun with --force to take the remote version, or pick a --strategy")
        return ExitCode.SYNC_ERROR

    console.pull_result(result)
    return ExitCode.SUCCESS
