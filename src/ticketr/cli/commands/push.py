"""
Push command - Create and update Jira tickets from the local ticket file.
"""

from ticketr.adapters import JiraAdapter, YamlTicketRepository
from ticketr.application.sync import PushService, StateStore
from ticketr.core.exceptions import PushError

from ..exit_codes import ExitCode
from .common import connect, create_console, load_config


def run_push(args) -> int:
    """
    Run a push of every changed ticket in the ticket file.

    Dry run unless --execute is given; a dry run never contacts Jira.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    console = create_console(args)
    console.header("ticketr Push")

    config = load_config(args, console)
    if config is None:
        return ExitCode.CONFIG_ERROR

    ticket_file = config.ticket_file
    if not ticket_file:
        console.error("No ticket file given (use --file or set 'file' in the config)")
        return ExitCode.CONFIG_ERROR

    dry_run = config.sync.dry_run
    console.info(f"File: {ticket_file}")
    if dry_run:
        console.dry_run_banner()
        tracker = JiraAdapter(config=config.tracker, dry_run=True)
    else:
        tracker = connect(config, console)
        if tracker is None:
            return ExitCode.CONNECTION_ERROR

    service = PushService(
        repository=YamlTicketRepository(),
        tracker=tracker,
        state_store=StateStore(config.sync.state_file),
        dry_run=dry_run,
    )

    console.section("Pushing to Jira")
    try:
        result = service.push(ticket_file)
    except PushError as e:
        console.push_result(e.result)
        return ExitCode.PARTIAL_SUCCESS

    console.push_result(result)
    return ExitCode.SUCCESS
