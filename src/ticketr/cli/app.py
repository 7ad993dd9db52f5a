"""
CLI App - Main entry point for the ticketr command line tool.
"""

import argparse
import logging
import sys

from ticketr import __version__
from ticketr.application.sync import available_strategies

from .commands import run_bulk, run_pull, run_push
from .exit_codes import ExitCode
from .logging import setup_logging
from .output import Console


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for ticketr.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="ticketr",
        description="Keep a local YAML ticket file in sync with Jira",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pull tickets of a project into a file
  ticketr --pull -f tickets.yaml --project PROJ

  # Pull only the children of an epic, taking remote changes on conflict
  ticketr --pull -f tickets.yaml --project PROJ --epic PROJ-100 --force

  # Merge concurrent edits field by field
  ticketr --pull -f tickets.yaml --project PROJ --strategy three-way-merge

  # Preview a push, then run it
  ticketr --push -f tickets.yaml
  ticketr --push -f tickets.yaml --execute

  # Bulk update two tickets
  ticketr --bulk update --ids PROJ-1,PROJ-2 --set Priority=High --execute

  # Move tickets under another parent
  ticketr --bulk move --ids PROJ-3,PROJ-4 --parent PROJ-100 --execute

Environment Variables:
  JIRA_URL           Jira instance URL (e.g., https://company.atlassian.net)
  JIRA_EMAIL         Jira account email
  JIRA_API_TOKEN     Jira API token (JIRA_API_KEY is also accepted)
  JIRA_PROJECT_KEY   Default project key
  TICKETR_STATE_FILE Sync state file (default: .ticketr.state)
  TICKETR_STRATEGY   Default conflict strategy for pulls

Exit Codes:
  0 success, 1 error, 2 config error, 3 file not found, 4 connection error,
  5 authentication error, 6 validation error, 7 unresolved conflicts,
  8 partial failure, 9 cancelled, 130 interrupted
        """,
    )

    # Modes
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--pull", action="store_true", help="Pull tickets from Jira into the file")
    mode.add_argument("--push", action="store_true", help="Push changed tickets to Jira")
    mode.add_argument(
        "--bulk",
        choices=["update", "move", "delete"],
        metavar="ACTION",
        help="Bulk operation on Jira tickets: update, move or delete",
    )

    # Input
    parser.add_argument("--file", "-f", type=str, help="Path to the YAML ticket file")
    parser.add_argument("--config", "-c", type=str, help="Path to a config file")
    parser.add_argument("--state-file", type=str, help="Path to the sync state file")

    # Pull
    pull_group = parser.add_argument_group("pull options")
    pull_group.add_argument("--project", type=str, help="Jira project key")
    pull_group.add_argument("--jql", type=str, help="Extra JQL filter")
    pull_group.add_argument("--epic", type=str, help="Only pull children of this epic")
    pull_group.add_argument(
        "--force", action="store_true", help="Take the remote version when both sides changed"
    )
    pull_group.add_argument(
        "--strategy",
        choices=available_strategies(),
        help="Conflict resolution strategy",
    )

    # Bulk
    bulk_group = parser.add_argument_group("bulk options")
    bulk_group.add_argument("--ids", type=str, help="Comma separated ticket IDs (max 100)")
    bulk_group.add_argument(
        "--set",
        action="append",
        metavar="FIELD=VALUE",
        help="Field change for update (repeatable); JSON values are typed",
    )
    bulk_group.add_argument("--parent", type=str, help="New parent ticket for move")

    # Execution
    parser.add_argument(
        "--execute",
        "-x",
        action="store_true",
        help="Apply changes for --push and --bulk (default is a dry run)",
    )

    # Output
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print errors and summaries")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log format (default: text)",
    )
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the ticketr CLI.

    Parses arguments, sets up logging, and runs the selected mode.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(
        level=log_level,
        log_format=args.log_format,
        log_file=args.log_file,
        static_fields={"service": "ticketr"} if args.log_format == "json" else None,
    )

    console = Console(color=not args.no_color, verbose=args.verbose, quiet=args.quiet)

    try:
        if args.pull:
            return run_pull(args)
        if args.push:
            return run_push(args)
        return run_bulk(args)

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.SIGINT

    except Exception as e:
        console.error_rich(e)
        if args.verbose:
            import traceback

            console.print()
            traceback.print_exc()
        return ExitCode.from_exception(e)


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
