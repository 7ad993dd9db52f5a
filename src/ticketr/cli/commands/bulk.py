"""
Bulk command - Update, move or delete many Jira tickets at once.

Examples:
    ticketr --bulk update --ids PROJ-1,PROJ-2 --set Priority=High --set "Story Points=5" -x
    ticketr --bulk move --ids PROJ-3 --parent PROJ-100 -x
"""

import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from ticketr.application.bulk import PARENT_CHANGE, BulkOperationExecutor
from ticketr.core.domain import BulkAction, BulkOperation, BulkOperationResult
from ticketr.core.exceptions import (
    BulkOperationError,
    BulkPartialFailureError,
    BulkValidationError,
)

from ..exit_codes import ExitCode
from ..logging import get_logger
from ..output import Console
from .common import connect, create_console, load_config


def parse_ids(raw: str | None) -> list[str]:
    """Split a comma separated ticket id list; empty entries are kept for validation."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",")]


def parse_value(raw: str) -> Any:
    """JSON scalars, lists and objects are typed; anything else stays a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def parse_changes(assignments: list[str] | None, parent: str | None = None) -> dict[str, Any]:
    """
    Parse repeated FIELD=VALUE arguments.

    Raises:
        BulkValidationError: If an assignment has no '=' or no field name.
    """
    changes: dict[str, Any] = {}
    for assignment in assignments or []:
        name, sep, value = assignment.partition("=")
        if not sep or not name.strip():
            raise BulkValidationError(f"invalid change '{assignment}': expected FIELD=VALUE")
        changes[name.strip()] = parse_value(value.strip())
    if parent is not None:
        changes[PARENT_CHANGE] = parent
    return changes


def run_bulk(args) -> int:
    """
    Run a bulk operation.

    Dry run unless --execute is given: the operation is validated and
    described, and Jira is not contacted. Ctrl+C while executing stops
    before the next ticket.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    console = create_console(args)
    console.header(f"ticketr Bulk {args.bulk.capitalize()}")

    operation = BulkOperation(
        action=args.bulk,
        ticket_ids=parse_ids(args.ids),
        changes=parse_changes(args.set, args.parent),
    )
    resolved = operation.validate()

    config = load_config(args, console)
    if config is None:
        return ExitCode.CONFIG_ERROR

    _describe(console, operation, resolved)

    if config.sync.dry_run:
        console.dry_run_banner()
        console.info("Use --execute to apply this operation")
        return ExitCode.SUCCESS

    tracker = connect(config, console)
    if tracker is None:
        return ExitCode.CONNECTION_ERROR

    executor = BulkOperationExecutor(tracker)
    log = get_logger("ticketr.bulk", action=operation.action.value)
    cancel_event = threading.Event()
    total = len(operation.ticket_ids)
    done = 0

    def on_progress(ticket_id: str, success: bool, error: BaseException | None) -> None:
        nonlocal done
        done += 1
        if success:
            log.bind(ticket=ticket_id).debug("Ticket processed")
        else:
            log.bind(ticket=ticket_id).warning(f"Ticket failed: {error}")
        console.progress(done, total, f"{ticket_id} {'ok' if success else 'failed'}")

    console.section("Executing")
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(executor.execute, operation, on_progress, cancel_event)
        try:
            result = _wait(future, cancel_event, console)
        except BulkPartialFailureError as e:
            _show_result(console, e.result)
            console.error(str(e))
            return ExitCode.PARTIAL_SUCCESS
        except BulkOperationError as e:
            _show_result(console, e.result)
            raise

    console.bulk_result(result)
    return ExitCode.SUCCESS


def _wait(future: Future, cancel_event: threading.Event, console: Console) -> BulkOperationResult:
    """Wait for the executor; the first Ctrl+C requests cancellation and keeps waiting."""
    try:
        return future.result()
    except KeyboardInterrupt:
        cancel_event.set()
        console.print()
        console.warning("Cancelling after the current ticket...")
        return future.result()


def _describe(console: Console, operation: BulkOperation, resolved: dict) -> None:
    console.section("Operation")
    console.detail(f"Action: {operation.action.value}")
    console.detail(f"Tickets ({len(operation.ticket_ids)}): {', '.join(operation.ticket_ids)}")
    if operation.action != BulkAction.DELETE:
        for name, value in resolved.items():
            console.detail(f"{name} = {value.as_text()}")


def _show_result(console: Console, result: BulkOperationResult | None) -> None:
    if result is not None and result.processed_count:
        console.bulk_result(result)
