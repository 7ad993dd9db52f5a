"""
Output - Console output formatting for the ticketr CLI.

Provides colored status lines, tables, progress bars and result summaries.
"""

import sys

from ticketr.application.sync import PullResult, PushResult
from ticketr.core.domain import BulkOperationResult
from ticketr.core.exceptions import TicketrError


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"

    BG_YELLOW = "\033[43m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    GEAR = "⚙"

    BOX_H = "─"


# Shown under an error message, keyed by exception class name
ERROR_HINTS = {
    "AuthenticationError": "Check JIRA_EMAIL and JIRA_API_TOKEN",
    "AccessDeniedError": "The Jira user needs permission to browse and edit the project",
    "TransientError": "Jira is unreachable or failing; try again later",
    "RateLimitError": "Jira is rate limiting requests; try again later",
    "ConflictDetectedError": "Rerun with --force to take the remote version, or pick a --strategy",
    "ConflictResolutionError": "Resolve the conflicting fields by hand, or use another --strategy",
    "LocalFileNotFoundError": "Check the --file path",
    "UnknownStrategyError": "Use one of: local-wins, remote-wins, three-way-merge",
    "BulkValidationError": "Ticket IDs look like PROJ-123; at most 100 per operation",
}


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress everything but errors and summaries.
    """

    def __init__(self, color: bool = True, verbose: bool = False, quiet: bool = False):
        """
        Args:
            color: Enable colored output. Disabled automatically when stdout is not a TTY.
            verbose: Enable debug output.
            quiet: Only print errors and final summaries.
        """
        self.color = color and sys.stdout.isatty()
        self.verbose = verbose and not quiet
        self.quiet = quiet
        self._last_progress_message = ""

    def _c(self, text: str, *codes: str) -> str:
        """Wrap text in color codes when color is enabled."""
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "", force: bool = False) -> None:
        """Print text to stdout; skipped in quiet mode unless forced."""
        if self.quiet and not force:
            return
        print(text)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def header(self, text: str) -> None:
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """Print an error; errors print even in quiet mode."""
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED))

    def error_rich(self, exc: BaseException) -> None:
        """Print an exception with its cause and a hint on how to fix it."""
        name = type(exc).__name__
        message = exc.message if isinstance(exc, TicketrError) else str(exc)
        self.error(f"{name}: {message}")

        cause = exc.cause if isinstance(exc, TicketrError) else exc.__cause__
        if cause is not None:
            print(self._c(f"    caused by: {cause}", Colors.DIM))

        hint = ERROR_HINTS.get(name)
        if hint:
            print(self._c(f"    hint: {hint}", Colors.DIM))

    def config_errors(self, errors: list[str]) -> None:
        """Print configuration errors; always printed."""
        self.error("Configuration is incomplete:")
        for err in errors:
            print(self._c(f"    {Symbols.DOT} {err}", Colors.RED))
        print(
            self._c(
                "    Set values in .ticketr.yaml, a .env file or the environment",
                Colors.DIM,
            )
        )

    def warning(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def item(self, text: str, status: str | None = None) -> None:
        """
        Print a list item with an optional status: "ok", "skip", "fail",
        or any other label shown dimmed.
        """
        if self.quiet:
            return
        status_str = ""
        if status == "ok":
            status_str = self._c(f" [{Symbols.CHECK}]", Colors.GREEN)
        elif status == "skip":
            status_str = self._c(" [SKIP]", Colors.YELLOW)
        elif status == "fail":
            status_str = self._c(f" [{Symbols.CROSS}]", Colors.RED)
        elif status:
            status_str = self._c(f" [{status}]", Colors.DIM)

        self.print(f"    {Symbols.DOT} {text}{status_str}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        self.print(
            "  " + "  ".join(self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers))
        )
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in rows:
            self.print("  " + "  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

    def progress(self, current: int, total: int, message: str = "") -> None:
        """Print a progress bar; updated in place on a terminal."""
        if self.quiet or total <= 0:
            return

        width = 30
        filled = int(width * current / total)
        bar = "█" * filled + "░" * (width - filled)
        pct = int(100 * current / total)

        if sys.stdout.isatty():
            sys.stdout.write(f"\r  [{bar}] {pct:>3}% {message:<25}")
            sys.stdout.flush()
            if current >= total:
                self.print()
        elif message != self._last_progress_message:
            self._last_progress_message = message
            self.print(f"  [{bar}] {pct:>3}% {message}")

    def dry_run_banner(self) -> None:
        if self.quiet:
            return
        self.print()
        banner = f"  {Symbols.GEAR} DRY-RUN MODE - No changes will be made"
        if self.color:
            self.print(f"{Colors.BG_YELLOW}{Colors.BOLD}{banner}{Colors.RESET}")
        else:
            self.print(f"*** {banner} ***")
        self.print()

    # -------------------------------------------------------------------------
    # Result Summaries
    # -------------------------------------------------------------------------

    def pull_result(self, result: PullResult) -> None:
        if self.quiet:
            status = "CONFLICTS" if result.has_conflicts else "OK"
            print(
                f"status={status} pulled={result.tickets_pulled} "
                f"updated={result.tickets_updated} skipped={result.tickets_skipped} "
                f"conflicts={len(result.conflicts)}"
            )
            return

        self.section("Pull Complete")
        self.table(
            ["Metric", "Count"],
            [
                ["New tickets", str(result.tickets_pulled)],
                ["Updated", str(result.tickets_updated)],
                ["Unchanged", str(result.tickets_skipped)],
                ["Conflicts", str(len(result.conflicts))],
            ],
        )

        if result.has_conflicts:
            self.print()
            self.warning(f"{len(result.conflicts)} ticket(s) changed both locally and remotely:")
            for ticket_id in result.conflicts:
                self.item(ticket_id, "skip")
        else:
            self.print()
            self.success("Local file is up to date")

    def push_result(self, result: PushResult) -> None:
        if self.quiet:
            status = "OK" if result.success else "FAILED"
            mode = "dry-run" if result.dry_run else "executed"
            print(
                f"status={status} mode={mode} created={result.tickets_created} "
                f"updated={result.tickets_updated} skipped={result.tickets_skipped} "
                f"tasks_created={result.tasks_created} tasks_updated={result.tasks_updated} "
                f"errors={len(result.errors)}"
            )
            for err in result.errors:
                print(f"ERROR: {err}")
            return

        self.section("Push Complete")
        self.table(
            ["Metric", "Count"],
            [
                ["Tickets", f"{result.tickets_created} created, {result.tickets_updated} updated"],
                ["Tasks", f"{result.tasks_created} created, {result.tasks_updated} updated"],
                ["Unchanged", str(result.tickets_skipped)],
            ],
        )

        if result.errors:
            self.print()
            self.error(f"{len(result.errors)} error(s):")
            for err in result.errors[:10]:
                self.detail(err)
            if len(result.errors) > 10:
                self.detail(f"... and {len(result.errors) - 10} more")
        elif result.dry_run:
            self.print()
            self.info("Dry run: use --execute to push these changes")
        else:
            self.print()
            self.success("Push completed successfully!")

    def bulk_result(self, result: BulkOperationResult) -> None:
        if self.quiet:
            print(f"succeeded={result.success_count} failed={result.failure_count}")
            for ticket_id in result.failed_tickets:
                print(f"ERROR: {ticket_id}: {result.errors.get(ticket_id, '')}")
            return

        self.section("Bulk Operation Summary")
        for ticket_id in result.successful_tickets:
            self.item(ticket_id, "ok")
        for ticket_id in result.failed_tickets:
            self.item(f"{ticket_id}: {result.errors.get(ticket_id, '')}", "fail")

        self.print()
        if result.failure_count:
            self.warning(
                f"{result.success_count} succeeded, {result.failure_count} failed "
                f"of {result.processed_count} processed"
            )
        else:
            self.success(f"All {result.success_count} ticket(s) processed")
