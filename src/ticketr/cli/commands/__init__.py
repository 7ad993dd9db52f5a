"""
CLI Commands Package - Command handlers for the ticketr CLI.
"""

from .bulk import parse_changes, parse_ids, run_bulk
from .pull import run_pull
from .push import run_push


__all__ = [
    "parse_changes",
    "parse_ids",
    "run_bulk",
    "run_pull",
    "run_push",
]
