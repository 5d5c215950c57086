"""CLI package for abook_sync."""

from abook_sync.cli.formatters import (
    console_chooser,
    console_confirm,
    console_reporter,
)
from abook_sync.cli.main import cli

__all__ = [
    "cli",
    "console_chooser",
    "console_confirm",
    "console_reporter",
]
