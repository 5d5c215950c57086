"""CLI prompt and output functions.

This module contains the console side of the interactive sync: rendering a
conflict for the operator, reading the answer, and displaying results.
"""

import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, TextIO

import click

from abook_sync.sync.conflict import (
    Choice,
    Conflict,
    ConflictKind,
    InputError,
    OperationCancelled,
)

if TYPE_CHECKING:
    from abook_sync.i18n.translator import Translator
    from abook_sync.sync.engine import SyncResult

# Labels used in comparison lines
GOOGLE_LABEL = "Google Contacts"
ADDRESSBOOK_LABEL = ".addressbook"


def read_answer(stream: Optional[TextIO] = None) -> str:
    """
    Read one line of operator input.

    Raises:
        InputError: If input is closed or cannot be read
    """
    stream = stream or sys.stdin
    try:
        line = stream.readline()
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(str(e)) from e

    if not line:
        raise InputError("end of input")
    return line


def conflict_lines(conflict: Conflict) -> list[str]:
    """
    Render the comparison lines shown under a conflict prompt.

    Remote-only and local-only conflicts show nickname/name/email/note of the
    one side that has the address; diverged contacts show name/nickname/note
    of both sides.
    """
    local = conflict.local
    remote = conflict.remote

    if conflict.kind is ConflictKind.REMOTE_ONLY and remote is not None:
        return [f"{GOOGLE_LABEL}   :{remote.summary(conflict.email)}"]

    if conflict.kind is ConflictKind.LOCAL_ONLY and local is not None:
        return [f"{ADDRESSBOOK_LABEL}   :{local.summary()}"]

    lines = []
    if remote is not None:
        lines.append(
            f"{GOOGLE_LABEL}:{remote.display_name}/{remote.nickname}/{remote.note}"
        )
    if local is not None:
        lines.append(
            f"{ADDRESSBOOK_LABEL}   :{local.display_name}/{local.nickname}/{local.note}"
        )
    return lines


def console_chooser(
    translate: "Translator", stream: Optional[TextIO] = None
) -> Callable[[Conflict], Choice]:
    """
    Build a chooser that asks the operator on the console.

    Args:
        translate: Message lookup for the prompts
        stream: Input stream (default: stdin)

    Returns:
        Function that prompts for a Conflict and returns the Choice; any
        answer other than g or a raises OperationCancelled
    """

    def choose(conflict: Conflict) -> Choice:
        click.echo(translate(conflict.message_id))
        for line in conflict_lines(conflict):
            click.echo(line)

        answer = read_answer(stream)
        choice = Choice.from_input(answer)
        if choice is None:
            raise OperationCancelled(f"unrecognized answer {answer.strip()!r}")
        return choice

    return choose


def console_confirm(
    translate: "Translator", stream: Optional[TextIO] = None
) -> Callable[[], bool]:
    """Build an overwrite confirmation: True only for y/Y."""

    def confirm() -> bool:
        click.echo(translate("overwrite-or-not"))
        return read_answer(stream).strip().lower() == "y"

    return confirm


def console_reporter(translate: "Translator") -> Callable[[str], None]:
    """Build a reporter that echoes localized progress messages."""

    def report(message_id: str) -> None:
        click.echo(translate(message_id))

    return report


def show_error(translate: "Translator", message_id: str, cause: object) -> None:
    """Print a localized error and its cause to stderr."""
    click.echo(click.style(f"{translate(message_id)}: {cause}", fg="red"), err=True)


def show_sync_summary(result: "SyncResult") -> None:
    """Display the statistics of a sync run."""
    click.echo()
    click.echo(result.summary())
