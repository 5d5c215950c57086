"""
Conflict vocabulary for reconciling the address book with Google Contacts.

Defines the situations that need an operator decision, the two possible
answers, and the comparison rule that decides whether a contact present on
both sides has diverged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from abook_sync.sync.contact import LocalContact, RemoteContact
from abook_sync.sync.nickname import last_name_token, split_string_and_number


class ConflictKind(Enum):
    """
    Situations requiring a decision.

    Values are the message ids of the prompt shown for each situation.
    """

    REMOTE_ONLY = "add-a-or-delete-g-mode"
    LOCAL_ONLY = "add-g-or-delete-a-mode"
    DIVERGED = "update-mode"


class Choice(Enum):
    """
    Operator answer to a conflict prompt.

    GOOGLE ("g") and ADDRESSBOOK ("a") mean, per conflict kind:

    ============  ===========================  ===========================
    kind          GOOGLE                       ADDRESSBOOK
    ============  ===========================  ===========================
    REMOTE_ONLY   delete from Google Contacts  add to the address book
    LOCAL_ONLY    create in Google Contacts    delete from the address book
    DIVERGED      overwrite the address book   overwrite Google Contacts
    ============  ===========================  ===========================
    """

    GOOGLE = "g"
    ADDRESSBOOK = "a"

    @classmethod
    def from_input(cls, text: str) -> Optional["Choice"]:
        """Parse operator input; returns None for anything but g or a."""
        answer = text.strip().lower()
        for choice in cls:
            if choice.value == answer:
                return choice
        return None


class OperationCancelled(Exception):
    """Raised when the operator declines to continue."""

    pass


class InputError(Exception):
    """Raised when the operator's answer cannot be read."""

    pass


@dataclass
class Conflict:
    """
    A single decision to put to the operator.

    Attributes:
        kind: Which situation this is
        email: The email address both sides are keyed by
        local: The address book record, if any
        remote: The Google contact, if any
    """

    kind: ConflictKind
    email: str
    local: Optional[LocalContact] = None
    remote: Optional[RemoteContact] = None

    @property
    def message_id(self) -> str:
        return self.kind.value


def adjusted_nickname(local: LocalContact, remote_nickname: str) -> str:
    """
    Return the local nickname as used when comparing with a remote contact.

    The numeric suffix is dropped. A nickname that is just the last word of
    the display name was generated, not chosen, so it compares equal to
    whatever nickname the remote contact has.
    """
    nickname, _ = split_string_and_number(local.nickname)
    if nickname == last_name_token(local.display_name):
        return remote_nickname
    return nickname


def is_identical(local: LocalContact, remote: RemoteContact) -> bool:
    """
    Check whether a local record and a remote contact hold the same data.

    Display name, adjusted nickname and note must all match.
    """
    return (
        local.display_name == remote.display_name
        and adjusted_nickname(local, remote.nickname) == remote.nickname
        and local.note == remote.note
    )
