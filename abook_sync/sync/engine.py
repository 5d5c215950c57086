"""
Reconciliation engine for the address book and Google Contacts.

Every run starts from scratch: both contact sets are keyed by email address,
each address is classified as remote-only, local-only or common, and every
difference is put to the operator through an injected chooser. Remote
changes are applied immediately, one at a time; local changes are collected
and returned so the caller can rewrite the address book once.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from abook_sync.sync.conflict import Choice, Conflict, ConflictKind, is_identical
from abook_sync.sync.contact import (
    WRITE_FIELDS,
    LocalContact,
    RemoteContact,
    extract,
)
from abook_sync.sync.nickname import generate_nickname

if TYPE_CHECKING:
    from abook_sync.api.people_api import PeopleAPI

# Message id reported after each successful remote change
REMOTE_SUCCESS_MESSAGE = "update-success-google-contacts"

Chooser = Callable[[Conflict], Choice]
Reporter = Callable[[str], None]

logger = logging.getLogger(__name__)


@dataclass
class EmailClassification:
    """
    Partition of all non-empty email addresses seen on either side.

    Attributes:
        remote_only: Addresses only found in Google Contacts
        local_only: Addresses only found in the address book
        common: Addresses found on both sides
    """

    remote_only: set[str] = field(default_factory=set)
    local_only: set[str] = field(default_factory=set)
    common: set[str] = field(default_factory=set)


def classify_emails(
    local_contacts: Iterable[LocalContact], remote_contacts: Iterable[RemoteContact]
) -> EmailClassification:
    """
    Classify every non-empty email address into exactly one group.

    Args:
        local_contacts: Address book records
        remote_contacts: Google contacts

    Returns:
        EmailClassification whose three groups partition the union of both
        address sets
    """
    local_emails = {contact.email for contact in local_contacts if contact.email}
    remote_emails = {
        email for contact in remote_contacts for email in contact.emails if email
    }

    return EmailClassification(
        remote_only=remote_emails - local_emails,
        local_only=local_emails - remote_emails,
        common=remote_emails & local_emails,
    )


@dataclass
class SyncStats:
    """
    Statistics from a reconciliation run.

    Tracks counts of all operations performed.
    """

    local_contacts: int = 0
    remote_contacts: int = 0
    remote_only_emails: int = 0
    local_only_emails: int = 0
    common_emails: int = 0
    identical: int = 0
    prompts: int = 0
    created_remote: int = 0
    updated_remote: int = 0
    deleted_remote: int = 0
    added_local: int = 0
    replaced_local: int = 0
    deleted_local: int = 0

    @property
    def total_remote_changes(self) -> int:
        """Total changes applied to Google Contacts."""
        return self.created_remote + self.updated_remote + self.deleted_remote

    @property
    def total_local_changes(self) -> int:
        """Total changes made to the address book."""
        return self.added_local + self.replaced_local + self.deleted_local


@dataclass
class SyncResult:
    """
    Result of a reconciliation run.

    Attributes:
        contacts: The complete address book after all local decisions
        local_changed: True if the address book must be rewritten
        classification: How the email addresses were partitioned
        stats: Operation counts
    """

    contacts: list[LocalContact] = field(default_factory=list)
    local_changed: bool = False
    classification: EmailClassification = field(default_factory=EmailClassification)
    stats: SyncStats = field(default_factory=SyncStats)

    def has_changes(self) -> bool:
        """Check if anything was changed on either side."""
        return self.local_changed or self.stats.total_remote_changes > 0

    def summary(self) -> str:
        """
        Generate a human-readable summary of the run.

        Returns:
            Formatted string summary of sync operations
        """
        stats = self.stats
        lines = [
            "Sync Summary:",
            f"  Address book: {stats.local_contacts} contacts",
            f"  Google Contacts: {stats.remote_contacts} contacts",
            "",
            f"  Only in Google Contacts: {stats.remote_only_emails} addresses",
            f"  Only in address book: {stats.local_only_emails} addresses",
            f"  In both: {stats.common_emails} addresses "
            f"({stats.identical} identical)",
            "",
            "Changes applied:",
            f"  Created in Google Contacts: {stats.created_remote}",
            f"  Updated in Google Contacts: {stats.updated_remote}",
            f"  Deleted from Google Contacts: {stats.deleted_remote}",
            f"  Added to address book: {stats.added_local}",
            f"  Replaced in address book: {stats.replaced_local}",
            f"  Deleted from address book: {stats.deleted_local}",
        ]
        return "\n".join(lines)


class ReconciliationEngine:
    """
    Reconciles address book records with Google contacts by email address.

    The engine knows nothing about terminals or message wording: decisions
    come from the chooser, and progress is reported as message ids.

    Attributes:
        api: Remote contact provider
        chooser: Returns the operator's Choice for a Conflict
        reporter: Receives a message id after each remote change
        field_mask: Person fields written on create/update

    Usage:
        engine = ReconciliationEngine(api, chooser=console_chooser)
        result = engine.reconcile(local_contacts, remote_contacts)
        if result.local_changed:
            addressbook.save(result.contacts)
    """

    def __init__(
        self,
        api: "PeopleAPI",
        chooser: Chooser,
        reporter: Optional[Reporter] = None,
        field_mask: str = ",".join(WRITE_FIELDS),
    ):
        self.api = api
        self.chooser = chooser
        self.reporter = reporter
        self.field_mask = field_mask

    def reconcile(
        self,
        local_contacts: list[LocalContact],
        remote_contacts: list[RemoteContact],
    ) -> SyncResult:
        """
        Resolve every difference between the two contact sets.

        Args:
            local_contacts: Records loaded from the address book
            remote_contacts: Contacts fetched from Google

        Returns:
            SyncResult with the updated address book contents

        Raises:
            PeopleAPIError: If a remote change fails
            OperationCancelled: If the operator cancels at a prompt
            InputError: If the operator's answer cannot be read
        """
        classification = classify_emails(local_contacts, remote_contacts)
        result = SyncResult(classification=classification)
        stats = result.stats
        stats.local_contacts = len(local_contacts)
        stats.remote_contacts = len(remote_contacts)
        stats.remote_only_emails = len(classification.remote_only)
        stats.local_only_emails = len(classification.local_only)
        stats.common_emails = len(classification.common)

        logger.info(
            f"Classified addresses: {stats.remote_only_emails} remote-only, "
            f"{stats.local_only_emails} local-only, {stats.common_emails} common"
        )

        # Local removals are applied after all groups have been processed
        removed: set[int] = set()
        added: list[LocalContact] = []

        for email in sorted(classification.remote_only):
            self._resolve_remote_only(email, remote_contacts, added, stats)

        for email in sorted(classification.local_only):
            self._resolve_local_only(email, local_contacts, removed, stats)

        for email in sorted(classification.common):
            self._resolve_common(
                email, local_contacts, remote_contacts, removed, added, stats
            )

        result.contacts = [
            contact
            for index, contact in enumerate(local_contacts)
            if index not in removed
        ] + added
        result.local_changed = bool(removed or added)

        logger.info(
            f"Reconciliation finished: {stats.total_remote_changes} remote changes, "
            f"{stats.total_local_changes} local changes"
        )
        return result

    def _resolve_remote_only(
        self,
        email: str,
        remote_contacts: list[RemoteContact],
        added: list[LocalContact],
        stats: SyncStats,
    ) -> None:
        """Delete each remote contact with this address or adopt it locally."""
        for remote in related_remote_contacts(remote_contacts, email):
            choice = self._ask(
                Conflict(ConflictKind.REMOTE_ONLY, email, remote=remote), stats
            )

            if choice is Choice.GOOGLE:
                self._delete_remote(remote)
                stats.deleted_remote += 1
            else:
                name, _, note = extract(remote)
                added.append(
                    LocalContact(
                        nickname=generate_nickname(name, 1, []),
                        display_name=name,
                        email=email,
                        fcc="",
                        note=note,
                    )
                )
                stats.added_local += 1
                logger.debug(f"Adding {email} to address book")

    def _resolve_local_only(
        self,
        email: str,
        local_contacts: list[LocalContact],
        removed: set[int],
        stats: SyncStats,
    ) -> None:
        """Create each local record with this address remotely or drop it."""
        for index, local in related_local_contacts(local_contacts, email):
            choice = self._ask(
                Conflict(ConflictKind.LOCAL_ONLY, email, local=local), stats
            )

            if choice is Choice.GOOGLE:
                self._save_remote(RemoteContact.from_local(local))
                stats.created_remote += 1
            else:
                removed.add(index)
                stats.deleted_local += 1
                logger.debug(f"Removing {email} from address book")

    def _resolve_common(
        self,
        email: str,
        local_contacts: list[LocalContact],
        remote_contacts: list[RemoteContact],
        removed: set[int],
        added: list[LocalContact],
        stats: SyncStats,
    ) -> None:
        """Compare the local record with each remote contact sharing the address."""
        related_local = related_local_contacts(local_contacts, email)
        if not related_local:
            return
        index, local = related_local[0]

        for remote in related_remote_contacts(remote_contacts, email):
            if is_identical(local, remote):
                stats.identical += 1
                continue

            choice = self._ask(
                Conflict(ConflictKind.DIVERGED, email, local=local, remote=remote),
                stats,
            )

            if choice is Choice.GOOGLE:
                name, _, note = extract(remote)
                removed.add(index)
                added.append(
                    LocalContact(
                        nickname=generate_nickname(name, 1, []),
                        display_name=name,
                        email=email,
                        fcc=local.fcc,
                        note=note,
                    )
                )
                stats.replaced_local += 1
                logger.debug(f"Replacing {email} in address book")
            else:
                self._save_remote(remote.merged_with(local))
                stats.updated_remote += 1

    def _ask(self, conflict: Conflict, stats: SyncStats) -> Choice:
        """Put a conflict to the operator."""
        stats.prompts += 1
        logger.debug(f"Asking for {conflict.kind.name} decision on {conflict.email}")
        choice = self.chooser(conflict)
        logger.debug(f"Operator chose {choice.name} for {conflict.email}")
        return choice

    def _save_remote(self, contact: RemoteContact) -> None:
        self.api.save_contact(contact, field_mask=self.field_mask)
        self._report(REMOTE_SUCCESS_MESSAGE)

    def _delete_remote(self, contact: RemoteContact) -> None:
        self.api.delete_contact(contact.resource_name)
        self._report(REMOTE_SUCCESS_MESSAGE)

    def _report(self, message_id: str) -> None:
        if self.reporter is not None:
            self.reporter(message_id)

    def __repr__(self) -> str:
        return f"ReconciliationEngine(field_mask={self.field_mask!r})"


def related_remote_contacts(
    remote_contacts: Iterable[RemoteContact], email: str
) -> list[RemoteContact]:
    """Return every remote contact that has this email address."""
    return [contact for contact in remote_contacts if contact.has_email(email)]


def related_local_contacts(
    local_contacts: Iterable[LocalContact], email: str
) -> list[tuple[int, LocalContact]]:
    """Return (index, contact) for every local record with this email address."""
    return [
        (index, contact)
        for index, contact in enumerate(local_contacts)
        if contact.email == email
    ]
