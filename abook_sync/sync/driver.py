"""
Sync driver: runs the init and sync operations end to end.

Sequences the address book file, the People API and the reconciliation
engine. Terminal interaction is injected (chooser, confirm, reporter) so the
driver can be exercised without a console.
"""

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Optional

from abook_sync.addressbook.codec import FormatError
from abook_sync.addressbook.store import SaveError
from abook_sync.api.people_api import PeopleAPIError
from abook_sync.sync.conflict import OperationCancelled
from abook_sync.sync.contact import LocalContact, RemoteContact, extract
from abook_sync.sync.engine import (
    Chooser,
    ReconciliationEngine,
    Reporter,
    SyncResult,
)
from abook_sync.sync.nickname import generate_nickname

if TYPE_CHECKING:
    from abook_sync.addressbook.store import AddressBookFile
    from abook_sync.api.people_api import PeopleAPI
    from abook_sync.backup.manager import BackupManager

Confirm = Callable[[], bool]

# Message id reported for each step of writing the address book
SAVE_STAGE_MESSAGES = {
    "open": "init-error",
    "write": "write-error",
    "flush": "flush-error",
}

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """
    A fatal failure during init or sync.

    Attributes:
        message_id: Id of the localized message describing the failed step
        cause: The underlying exception
    """

    def __init__(self, message_id: str, cause: Exception):
        super().__init__(f"{message_id}: {cause}")
        self.message_id = message_id
        self.cause = cause


def build_addressbook(remote_contacts: Iterable[RemoteContact]) -> list[LocalContact]:
    """
    Build address book records from Google contacts.

    Contacts without a name or organization are skipped. Each remaining
    contact yields one record per email address; nicknames of one person are
    generated from a pool seeded with the remote nickname.

    Args:
        remote_contacts: Contacts fetched from Google

    Returns:
        List of LocalContact records in remote order
    """
    records: list[LocalContact] = []

    for remote in remote_contacts:
        if not remote.has_name():
            logger.debug(f"Skipping contact without name: {remote.resource_name}")
            continue

        name, nickname, note = extract(remote)
        pool: list[str] = [nickname] if nickname else []
        emails = remote.emails

        for email in emails:
            records.append(
                LocalContact(
                    nickname=generate_nickname(name, len(emails), pool),
                    display_name=name,
                    email=email,
                    fcc="",
                    note=note,
                )
            )

    return records


class SyncDriver:
    """
    Runs init and sync against one address book file.

    Attributes:
        api: People API wrapper
        addressbook: Address book file to read and rewrite
        backup_manager: Copies the file before each overwrite (optional)
        page_size: Page size used when listing remote contacts

    Usage:
        driver = SyncDriver(api, AddressBookFile(), backup_manager=bm)
        driver.init_addressbook(confirm=ask_overwrite)
        result = driver.sync(chooser=console_chooser)
    """

    def __init__(
        self,
        api: "PeopleAPI",
        addressbook: "AddressBookFile",
        backup_manager: Optional["BackupManager"] = None,
        page_size: int = 1000,
    ):
        self.api = api
        self.addressbook = addressbook
        self.backup_manager = backup_manager
        self.page_size = page_size

    def init_addressbook(self, confirm: Optional[Confirm] = None) -> int:
        """
        Overwrite the address book with the contents of Google Contacts.

        Args:
            confirm: Asked before an existing file is overwritten; returning
                False cancels the operation

        Returns:
            Number of records written

        Raises:
            OperationCancelled: If the overwrite is declined
            InputError: If the confirmation cannot be read
            SyncError: If listing contacts or writing the file fails
        """
        if self.addressbook.exists() and confirm is not None and not confirm():
            logger.info("Overwrite of existing address book declined")
            raise OperationCancelled("overwrite declined")

        try:
            remote_contacts = self.api.list_contacts(self.page_size)
        except PeopleAPIError as e:
            raise SyncError("fail-contact", e) from e

        return self._write(build_addressbook(remote_contacts))

    def sync(self, chooser: Chooser, reporter: Optional[Reporter] = None) -> SyncResult:
        """
        Reconcile the address book with Google Contacts.

        Remote changes are applied while the engine runs; the address book is
        rewritten once at the end, and only if something local changed. A
        cancelled or failed run leaves the file untouched.

        Args:
            chooser: Returns the operator's decision for each conflict
            reporter: Receives a message id after each remote change

        Returns:
            SyncResult of the reconciliation

        Raises:
            OperationCancelled: If the operator cancels at a prompt
            InputError: If the operator's answer cannot be read
            SyncError: If the file cannot be read or written, or a remote
                call fails
        """
        try:
            local_contacts = self.addressbook.load()
        except (FormatError, UnicodeDecodeError, OSError) as e:
            raise SyncError("fail-addressbook", e) from e

        try:
            remote_contacts = self.api.list_contacts(self.page_size)
        except PeopleAPIError as e:
            raise SyncError("fail-google-contacts", e) from e

        engine = ReconciliationEngine(self.api, chooser=chooser, reporter=reporter)
        try:
            result = engine.reconcile(local_contacts, remote_contacts)
        except PeopleAPIError as e:
            raise SyncError("update-fail-google-contacts", e) from e

        if result.local_changed:
            self._write(result.contacts)
        else:
            logger.info("Address book unchanged")

        return result

    def _write(self, contacts: list[LocalContact]) -> int:
        """Back up the current file, then overwrite it."""
        self._backup()
        try:
            return self.addressbook.save(contacts)
        except SaveError as e:
            raise SyncError(SAVE_STAGE_MESSAGES[e.stage], e.cause) from e
        except OSError as e:
            raise SyncError("write-error", e) from e

    def _backup(self) -> None:
        if self.backup_manager is None or not self.addressbook.exists():
            return
        backup_file = self.backup_manager.create_backup(self.addressbook.path)
        if backup_file is not None:
            logger.info(f"Backed up address book to {backup_file}")
