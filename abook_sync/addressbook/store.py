"""
Address book file access.

Reads and writes the whole address book at once; there is no incremental
patching of individual records.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from abook_sync.addressbook.codec import parse, serialize
from abook_sync.sync.contact import LocalContact
from abook_sync.utils.paths import resolve_addressbook_path

logger = logging.getLogger(__name__)


class SaveError(OSError):
    """
    Raised when the address book cannot be written.

    Attributes:
        stage: Step that failed: "open", "write" or "flush"
        cause: The underlying OSError
    """

    def __init__(self, stage: str, cause: OSError):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


class AddressBookFile:
    """
    The local address book file.

    Attributes:
        path: Location of the address book

    Usage:
        book = AddressBookFile()
        contacts = book.load()
        contacts.append(new_contact)
        book.save(contacts)
    """

    def __init__(self, path: Path | str | None = None):
        """
        Args:
            path: Address book location (default: ~/.addressbook)

        Raises:
            HomeNotFoundError: If the path needs the home directory and it is
                unknown
        """
        self.path = resolve_addressbook_path(path)

    def exists(self) -> bool:
        """Check whether the address book file is present."""
        return self.path.exists()

    def load(self) -> list[LocalContact]:
        """
        Read and parse every record in the address book.

        Returns:
            Contacts in file order

        Raises:
            OSError: If the file cannot be read
            FormatError: If a record is malformed
        """
        contents = self.path.read_text(encoding="utf-8")
        contacts = parse(contents)
        logger.info(f"Loaded {len(contacts)} contacts from {self.path}")
        return contacts

    def save(self, contacts: Iterable[LocalContact]) -> int:
        """
        Overwrite the address book with the given contacts.

        Contacts without an email address are not written.

        Args:
            contacts: Complete set of contacts to persist

        Returns:
            Number of records written

        Raises:
            SaveError: If the file cannot be opened, written or flushed
        """
        contacts = list(contacts)
        contents = serialize(contacts)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            f = open(self.path, "w", encoding="utf-8", newline="")
        except OSError as e:
            raise SaveError("open", e) from e

        with f:
            try:
                f.write(contents)
            except OSError as e:
                raise SaveError("write", e) from e
            try:
                f.flush()
            except OSError as e:
                raise SaveError("flush", e) from e

        written = sum(1 for contact in contacts if contact.email)
        logger.info(f"Wrote {written} contacts to {self.path}")
        return written

    def __repr__(self) -> str:
        return f"AddressBookFile(path={str(self.path)!r})"
