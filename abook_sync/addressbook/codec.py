"""
Record codec for the tab-delimited address book format.

Each logical record holds up to five tab-separated fields:

    nickname <TAB> display name <TAB> email <TAB> fcc <TAB> note

A record may span several physical lines:
- A line ending in a tab is joined with the following line while the record
  collected so far holds fewer than four tabs (an empty note still leaves a
  trailing tab, which must not start a new record on its own).
- A line starting with three spaces is folded into the preceding record.

Individual fields may be MIME encoded-words (``=?UTF-8?B?...?=`` for Base64,
``=?UTF-8?Q?...?=`` for Quoted-Printable) and are decoded on read. Fields are
written back verbatim.
"""

import base64
import binascii
import logging
import quopri
from collections.abc import Iterable

from abook_sync.sync.contact import LocalContact

# Maximum number of fields in a single record
MAX_FIELDS = 5

FIELD_SEPARATOR = "\t"
RECORD_SEPARATOR = "\n"

# Lines starting with this prefix continue the previous record
FOLD_PREFIX = "   "

BASE64_PREFIX = "=?UTF-8?B?"
QUOTED_PRINTABLE_PREFIX = "=?UTF-8?Q?"
ENCODED_WORD_SUFFIX = "?="

logger = logging.getLogger(__name__)


class FormatError(ValueError):
    """Raised when an address book record cannot be parsed."""

    def __init__(self, message: str, record_number: int | None = None):
        self.record_number = record_number
        if record_number is not None:
            message = f"record {record_number}: {message}"
        super().__init__(message)


def decode_if_encoded(value: str) -> str:
    """
    Decode a field written as a MIME encoded-word.

    Leading whitespace is ignored when looking for the encoded-word markers.
    Fields that are not encoded are returned unchanged.

    Args:
        value: Raw field text

    Returns:
        Decoded text

    Raises:
        FormatError: If a Base64 field is not valid Base64 or not valid UTF-8
    """
    stripped = value.lstrip()
    is_encoded = stripped.endswith(ENCODED_WORD_SUFFIX) and len(stripped) >= len(
        BASE64_PREFIX
    ) + len(ENCODED_WORD_SUFFIX)

    if is_encoded and stripped.startswith(BASE64_PREFIX):
        encoded = stripped[len(BASE64_PREFIX) : -len(ENCODED_WORD_SUFFIX)]
        try:
            decoded_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise FormatError(f"Base64 decode error: {e}") from e
        try:
            return decoded_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"UTF-8 decode error: {e}") from e

    if is_encoded and stripped.startswith(QUOTED_PRINTABLE_PREFIX):
        encoded = stripped[len(QUOTED_PRINTABLE_PREFIX) : -len(ENCODED_WORD_SUFFIX)]
        encoded = encoded.replace("_", " ")
        # quopri keeps malformed escapes as literal text
        decoded_bytes = quopri.decodestring(encoded.encode("utf-8"))
        return decoded_bytes.decode("utf-8", errors="replace")

    return value


def _split_lines(contents: str) -> list[str]:
    """Split on newlines only, dropping a trailing carriage return per line."""
    if not contents:
        return []
    lines = contents.split(RECORD_SEPARATOR)
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _decode_record(record: str, record_number: int) -> LocalContact:
    """Split a finalized record into fields and decode each one."""
    fields = record.split(FIELD_SEPARATOR)
    if len(fields) > MAX_FIELDS:
        raise FormatError("too many fields", record_number)

    fields += [""] * (MAX_FIELDS - len(fields))

    try:
        nickname, display_name, email, fcc, note = (
            decode_if_encoded(f) for f in fields
        )
    except FormatError as e:
        raise FormatError(str(e), record_number) from e

    return LocalContact(
        nickname=nickname,
        display_name=display_name,
        email=email,
        fcc=fcc,
        note=note,
    )


def parse(contents: str) -> list[LocalContact]:
    """
    Parse address book file contents into contacts.

    Args:
        contents: Full text of the address book file

    Returns:
        Contacts in file order

    Raises:
        FormatError: If a record has more than five fields or holds an
            undecodable encoded-word
    """
    contacts: list[LocalContact] = []
    buffer = ""

    def flush() -> None:
        nonlocal buffer
        if buffer:
            contacts.append(_decode_record(buffer, len(contacts) + 1))
        buffer = ""

    for line in _split_lines(contents):
        if line.endswith(FIELD_SEPARATOR) and buffer.count(FIELD_SEPARATOR) < 4:
            buffer += line
            continue

        if not line.startswith(FOLD_PREFIX):
            flush()

        buffer += line
        flush()

    flush()

    logger.debug(f"Parsed {len(contacts)} address book records")
    return contacts


def serialize(contacts: Iterable[LocalContact]) -> str:
    """
    Serialize contacts to address book file contents.

    Contacts without an email address are skipped.

    Args:
        contacts: Contacts to write

    Returns:
        File contents, one record per line
    """
    lines = [
        FIELD_SEPARATOR.join(
            [
                contact.nickname,
                contact.display_name,
                contact.email,
                contact.fcc,
                contact.note,
            ]
        )
        for contact in contacts
        if contact.email
    ]
    return "".join(line + RECORD_SEPARATOR for line in lines)
