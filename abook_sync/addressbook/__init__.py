"""
abook_sync.addressbook - Local address book file support

Parsing and serialization of the tab-delimited record format, plus file
access for the address book itself.
"""

from abook_sync.addressbook.codec import (
    FormatError,
    decode_if_encoded,
    parse,
    serialize,
)
from abook_sync.addressbook.store import AddressBookFile, SaveError

__all__ = [
    "AddressBookFile",
    "SaveError",
    "FormatError",
    "decode_if_encoded",
    "parse",
    "serialize",
]
