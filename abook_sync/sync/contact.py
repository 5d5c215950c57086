"""
Contact data model for address book synchronization.

Provides the two contact representations that are reconciled:
- LocalContact: one record of the ~/.addressbook file
- RemoteContact: one person from the Google People API

and the projections between them:
- Extracting (display name, nickname, note) from a remote person
- Building a new remote person from a local record
- Merging local values over an existing remote person for updates
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

# Fields written on create/update
WRITE_FIELDS = ("nicknames", "names", "emailAddresses", "biographies")


@dataclass
class LocalContact:
    """
    One record of the local address book.

    Attributes:
        nickname: Short alias used by the mail client
        display_name: Full name of the contact
        email: Email address; the identity key when matching remote contacts
        fcc: Unused by the sync, preserved verbatim
        note: Free-form note
    """

    nickname: str = ""
    display_name: str = ""
    email: str = ""
    fcc: str = ""
    note: str = ""

    def summary(self) -> str:
        """Return the record as nickname/name/email/note."""
        return f"{self.nickname}/{self.display_name}/{self.email}/{self.note}"


def _entries(person: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return the entry list stored under key, or an empty list when absent."""
    value = person.get(key)
    if isinstance(value, list):
        return value
    return []


def _first_value(entries: list[dict[str, Any]], key: str) -> str:
    """Return key from the first entry, or an empty string."""
    if not entries:
        return ""
    return entries[0].get(key) or ""


@dataclass
class RemoteContact:
    """
    A person from the Google People API.

    The full API payload is kept in ``person`` so that updates can preserve
    every sub-field this tool does not manage (metadata, types, phonetic
    names, honorifics).

    Attributes:
        person: Person resource as returned by the People API

    Usage:
        contact = RemoteContact.from_api_response(api_response)
        name, nickname, note = extract(contact)
        for email in contact.emails:
            ...
    """

    person: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, person: dict[str, Any]) -> "RemoteContact":
        """
        Create a RemoteContact from a People API person resource.

        Example API response structure::

            {
                'resourceName': 'people/c12345',
                'etag': 'abc123',
                'names': [{'displayName': 'Jane Doe', ...}],
                'nicknames': [{'value': 'JD'}],
                'emailAddresses': [{'value': 'jane@example.com'}],
                'organizations': [{'name': 'Acme Corp'}],
                'biographies': [{'value': 'Some notes'}],
            }
        """
        return cls(person=copy.deepcopy(person))

    @classmethod
    def from_local(cls, local: LocalContact) -> "RemoteContact":
        """
        Build a new, not yet created remote person from a local record.

        Names of two or more words are split into given name (first word)
        and family name (last word).
        """
        words = local.display_name.split()
        if len(words) >= 2:
            given_name, family_name = words[0], words[-1]
        else:
            given_name, family_name = local.display_name, ""

        return cls(
            person={
                "nicknames": [{"value": local.nickname}],
                "names": [
                    {
                        "displayName": local.display_name,
                        "givenName": given_name,
                        "familyName": family_name,
                    }
                ],
                "emailAddresses": [{"value": local.email}],
                "biographies": [{"value": local.note}],
            }
        )

    @property
    def resource_name(self) -> Optional[str]:
        """Resource identifier, or None if the contact was never created."""
        return self.person.get("resourceName") or None

    @property
    def etag(self) -> Optional[str]:
        return self.person.get("etag") or None

    @property
    def names(self) -> list[dict[str, Any]]:
        return _entries(self.person, "names")

    @property
    def nicknames(self) -> list[dict[str, Any]]:
        return _entries(self.person, "nicknames")

    @property
    def email_addresses(self) -> list[dict[str, Any]]:
        return _entries(self.person, "emailAddresses")

    @property
    def biographies(self) -> list[dict[str, Any]]:
        return _entries(self.person, "biographies")

    @property
    def organizations(self) -> list[dict[str, Any]]:
        return _entries(self.person, "organizations")

    @property
    def display_name(self) -> str:
        """First name entry, falling back to the first organization."""
        name = _first_value(self.names, "displayName")
        if name:
            return name
        return _first_value(self.organizations, "name")

    @property
    def nickname(self) -> str:
        return _first_value(self.nicknames, "value")

    @property
    def note(self) -> str:
        return _first_value(self.biographies, "value")

    @property
    def emails(self) -> list[str]:
        """Distinct non-empty email addresses, in API order."""
        emails: list[str] = []
        for entry in self.email_addresses:
            value = entry.get("value") or ""
            if value and value not in emails:
                emails.append(value)
        return emails

    def has_email(self, email: str) -> bool:
        """Check whether any email entry equals email exactly."""
        return any(entry.get("value") == email for entry in self.email_addresses)

    def has_name(self) -> bool:
        """Check whether the person has a name or an organization entry."""
        return bool(self.names or self.organizations)

    def merged_with(self, local: LocalContact) -> "RemoteContact":
        """
        Return a copy of this person with the local values applied.

        Each written list is reduced to a single entry that keeps every key
        of the existing first entry and replaces only its value.
        """
        updated = copy.deepcopy(self.person)

        def merge_first(key: str, value_key: str, value: str) -> None:
            existing = _entries(self.person, key)
            entry = copy.deepcopy(existing[0]) if existing else {}
            entry[value_key] = value
            updated[key] = [entry]

        merge_first("nicknames", "value", local.nickname)
        merge_first("names", "displayName", local.display_name)
        merge_first("emailAddresses", "value", local.email)
        merge_first("biographies", "value", local.note)

        return RemoteContact(person=updated)

    def to_api_format(self) -> dict[str, Any]:
        """Return the person body for create/update calls."""
        return copy.deepcopy(self.person)

    def summary(self, email: str = "") -> str:
        """Return the contact as nickname/name/email/note."""
        email = email or (self.emails[0] if self.emails else "")
        return f"{self.nickname}/{self.display_name}/{email}/{self.note}"

    def __repr__(self) -> str:
        return (
            f"RemoteContact(resource_name={self.resource_name!r}, "
            f"display_name={self.display_name!r}, "
            f"emails={self.emails!r})"
        )


def extract(contact: RemoteContact) -> tuple[str, str, str]:
    """
    Project a remote contact onto the fields the address book stores.

    Returns:
        Tuple of (display_name, nickname, note); missing parts are ""
    """
    return contact.display_name, contact.nickname, contact.note
