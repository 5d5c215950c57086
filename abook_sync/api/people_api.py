"""
Google People API wrapper for address book synchronization.

Provides a high-level interface to the Google People API for:
- Listing every contact of the authenticated user
- Creating, updating, and deleting contacts

Calls are made one at a time and are not retried; any failure is raised
as PeopleAPIError.
"""

import logging
from collections.abc import Callable
from typing import Any, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from abook_sync.sync.contact import WRITE_FIELDS, RemoteContact

# Person fields to request from the API
PERSON_FIELDS = ",".join(
    [
        "nicknames",
        "names",
        "organizations",
        "emailAddresses",
        "biographies",
    ]
)

# Fields written when creating or updating contacts
UPDATE_PERSON_FIELDS = ",".join(WRITE_FIELDS)

# Number of contacts per page when listing (API max is 1000)
DEFAULT_PAGE_SIZE = 1000
MAX_PAGE_SIZE = 1000

logger = logging.getLogger(__name__)


class PeopleAPIError(Exception):
    """Raised when a People API operation fails."""

    pass


class PeopleAPI:
    """
    Google People API wrapper for contact operations.

    Attributes:
        credentials: Google OAuth2 credentials
        page_size: Number of contacts requested per page

    Usage:
        api = PeopleAPI(credentials)

        # List all contacts
        contacts = api.list_contacts()

        # Create or update, depending on whether the contact has a resource name
        api.save_contact(contact)

        # Delete a contact
        api.delete_contact(resource_name)
    """

    def __init__(self, credentials: Credentials, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Initialize the People API wrapper.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            page_size: Number of contacts per page when listing (default 1000)
        """
        self.credentials = credentials
        self.page_size = min(page_size, MAX_PAGE_SIZE)
        self._service = None

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        if self._service is None:
            try:
                self._service = build(
                    "people", "v1", credentials=self.credentials, cache_discovery=False
                )
                logger.debug("Created People API service")
            except Exception as e:
                logger.error(f"Failed to create People API service: {e}")
                raise PeopleAPIError(f"Failed to create API service: {e}") from e
        return self._service

    def _execute(self, operation: Callable[[], Any], operation_name: str) -> Any:
        """
        Execute a single API request.

        Token refresh and connection failures are wrapped the same way as
        HTTP errors.

        Raises:
            PeopleAPIError: If the request fails
        """
        try:
            return operation()
        except HttpError as e:
            logger.error(f"{operation_name} failed with status {e.resp.status}: {e}")
            raise PeopleAPIError(f"{operation_name} failed: {e}") from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"{operation_name} failed: {e}")
            raise PeopleAPIError(f"{operation_name} failed: {e}") from e

    def list_contacts(self, page_size: Optional[int] = None) -> list[RemoteContact]:
        """
        List every contact of the authenticated user.

        Args:
            page_size: Contacts per page (default: instance page_size)

        Returns:
            List of RemoteContact objects

        Raises:
            PeopleAPIError: If listing fails
        """
        effective_page_size = min(page_size or self.page_size, MAX_PAGE_SIZE)
        logger.debug(f"Listing contacts (page_size={effective_page_size})")

        contacts: list[RemoteContact] = []
        page_token: Optional[str] = None

        while True:
            params: dict[str, Any] = {
                "resourceName": "people/me",
                "personFields": PERSON_FIELDS,
                "pageSize": effective_page_size,
            }
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.people().connections().list(**p).execute()

            response = self._execute(execute_list, "list_contacts")

            for person in response.get("connections", []):
                contacts.append(RemoteContact.from_api_response(person))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(contacts)} contacts")
        return contacts

    def create_contact(
        self, contact: RemoteContact, field_mask: str = UPDATE_PERSON_FIELDS
    ) -> RemoteContact:
        """
        Create a new contact.

        Args:
            contact: Contact to create (any resource name is ignored)
            field_mask: Person fields to return

        Returns:
            Created contact with resource name and etag populated

        Raises:
            PeopleAPIError: If creation fails
        """
        logger.debug(f"Creating contact: {contact.display_name}")

        body = contact.to_api_format()
        body.pop("resourceName", None)
        body.pop("etag", None)

        def execute_create() -> Any:
            return (
                self.service.people()
                .createContact(body=body, personFields=field_mask)
                .execute()
            )

        response = self._execute(execute_create, "create_contact")
        created = RemoteContact.from_api_response(response)

        logger.info(f"Created contact: {created.resource_name}")
        return created

    def update_contact(
        self,
        resource_name: str,
        contact: RemoteContact,
        field_mask: str = UPDATE_PERSON_FIELDS,
    ) -> RemoteContact:
        """
        Update an existing contact.

        Args:
            resource_name: Resource name to update
            contact: Contact with updated data; its etag guards against
                concurrent modification
            field_mask: Person fields to overwrite

        Returns:
            Updated contact with new etag

        Raises:
            PeopleAPIError: If update fails
            ValueError: If resource_name is missing
        """
        if not resource_name:
            raise ValueError("resource_name is required for update")

        logger.debug(f"Updating contact: {resource_name}")

        body = contact.to_api_format()

        def execute_update() -> Any:
            return (
                self.service.people()
                .updateContact(
                    resourceName=resource_name,
                    body=body,
                    updatePersonFields=field_mask,
                )
                .execute()
            )

        response = self._execute(execute_update, f"update_contact({resource_name})")
        logger.info(f"Updated contact: {resource_name}")
        return RemoteContact.from_api_response(response)

    def save_contact(
        self, contact: RemoteContact, field_mask: str = UPDATE_PERSON_FIELDS
    ) -> RemoteContact:
        """
        Update the contact if it already has a resource name, else create it.

        Raises:
            PeopleAPIError: If the request fails
        """
        if contact.resource_name:
            return self.update_contact(contact.resource_name, contact, field_mask)
        return self.create_contact(contact, field_mask)

    def delete_contact(self, resource_name: Optional[str]) -> bool:
        """
        Delete a contact.

        Args:
            resource_name: Contact's resource name to delete

        Returns:
            True if deletion succeeded

        Raises:
            PeopleAPIError: If the resource name is empty or deletion fails
        """
        if not resource_name:
            raise PeopleAPIError("resource name is empty.")

        logger.debug(f"Deleting contact: {resource_name}")

        def execute_delete() -> Any:
            return (
                self.service.people()
                .deleteContact(resourceName=resource_name)
                .execute()
            )

        self._execute(execute_delete, f"delete_contact({resource_name})")
        logger.info(f"Deleted contact: {resource_name}")
        return True

    def __repr__(self) -> str:
        return f"PeopleAPI(page_size={self.page_size})"
