"""
Unit tests for the People API module.

Tests the PeopleAPI class for contact operations with mocked Google API responses.
"""

from unittest.mock import MagicMock, patch

import httplib2
import pytest
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from abook_sync.api.people_api import (
    DEFAULT_PAGE_SIZE,
    PERSON_FIELDS,
    UPDATE_PERSON_FIELDS,
    PeopleAPI,
    PeopleAPIError,
)
from abook_sync.sync.contact import RemoteContact


def http_error(status=500, content=b"Server error"):
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.reason = "Error"
    return HttpError(mock_resp, content)


@pytest.fixture
def api():
    """Create a PeopleAPI instance with mocked service."""
    api = PeopleAPI(MagicMock())
    api._service = MagicMock()
    return api


class TestPeopleAPIInitialization:
    """Tests for PeopleAPI initialization."""

    def test_init_with_credentials(self):
        """Test initialization with credentials."""
        mock_creds = MagicMock()
        api = PeopleAPI(mock_creds)

        assert api.credentials == mock_creds
        assert api.page_size == DEFAULT_PAGE_SIZE
        assert api._service is None

    def test_init_with_custom_page_size(self):
        """Test initialization with custom page size."""
        api = PeopleAPI(MagicMock(), page_size=50)

        assert api.page_size == 50

    def test_init_page_size_capped_at_1000(self):
        """Test that page size is capped at 1000."""
        api = PeopleAPI(MagicMock(), page_size=2000)

        assert api.page_size == 1000


class TestPeopleAPIService:
    """Tests for the service property."""

    @patch("abook_sync.api.people_api.build")
    def test_service_creates_on_first_access(self, mock_build):
        """Test that service is created on first access."""
        mock_creds = MagicMock()
        mock_service = MagicMock()
        mock_build.return_value = mock_service

        api = PeopleAPI(mock_creds)
        service = api.service

        mock_build.assert_called_once_with(
            "people", "v1", credentials=mock_creds, cache_discovery=False
        )
        assert service == mock_service

    @patch("abook_sync.api.people_api.build")
    def test_service_cached(self, mock_build):
        """Test that service is cached after first access."""
        api = PeopleAPI(MagicMock())
        service1 = api.service
        service2 = api.service

        mock_build.assert_called_once()
        assert service1 is service2

    @patch("abook_sync.api.people_api.build")
    def test_service_creation_failure_raises_error(self, mock_build):
        """Test that service creation failure raises PeopleAPIError."""
        mock_build.side_effect = Exception("Connection failed")

        api = PeopleAPI(MagicMock())

        with pytest.raises(PeopleAPIError, match="Failed to create API service"):
            _ = api.service


class TestListContacts:
    """Tests for list_contacts."""

    def test_single_page(self, api):
        """Test listing contacts that fit in one page."""
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.return_value = {
            "connections": [
                {"resourceName": "people/c1", "names": [{"displayName": "Jane"}]},
                {"resourceName": "people/c2", "names": [{"displayName": "John"}]},
            ]
        }

        contacts = api.list_contacts()

        assert [c.resource_name for c in contacts] == ["people/c1", "people/c2"]
        connections.list.assert_called_once_with(
            resourceName="people/me",
            personFields=PERSON_FIELDS,
            pageSize=DEFAULT_PAGE_SIZE,
        )

    def test_follows_page_tokens(self, api):
        """Test every page is fetched until no next page token is returned."""
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = [
            {"connections": [{"resourceName": "people/c1"}], "nextPageToken": "t2"},
            {"connections": [{"resourceName": "people/c2"}], "nextPageToken": "t3"},
            {"connections": [{"resourceName": "people/c3"}]},
        ]

        contacts = api.list_contacts(page_size=1)

        assert len(contacts) == 3
        calls = connections.list.call_args_list
        assert "pageToken" not in calls[0][1]
        assert calls[1][1]["pageToken"] == "t2"
        assert calls[2][1]["pageToken"] == "t3"
        assert all(call[1]["pageSize"] == 1 for call in calls)

    def test_empty_account(self, api):
        """Test an account with no connections returns an empty list."""
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.return_value = {}

        assert api.list_contacts() == []

    def test_page_size_capped(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.return_value = {}

        api.list_contacts(page_size=5000)

        assert connections.list.call_args[1]["pageSize"] == 1000

    def test_http_error_raises_people_api_error(self, api):
        """Test API errors are wrapped in PeopleAPIError."""
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = http_error(403)

        with pytest.raises(PeopleAPIError, match="list_contacts failed"):
            api.list_contacts()

    def test_http_error_is_not_retried(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = http_error(429)

        with pytest.raises(PeopleAPIError):
            api.list_contacts()

        assert connections.list.return_value.execute.call_count == 1

    @pytest.mark.parametrize(
        "error",
        [
            RefreshError("invalid_grant: Token has been expired or revoked."),
            TransportError("connection reset"),
            httplib2.ServerNotFoundError("Unable to find the server"),
            TimeoutError("timed out"),
        ],
    )
    def test_auth_and_connection_errors_raise_people_api_error(self, api, error):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = error

        with pytest.raises(PeopleAPIError, match="list_contacts failed") as exc_info:
            api.list_contacts()

        assert exc_info.value.__cause__ is error


class TestCreateContact:
    """Tests for create_contact."""

    def test_create_contact(self, api):
        """Test creating a contact sends the body without identity fields."""
        people = api._service.people.return_value
        people.createContact.return_value.execute.return_value = {
            "resourceName": "people/new",
            "etag": "e1",
            "names": [{"displayName": "Jane Doe"}],
        }
        contact = RemoteContact.from_api_response(
            {
                "resourceName": "people/stale",
                "etag": "old",
                "names": [{"displayName": "Jane Doe"}],
            }
        )

        created = api.create_contact(contact)

        assert created.resource_name == "people/new"
        body = people.createContact.call_args[1]["body"]
        assert "resourceName" not in body
        assert "etag" not in body
        assert people.createContact.call_args[1]["personFields"] == UPDATE_PERSON_FIELDS

    def test_create_failure(self, api):
        people = api._service.people.return_value
        people.createContact.return_value.execute.side_effect = http_error(400)

        with pytest.raises(PeopleAPIError, match="create_contact failed"):
            api.create_contact(RemoteContact())


class TestUpdateContact:
    """Tests for update_contact."""

    def test_update_contact(self, api):
        """Test updating sends resource name, body with etag, and field mask."""
        people = api._service.people.return_value
        people.updateContact.return_value.execute.return_value = {
            "resourceName": "people/c1",
            "etag": "e2",
        }
        contact = RemoteContact.from_api_response(
            {"resourceName": "people/c1", "etag": "e1"}
        )

        updated = api.update_contact("people/c1", contact, field_mask="names")

        assert updated.etag == "e2"
        kwargs = people.updateContact.call_args[1]
        assert kwargs["resourceName"] == "people/c1"
        assert kwargs["body"]["etag"] == "e1"
        assert kwargs["updatePersonFields"] == "names"

    def test_update_without_resource_name(self, api):
        with pytest.raises(ValueError, match="resource_name is required"):
            api.update_contact("", RemoteContact())

    def test_update_failure(self, api):
        people = api._service.people.return_value
        people.updateContact.return_value.execute.side_effect = http_error(412)

        with pytest.raises(PeopleAPIError, match="update_contact"):
            api.update_contact("people/c1", RemoteContact())


class TestSaveContact:
    """Tests for save_contact."""

    def test_existing_contact_is_updated(self, api):
        contact = RemoteContact.from_api_response({"resourceName": "people/c1"})

        with patch.object(api, "update_contact") as update:
            api.save_contact(contact, field_mask="names")

        update.assert_called_once_with("people/c1", contact, "names")

    def test_new_contact_is_created(self, api):
        contact = RemoteContact.from_api_response({"names": [{"displayName": "J"}]})

        with patch.object(api, "create_contact") as create:
            api.save_contact(contact)

        create.assert_called_once_with(contact, UPDATE_PERSON_FIELDS)


class TestDeleteContact:
    """Tests for delete_contact."""

    def test_delete_contact(self, api):
        people = api._service.people.return_value

        assert api.delete_contact("people/c1") is True
        people.deleteContact.assert_called_once_with(resourceName="people/c1")

    @pytest.mark.parametrize("resource_name", ["", None])
    def test_empty_resource_name(self, api, resource_name):
        with pytest.raises(PeopleAPIError, match="resource name is empty"):
            api.delete_contact(resource_name)

        api._service.people.return_value.deleteContact.assert_not_called()

    def test_delete_failure(self, api):
        people = api._service.people.return_value
        people.deleteContact.return_value.execute.side_effect = http_error(404)

        with pytest.raises(PeopleAPIError, match="delete_contact"):
            api.delete_contact("people/c1")

    def test_repr(self, api):
        assert repr(api) == "PeopleAPI(page_size=1000)"
