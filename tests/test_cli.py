"""
Tests for the CLI module.

Tests the command-line interface using Click's testing utilities. Google
authentication and the People API are mocked; the address book is a real
file under tmp_path.
"""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from google.auth.exceptions import RefreshError, TransportError

from abook_sync.api.people_api import PeopleAPIError
from abook_sync.auth.google_auth import AuthenticationError
from abook_sync.cli import cli
from abook_sync.sync.contact import RemoteContact
from abook_sync.utils import HomeNotFoundError

JANE = "Doe\tJane Doe\tjane@x.com\t\tVP\n"


@pytest.fixture(autouse=True)
def english(monkeypatch):
    monkeypatch.setenv("LANG", "C")
    monkeypatch.delenv("ABOOK_SYNC_CONFIG_DIR", raising=False)


@pytest.fixture(autouse=True)
def mock_setup_logging():
    with patch("abook_sync.cli.main.setup_logging") as mock:
        yield mock


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def book(tmp_path):
    return tmp_path / ".addressbook"


@pytest.fixture
def mock_auth_class():
    with patch("abook_sync.cli.main.GoogleAuth") as mock:
        mock.return_value.authenticate.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_api():
    """PeopleAPI returning one contact: Jane Doe, note VP."""
    with patch("abook_sync.cli.main.PeopleAPI") as mock_api_class:
        api = mock_api_class.return_value
        api.page_size = 1000
        api.list_contacts.return_value = [
            RemoteContact.from_api_response(
                {
                    "resourceName": "people/c1",
                    "names": [{"displayName": "Jane Doe"}],
                    "emailAddresses": [{"value": "jane@x.com"}],
                    "biographies": [{"value": "VP"}],
                }
            )
        ]
        yield api


def invoke(config_dir, book, args, input=None):
    runner = CliRunner()
    return runner.invoke(
        cli,
        ["--config-dir", str(config_dir), "--addressbook", str(book), *args],
        input=input,
    )


class TestCliGroup:
    """Tests for the main CLI group."""

    def test_cli_help(self):
        """Test that --help works."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Synchronizes the ~/.addressbook file" in result.output
        assert "init" in result.output
        assert "sync" in result.output
        assert "auth" in result.output

    def test_cli_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "abook-sync" in result.output

    def test_no_command(self, config_dir):
        """Test that running without a command prints usage and fails."""
        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir)])

        assert result.exit_code == 1
        assert "Specify a command: init or sync" in result.output

    def test_help_is_localized(self, monkeypatch):
        monkeypatch.setenv("LANG", "ja_JP.UTF-8")

        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "ファイルと Google Contacts を同期します" in result.output

    def test_unknown_command(self, config_dir):
        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir), "export"])

        assert result.exit_code == 1
        assert "Specify a command: init or sync" in result.output
        assert "No such command" not in result.output

    def test_unknown_command_is_localized(self, config_dir, monkeypatch):
        monkeypatch.setenv("LANG", "ja_JP.UTF-8")

        result = CliRunner().invoke(
            cli, ["--config-dir", str(config_dir), "frobnicate"]
        )

        assert result.exit_code == 1
        assert "コマンドを指定してください" in result.output

    def test_unknown_option(self, config_dir):
        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir), "--bogus"])

        assert result.exit_code == 1
        assert "Specify a command: init or sync" in result.output

    def test_unknown_home(self, mock_setup_logging):
        with patch(
            "abook_sync.cli.main.resolve_config_dir",
            side_effect=HomeNotFoundError("no HOME"),
        ):
            result = CliRunner().invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "Home directory not found: no HOME" in result.output
        mock_setup_logging.assert_not_called()

    def test_verbose_flag(self, config_dir, mock_setup_logging):
        CliRunner().invoke(cli, ["--verbose", "--config-dir", str(config_dir)])

        assert mock_setup_logging.call_args[1]["verbose"] is True

    def test_invalid_config_warns(self, config_dir):
        (config_dir / "config.yaml").write_text("page_size: [oops\n")

        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir)])

        assert "Warning: Configuration error" in result.output
        assert "Specify a command" in result.output

    def test_locale_from_config(self, config_dir):
        (config_dir / "config.yaml").write_text("locale: ja-JP\n")

        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir)])

        assert result.exit_code == 1
        assert "Specify a command" not in result.output

    def test_log_dir_from_config(self, config_dir, tmp_path, mock_setup_logging):
        (config_dir / "config.yaml").write_text(f"log_dir: {tmp_path / 'logs'}\n")

        with patch("abook_sync.cli.main.cleanup_old_logs") as cleanup:
            CliRunner().invoke(cli, ["--config-dir", str(config_dir)])

        assert mock_setup_logging.call_args[1]["log_dir"] == tmp_path / "logs"
        cleanup.assert_called_once_with(tmp_path / "logs", keep_count=10)


class TestAuthCommand:
    """Tests for the auth command."""

    def test_auth_success(self, config_dir, book, mock_auth_class):
        result = invoke(config_dir, book, ["auth"])

        assert result.exit_code == 0
        assert "Successfully authenticated" in result.output
        mock_auth_class.assert_called_once_with(config_dir=config_dir.resolve())
        mock_auth_class.return_value.authenticate.assert_called_once_with(
            force_reauth=False
        )

    def test_auth_force(self, config_dir, book, mock_auth_class):
        invoke(config_dir, book, ["auth", "--force"])

        mock_auth_class.return_value.authenticate.assert_called_once_with(
            force_reauth=True
        )

    def test_auth_missing_client_secrets(self, config_dir, book, mock_auth_class):
        mock_auth_class.return_value.authenticate.side_effect = FileNotFoundError(
            "credentials.json not found"
        )

        result = invoke(config_dir, book, ["auth"])

        assert result.exit_code == 1
        assert "Authentication with Google failed" in result.output

    def test_auth_flow_failure(self, config_dir, book, mock_auth_class):
        mock_auth_class.return_value.authenticate.side_effect = AuthenticationError(
            "denied"
        )

        result = invoke(config_dir, book, ["auth"])

        assert result.exit_code == 1
        assert "denied" in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_init_new_file(self, config_dir, book, mock_auth_class, mock_api):
        result = invoke(config_dir, book, ["init"])

        assert result.exit_code == 0
        assert "Exported Google Contacts to the address book." in result.output
        assert book.read_text() == JANE

    def test_init_declined(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("old\n")

        result = invoke(config_dir, book, ["init"], input="n\n")

        assert result.exit_code == 0
        assert "Overwrite it? (y/n)" in result.output
        assert "Operation cancelled." in result.output
        assert book.read_text() == "old\n"

    def test_init_confirmed_with_backup(
        self, config_dir, book, mock_auth_class, mock_api
    ):
        book.write_text("old\n")

        result = invoke(config_dir, book, ["init"], input="Y\n")

        assert result.exit_code == 0
        assert book.read_text() == JANE
        backups = list((config_dir / "backups").iterdir())
        assert len(backups) == 1
        assert backups[0].read_text() == "old\n"

    def test_init_no_backup(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("old\n")

        invoke(config_dir, book, ["init", "--no-backup"], input="y\n")

        assert not (config_dir / "backups").exists()

    def test_backup_disabled_in_config(
        self, config_dir, book, mock_auth_class, mock_api
    ):
        (config_dir / "config.yaml").write_text("backup_enabled: false\n")
        book.write_text("old\n")

        invoke(config_dir, book, ["init"], input="y\n")

        assert not (config_dir / "backups").exists()

    def test_init_closed_input(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("old\n")

        result = invoke(config_dir, book, ["init"], input="")

        assert result.exit_code == 1
        assert "Failed to read input" in result.output
        assert book.read_text() == "old\n"

    def test_init_fetch_failure(self, config_dir, book, mock_auth_class, mock_api):
        mock_api.list_contacts.side_effect = PeopleAPIError("list_contacts failed")

        result = invoke(config_dir, book, ["init"])

        assert result.exit_code == 1
        assert "Failed to fetch contacts from Google Contacts" in result.output
        assert "list_contacts failed" in result.output

    def test_init_auth_failure(self, config_dir, book, mock_auth_class, mock_api):
        mock_auth_class.return_value.authenticate.side_effect = FileNotFoundError()

        result = invoke(config_dir, book, ["init"])

        assert result.exit_code == 1
        mock_api.list_contacts.assert_not_called()

    def test_page_size_from_config(self, config_dir, book, mock_auth_class):
        (config_dir / "config.yaml").write_text("page_size: 100\n")

        with patch("abook_sync.cli.main.PeopleAPI") as mock_api_class:
            mock_api_class.return_value.list_contacts.return_value = []
            invoke(config_dir, book, ["init"])

        assert mock_api_class.call_args[1] == {"page_size": 100}

    def test_addressbook_from_config(
        self, config_dir, tmp_path, mock_auth_class, mock_api
    ):
        target = tmp_path / "mail" / "addressbook"
        (config_dir / "config.yaml").write_text(f"addressbook_path: {target}\n")

        result = CliRunner().invoke(cli, ["--config-dir", str(config_dir), "init"])

        assert result.exit_code == 0
        assert target.read_text() == JANE


class TestSyncCommand:
    """Tests for the sync command."""

    def test_nothing_to_do(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text(JANE)

        result = invoke(config_dir, book, ["sync"])

        assert result.exit_code == 0
        assert "Address book updated." not in result.output
        assert book.read_text() == JANE

    def test_diverged_keep_google(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("Doe\tJane Doe\tjane@x.com\t+sent\t\n")

        result = invoke(config_dir, book, ["sync"], input="g\n")

        assert result.exit_code == 0
        assert "differs between Google Contacts and the address book" in result.output
        assert "Google Contacts:Jane Doe//VP" in result.output
        assert ".addressbook   :Jane Doe/Doe/" in result.output
        assert "Address book updated." in result.output
        assert book.read_text() == "Doe\tJane Doe\tjane@x.com\t+sent\tVP\n"

    def test_diverged_keep_addressbook(
        self, config_dir, book, mock_auth_class, mock_api
    ):
        book.write_text("Doe\tJane Doe\tjane@x.com\t\t\n")

        result = invoke(config_dir, book, ["sync"], input="a\n")

        assert result.exit_code == 0
        assert "Google Contacts updated." in result.output
        mock_api.save_contact.assert_called_once()
        assert book.read_text() == "Doe\tJane Doe\tjane@x.com\t\t\n"

    def test_local_only_prompt(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text(JANE + "Roe\tRichard Roe\trr@x.com\t\t\n")

        result = invoke(config_dir, book, ["sync"], input="a\n")

        assert "exists only in the address book" in result.output
        assert ".addressbook   :Roe/Richard Roe/rr@x.com/" in result.output
        assert book.read_text() == JANE

    def test_remote_only_prompt(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("")

        result = invoke(config_dir, book, ["sync"], input="a\n")

        assert "exists only in Google Contacts" in result.output
        assert "Google Contacts   :/Jane Doe/jane@x.com/VP" in result.output
        assert book.read_text() == JANE

    def test_unrecognized_answer_cancels(
        self, config_dir, book, mock_auth_class, mock_api
    ):
        book.write_text("Doe\tJane Doe\tjane@x.com\t\t\n")

        result = invoke(config_dir, book, ["sync"], input="q\n")

        assert result.exit_code == 0
        assert "Operation cancelled." in result.output
        mock_api.save_contact.assert_not_called()
        assert book.read_text() == "Doe\tJane Doe\tjane@x.com\t\t\n"

    def test_closed_input(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("")

        result = invoke(config_dir, book, ["sync"], input="")

        assert result.exit_code == 1
        assert "Failed to read input" in result.output

    def test_missing_addressbook(self, config_dir, book, mock_auth_class, mock_api):
        result = invoke(config_dir, book, ["sync"])

        assert result.exit_code == 1
        assert "Failed to read the address book" in result.output

    def test_update_failure(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text("Doe\tJane Doe\tjane@x.com\t\t\n")
        mock_api.save_contact.side_effect = PeopleAPIError("update_contact failed")

        result = invoke(config_dir, book, ["sync"], input="a\n")

        assert result.exit_code == 1
        assert "Failed to update Google Contacts" in result.output

    def test_unknown_home_for_addressbook(
        self, config_dir, book, mock_auth_class, mock_api
    ):
        with patch(
            "abook_sync.cli.main.AddressBookFile",
            side_effect=HomeNotFoundError("no HOME"),
        ):
            result = invoke(config_dir, book, ["sync"])

        assert result.exit_code == 1
        assert "Home directory not found" in result.output
        mock_auth_class.return_value.authenticate.assert_not_called()

    def test_verbose_summary(self, config_dir, book, mock_auth_class, mock_api):
        book.write_text(JANE)

        result = CliRunner().invoke(
            cli,
            ["-v", "--config-dir", str(config_dir), "--addressbook", str(book), "sync"],
        )

        assert "Sync Summary:" in result.output


class TestRemoteFailures:
    """Failures below the People API wrapper, with the real PeopleAPI."""

    @pytest.fixture
    def service(self):
        with patch("abook_sync.api.people_api.build") as mock_build:
            service = mock_build.return_value
            connections = service.people.return_value.connections.return_value
            connections.list.return_value.execute.return_value = {
                "connections": [
                    {
                        "resourceName": "people/c1",
                        "etag": "e1",
                        "names": [{"displayName": "Jane Doe"}],
                        "emailAddresses": [{"value": "jane@x.com"}],
                        "biographies": [{"value": "VP"}],
                    }
                ]
            }
            yield service

    def test_revoked_token_while_listing(
        self, config_dir, book, mock_auth_class, service
    ):
        book.write_text(JANE)
        connections = service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = RefreshError(
            "invalid_grant: Token has been expired or revoked."
        )

        result = invoke(config_dir, book, ["sync"])

        assert result.exit_code == 1
        assert "Failed to fetch contacts from Google Contacts" in result.output
        assert "invalid_grant" in result.output
        assert book.read_text() == JANE

    def test_revoked_token_during_init(
        self, config_dir, book, mock_auth_class, service
    ):
        connections = service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = RefreshError("revoked")

        result = invoke(config_dir, book, ["init"])

        assert result.exit_code == 1
        assert "Failed to fetch contacts from Google Contacts: " in result.output
        assert not book.exists()

    def test_connection_lost_during_update(
        self, config_dir, book, mock_auth_class, service
    ):
        book.write_text("Doe\tJane Doe\tjane@x.com\t\t\n")
        update = service.people.return_value.updateContact.return_value
        update.execute.side_effect = TransportError("connection reset")

        result = invoke(config_dir, book, ["sync"], input="a\n")

        assert result.exit_code == 1
        assert "Failed to update Google Contacts" in result.output
        assert "connection reset" in result.output
        assert book.read_text() == "Doe\tJane Doe\tjane@x.com\t\t\n"
