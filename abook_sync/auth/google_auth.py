"""
OAuth2 authentication module for Google Contacts access.

Provides OAuth 2.0 authentication with support for:
- Installed-app authorization flow in the user's browser
- Token caching in the configuration directory
- Secure credential storage (token file readable only by the owner)
"""

import json
import logging
from pathlib import Path

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from abook_sync.utils.paths import resolve_config_dir

# OAuth2 scopes required for Google Contacts access
SCOPES = ["https://www.googleapis.com/auth/contacts"]

CREDENTIALS_FILE = "credentials.json"
TOKEN_FILE = "token.json"

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


class GoogleAuth:
    """
    OAuth2 authentication manager for a single Google account.

    Attributes:
        config_dir: Directory for storing credentials and tokens
        credentials_path: Path to OAuth client credentials file
        token_path: Path to the cached user token

    Usage:
        auth = GoogleAuth()

        # Use the cached token, or run the browser flow
        creds = auth.authenticate()

        # Get credentials only if already authenticated
        creds = auth.get_credentials()
    """

    def __init__(self, config_dir: Path | None = None):
        """
        Initialize the authentication manager.

        Args:
            config_dir: Directory for storing credentials and tokens.
                       Defaults to ~/.abook-sync/ or $ABOOK_SYNC_CONFIG_DIR
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.credentials_path = self.config_dir / CREDENTIALS_FILE
        self.token_path = self.config_dir / TOKEN_FILE

    def _ensure_config_dir(self) -> None:
        """Create the configuration directory with mode 700 if missing."""
        if not self.config_dir.exists():
            self.config_dir.mkdir(parents=True, mode=0o700)
            logger.debug(f"Created config directory: {self.config_dir}")

    def _load_credentials(self) -> Credentials | None:
        """
        Load credentials from the token file if it exists.

        Returns:
            Credentials object if the token file exists and is readable,
            None otherwise
        """
        if not self.token_path.exists():
            logger.debug("No token file found")
            return None

        try:
            creds: Credentials = Credentials.from_authorized_user_file(
                str(self.token_path), SCOPES
            )
            logger.debug("Loaded cached credentials")
            return creds
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid token file {self.token_path}: {e}")
            return None

    def _save_credentials(self, creds: Credentials) -> None:
        """Write credentials to the token file with mode 600."""
        self._ensure_config_dir()
        self.token_path.write_text(creds.to_json())
        self.token_path.chmod(0o600)
        logger.debug(f"Saved credentials to {self.token_path}")

    def get_credentials(self) -> Credentials | None:
        """
        Get cached credentials without user interaction.

        Expired credentials that carry a refresh token are returned as is;
        the API client refreshes them on first use.

        Returns:
            Credentials object, or None if no usable token is cached
        """
        creds = self._load_credentials()

        if creds is None:
            return None

        if creds.valid:
            return creds

        if creds.refresh_token:
            logger.debug("Cached credentials expired, refresh token present")
            return creds

        logger.debug("Cached credentials expired without a refresh token")
        return None

    def authenticate(self, force_reauth: bool = False) -> Credentials:
        """
        Authenticate the Google account.

        If cached credentials exist and force_reauth is False, returns them.
        Otherwise, runs the OAuth flow in the browser to obtain new ones.

        Args:
            force_reauth: If True, ignore cached credentials and re-authenticate

        Returns:
            Credentials object

        Raises:
            AuthenticationError: If the OAuth flow fails
            FileNotFoundError: If credentials.json is not found
        """
        if not force_reauth:
            creds = self.get_credentials()
            if creds is not None:
                logger.info("Using existing credentials")
                return creds

        if not self.credentials_path.exists():
            raise FileNotFoundError(
                f"OAuth credentials file not found: {self.credentials_path}\n"
                "Please download your OAuth client credentials from "
                "Google Cloud Console and save them to this location."
            )

        logger.info("Starting OAuth flow")

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path), SCOPES
            )
            new_creds: Credentials = flow.run_local_server(port=0)
        except Exception as e:
            logger.error(f"Authentication failed: {e}")
            raise AuthenticationError(f"Failed to authenticate: {e}") from e

        self._save_credentials(new_creds)
        logger.info("Successfully authenticated")
        return new_creds
