"""
abook_sync.auth - OAuth2 authentication for Google Contacts
"""

from abook_sync.auth.google_auth import AuthenticationError, GoogleAuth

__all__ = ["AuthenticationError", "GoogleAuth"]
