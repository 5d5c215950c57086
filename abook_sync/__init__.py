"""
abook_sync - Reconcile Google Contacts with a local ~/.addressbook file.

Keeps a tab-delimited address book (as used by mutt-style mail clients)
consistent with the contacts stored in a Google account.
"""

__version__ = "0.1.0"
