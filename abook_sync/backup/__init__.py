"""
Backup functionality for the address book.

This module copies the address book to a timestamped snapshot before it is
overwritten, keeping a bounded number of snapshots.
"""

from abook_sync.backup.manager import BackupManager

__all__ = ["BackupManager"]
