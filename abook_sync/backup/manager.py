"""
Backup manager for the address book file.

Provides functionality to:
- Copy the address book to a timestamped backup before it is overwritten
- List available backups sorted by timestamp
- Apply retention policy to limit backup count
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class BackupManager:
    """
    Manager for creating and pruning address book backups.

    Attributes:
        backup_dir: Directory path where backups are stored
        retention_count: Maximum number of backups to retain (0 = unlimited)

    Usage:
        from pathlib import Path

        bm = BackupManager(Path("~/.abook-sync/backups"), retention_count=10)

        # Copy the address book before overwriting it
        backup_file = bm.create_backup(Path("~/.addressbook").expanduser())

        # List available backups
        backups = bm.list_backups()
    """

    BACKUP_PREFIX = "addressbook_"

    def __init__(self, backup_dir: Path, retention_count: int = 10):
        """
        Initialize the backup manager.

        Args:
            backup_dir: Directory path where backups will be stored
            retention_count: Maximum number of backups to keep (0 = keep all)
        """
        self.backup_dir = Path(backup_dir).expanduser()
        self.retention_count = retention_count

    def create_backup(self, source: Path) -> Path | None:
        """
        Copy a file to a timestamped backup.

        Creates a file named addressbook_YYYYMMDD_HHMMSS in backup_dir. A
        second backup within the same second gets a numeric suffix.

        Args:
            source: File to back up

        Returns:
            Path to created backup file, or None if the source does not
            exist or the copy failed
        """
        source = Path(source)
        if not source.exists():
            return None

        ts_str = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.backup_dir / f"{self.BACKUP_PREFIX}{ts_str}"
        counter = 1
        while backup_path.exists():
            backup_path = self.backup_dir / f"{self.BACKUP_PREFIX}{ts_str}_{counter}"
            counter += 1

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, backup_path)
        except OSError as e:
            # Backup failure shouldn't block the write
            logger.warning(f"Failed to back up {source}: {e}")
            return None

        logger.debug(f"Created backup: {backup_path}")
        self.apply_retention()
        return backup_path

    def list_backups(self) -> list[Path]:
        """
        List all available backup files sorted by timestamp (newest first).

        Returns:
            List of Path objects for backup files, sorted newest to oldest
        """
        if not self.backup_dir.exists():
            return []

        backup_files = [
            path
            for path in self.backup_dir.glob(f"{self.BACKUP_PREFIX}*")
            if path.is_file()
        ]

        # Names embed the timestamp, so they sort chronologically
        backup_files.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

        return backup_files

    def apply_retention(self) -> list[Path]:
        """
        Apply retention policy by deleting old backups.

        Keeps only the most recent N backups where N = retention_count.
        If retention_count is 0, all backups are kept.

        Returns:
            List of backups that were deleted
        """
        if self.retention_count == 0:
            return []

        deleted: list[Path] = []
        for backup in self.list_backups()[self.retention_count :]:
            try:
                backup.unlink()
                deleted.append(backup)
            except OSError as e:
                logger.warning(f"Failed to delete old backup {backup}: {e}")

        if deleted:
            logger.debug(f"Deleted {len(deleted)} old backups")
        return deleted
