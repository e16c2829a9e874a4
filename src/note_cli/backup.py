"""Backup and archival of the legacy note file.

Two copies are made around a migration:
- a sibling ``<file>.backup`` written before any record is read
  (overwritten on every attempt)
- a timestamped copy under the archive directory, made after a
  successful migration, after which the original file is deleted
"""
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from note_cli.config import config
from note_cli.exceptions import ErrorCode, StorageError

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "db-"


class LegacyBackupManager:
    """Manages the backup and archive copies of the legacy note file."""

    def __init__(
        self,
        legacy_path: Optional[Union[str, Path]] = None,
        backup_path: Optional[Union[str, Path]] = None,
        archive_dir: Optional[Union[str, Path]] = None,
    ):
        """Initialize the backup manager.

        Args:
            legacy_path: The legacy JSON file. Defaults to the configured path.
            backup_path: Sibling backup target. Defaults to ``<legacy>.backup``.
            archive_dir: Directory for archived copies. Defaults to the
                configured archive directory.
        """
        self.legacy_path = Path(legacy_path) if legacy_path else config.get_legacy_path()
        if backup_path:
            self.backup_path = Path(backup_path)
        else:
            self.backup_path = self.legacy_path.with_name(self.legacy_path.name + ".backup")
        self.archive_dir = Path(archive_dir) if archive_dir else config.get_archive_dir()

    def create_backup(self) -> Path:
        """Copy the legacy file to its sibling backup path.

        Returns:
            Path to the backup file.

        Raises:
            StorageError: If the copy fails.
        """
        try:
            shutil.copy2(self.legacy_path, self.backup_path)
        except OSError as e:
            raise StorageError(
                f"Failed to create backup: {e}",
                operation="backup",
                path=str(self.backup_path),
                code=ErrorCode.BACKUP_FAILED,
                original_error=e,
            ) from e

        size_kb = self.backup_path.stat().st_size / 1024
        logger.info(f"Legacy backup created: {self.backup_path} ({size_kb:.1f} KB)")
        return self.backup_path

    def archive(self) -> Path:
        """Move the legacy file into the archive directory.

        The file is copied to a timestamped name first and the original
        is deleted only after the copy succeeded, so a failure leaves at
        worst a duplicate behind.

        Returns:
            Path to the archived copy.

        Raises:
            StorageError: If creating the directory, copying or deleting fails.
        """
        try:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
            archive_path = self.archive_dir / f"{ARCHIVE_PREFIX}{timestamp}.json"
            shutil.copy2(self.legacy_path, archive_path)
            self.legacy_path.unlink()
        except OSError as e:
            raise StorageError(
                f"Failed to archive legacy files: {e}",
                operation="archive",
                path=str(self.legacy_path),
                code=ErrorCode.ARCHIVE_FAILED,
                original_error=e,
            ) from e

        logger.info(f"Legacy notes archived to: {archive_path}")
        return archive_path

    def list_archives(self) -> List[Dict[str, Any]]:
        """List archived legacy files, newest first."""
        if not self.archive_dir.is_dir():
            return []

        archives = []
        for path in self.archive_dir.glob(f"{ARCHIVE_PREFIX}*.json"):
            stat = path.stat()
            archives.append({
                "path": str(path),
                "name": path.name,
                "size_bytes": stat.st_size,
                "created_at": datetime.fromtimestamp(
                    stat.st_mtime, tz=timezone.utc
                ).isoformat(),
            })

        # Names embed the timestamp, so they sort chronologically
        archives.sort(key=lambda a: a["name"], reverse=True)
        return archives
