"""Migration of the legacy JSON note file into the remote store.

The run is a linear pipeline:

1. no legacy file: nothing to do
2. back the file up to ``<file>.backup`` (abort on failure)
3. read every record (abort on failure)
4. normalize and insert each record in file order, collecting
   per-record failures instead of stopping
5. summarize

The legacy file itself is never modified here; archival is a separate
call the caller makes once a run succeeded with at least one note.
Nothing records which records were already imported, so re-running
after a partial failure inserts the successful ones again.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from note_cli.backup import LegacyBackupManager
from note_cli.exceptions import FormatError, NoteCliError
from note_cli.models.schema import (
    MigrationIssue,
    MigrationPreview,
    MigrationResult,
    Session,
)
from note_cli.storage.legacy_store import LegacyNoteStore
from note_cli.storage.remote_store import RemoteStore
from note_cli.utils import truncate

logger = logging.getLogger(__name__)

Reporter = Callable[[str], None]


def _error_text(error: Exception) -> str:
    return error.message if isinstance(error, NoteCliError) else str(error)


class MigrationService:
    """Imports legacy notes for one user."""

    def __init__(
        self,
        legacy_store: LegacyNoteStore,
        store: RemoteStore,
        backup_manager: Optional[LegacyBackupManager] = None,
        reporter: Optional[Reporter] = None,
    ):
        """Initialize the service.

        Args:
            legacy_store: Reader for the legacy JSON file.
            store: Remote store receiving the notes.
            backup_manager: Handles the backup and archive copies. Defaults
                to one built around ``legacy_store.path``.
            reporter: Receives a running narrative of each stage, e.g.
                ``print`` for the CLI. Messages are logged regardless.
        """
        self.legacy_store = legacy_store
        self.store = store
        self.backup_manager = backup_manager or LegacyBackupManager(
            legacy_path=legacy_store.path
        )
        self.reporter = reporter

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.reporter:
            self.reporter(message)

    def needs_migration(self) -> bool:
        return self.legacy_store.exists()

    def migrate(self, session: Session) -> MigrationResult:
        """Import every legacy record into the store for ``session``'s user."""
        if not self.needs_migration():
            return MigrationResult(success=True, message="No migration needed")

        self._report("💾 Creating backup before migration...")
        try:
            backup_path = self.backup_manager.create_backup()
        except NoteCliError as e:
            logger.error(f"Backup stage failed: {e}")
            return MigrationResult(
                success=False,
                message=f"Migration aborted: Could not create backup - {e.message}",
                errors=[MigrationIssue(type="system", error=e.message, stage="backup")],
            )
        self._report(f"✅ Backup created: {backup_path}")

        self._report("📖 Reading legacy notes...")
        try:
            records = self.legacy_store.read_all()
        except NoteCliError as e:
            logger.error(f"Reading stage failed: {e}")
            return MigrationResult(
                success=False,
                message=f"Migration failed: Could not read legacy notes - {e.message}",
                errors=[MigrationIssue(type="system", error=e.message, stage="reading")],
            )
        self._report(f"📊 Found {len(records)} legacy notes to migrate")

        self._report("📝 Migrating notes to database...")
        result = MigrationResult(success=True)

        for index, record in enumerate(records, 1):
            try:
                error = self._migrate_record(index, record, session, result)
            except Exception as e:
                # One bad record never aborts the batch
                logger.exception(f"Unexpected failure migrating note {index}")
                error = _error_text(e)
            if error is not None:
                result.errors.append(MigrationIssue(
                    type="note", index=index, original_record=record, error=error
                ))

        if result.errors:
            result.success = False
            result.message = (
                f"Migration completed with {len(result.errors)} errors. "
                f"{result.migrated} notes migrated successfully."
            )
        else:
            result.message = f"Migration completed successfully! {result.migrated} notes migrated."

        logger.info(
            f"Migration for {session.username}: migrated={result.migrated} "
            f"skipped={result.skipped} errors={len(result.errors)}"
        )
        return result

    def _migrate_record(
        self, index: int, record: Any, session: Session, result: MigrationResult
    ) -> Optional[str]:
        """Normalize and insert one record. Returns an error text on failure."""
        try:
            normalized = self.legacy_store.normalize(record)
        except FormatError as e:
            return _error_text(e)

        if normalized.is_empty:
            self._report(f"⚠️  Skipping empty note {index}")
            result.skipped += 1
            return None

        created = self.store.create_note(
            session.id, normalized.content, normalized.tags, username=session.username
        )
        if not created.ok:
            return created.error.message

        result.migrated += 1
        self._report(f'✅ Migrated note {index}: "{truncate(normalized.content)}"')
        return None

    def archive(self) -> Path:
        """Move the legacy file to the archive directory.

        Raises:
            StorageError: If any step fails. The legacy file may then
                still exist alongside a partial or complete copy.
        """
        archive_path = self.backup_manager.archive()
        self._report(f"📦 Legacy files archived to: {archive_path}")
        return archive_path

    def preview(self) -> MigrationPreview:
        """Classify the legacy records without writing anything.

        Raises:
            StorageError, FormatError: If the legacy file cannot be read.
        """
        if not self.needs_migration():
            return MigrationPreview(needed=False)

        records = self.legacy_store.read_all()
        preview = MigrationPreview(needed=True, total=len(records))
        for record in records:
            try:
                normalized = self.legacy_store.normalize(record)
            except FormatError:
                preview.invalid += 1
                continue
            if normalized.is_empty:
                preview.empty += 1
            else:
                preview.valid += 1
        return preview
