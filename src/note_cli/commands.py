"""Command handlers: one per CLI verb.

Handlers print user-facing output and return the value they acted on so
callers (and tests) can inspect it. Failures propagate as NoteCliError
subclasses; ``main`` turns them into an error message and exit code.
"""

import logging
from typing import Callable, List, Optional, Sequence

from note_cli.backup import LegacyBackupManager
from note_cli.config import config
from note_cli.models.schema import MigrationPreview, MigrationResult, Note, Session
from note_cli.services.account_service import AccountService
from note_cli.services.migration_service import MigrationService
from note_cli.services.note_service import NoteService
from note_cli.storage.legacy_store import LegacyNoteStore
from note_cli.storage.remote_store import RemoteStore
from note_cli.storage.session_store import SessionRepository
from note_cli.utils import format_note_list, is_numeric_index

logger = logging.getLogger(__name__)


class CommandHandlers:
    """Wires the stores and services together for the CLI verbs."""

    def __init__(
        self,
        sessions: SessionRepository,
        store: Optional[RemoteStore] = None,
        store_factory: Optional[Callable[[], RemoteStore]] = None,
        legacy_store: Optional[LegacyNoteStore] = None,
        backup_manager: Optional[LegacyBackupManager] = None,
    ):
        """Initialize the handlers.

        Args:
            sessions: Session repository used for authentication.
            store: Remote store. When None, ``store_factory`` is called the
                first time a command needs it, so session-only commands
                never open a database connection.
            store_factory: Builds the remote store on demand.
            legacy_store: Legacy JSON reader. Defaults to the configured path.
            backup_manager: Backup/archive manager for the legacy file.
        """
        if store is None and store_factory is None:
            store_factory = RemoteStore
        self.sessions = sessions
        self._store = store
        self._store_factory = store_factory
        self.legacy_store = legacy_store or LegacyNoteStore()
        self.backup_manager = backup_manager or LegacyBackupManager(
            legacy_path=self.legacy_store.path
        )

    @property
    def store(self) -> RemoteStore:
        if self._store is None:
            self._store = self._store_factory()
        return self._store

    @property
    def accounts(self) -> AccountService:
        return AccountService(self.store, self.sessions)

    @property
    def notes(self) -> NoteService:
        return NoteService(self.store, self.sessions)

    def migration(self, reporter: Optional[Callable[[str], None]] = print) -> MigrationService:
        return MigrationService(
            self.legacy_store, self.store, self.backup_manager, reporter=reporter
        )

    # ------------------------------------------------------------------
    # Session commands
    # ------------------------------------------------------------------

    def handle_setup(self, username: str) -> Session:
        outcome = self.accounts.login(username)
        name = outcome.session.username
        if outcome.status == "created":
            print(f"✓ Account created for {name}!")
        else:
            print(f"✓ Welcome back, {name}!")

        # Never migrates on its own; only points the user at the commands
        if outcome.status != "resumed" and self.legacy_store.exists():
            print("\n🔍 Legacy notes detected!")
            print('💡 Run "note migrate" to import your old notes into the new system.')
            print('💡 Or run "note migrate-check" to see what would be migrated.')
        return outcome.session

    def handle_whoami(self) -> Optional[Session]:
        session = self.sessions.get()
        if session is None:
            print('No user session found. Please run "note setup <username>" first.')
            return None
        print(f"Logged in as: {session.username}")
        return session

    def handle_logout(self) -> Optional[str]:
        session = self.sessions.get()
        if session is None:
            print("✓ No active session to logout from.")
            return None
        self.sessions.clear()
        print(f"✓ Logged out {session.username} successfully.")
        return session.username

    # ------------------------------------------------------------------
    # Note commands
    # ------------------------------------------------------------------

    def handle_add(self, content: str, tags: Optional[Sequence[str]] = None) -> Note:
        note = self.notes.add_note(content, tags or [])
        print(f"✓ Note added! ID: {note.id}")
        return note

    def handle_all(self) -> List[Note]:
        notes = self.notes.get_all_notes()
        self._print_notes(notes)
        return notes

    def handle_find(self, term: str, tags: Optional[Sequence[str]] = None) -> List[Note]:
        if tags:
            notes = self.notes.find_notes_by_tags(tags)
        else:
            notes = self.notes.find_notes(term)
        self._print_notes(notes)
        return notes

    def handle_remove(self, identifier: str) -> str:
        removed = self.notes.remove_note(identifier)
        if is_numeric_index(identifier):
            print(f"✓ Note #{identifier} removed successfully")
        else:
            print(f"✓ Note removed: {removed.id}")
        return removed.id

    def handle_clean(self) -> List[Note]:
        removed = self.notes.remove_all_notes()
        print(f"✓ All notes removed ({len(removed)} deleted)")
        return removed

    @staticmethod
    def _print_notes(notes: Sequence[Note]) -> None:
        if not notes:
            print("No notes found.")
            return
        print(format_note_list(notes))

    # ------------------------------------------------------------------
    # Migration commands
    # ------------------------------------------------------------------

    def handle_migrate(self) -> MigrationResult:
        session = self.sessions.require()
        print(f"🚀 Starting migration for user: {session.username}")

        migration = self.migration()
        result = migration.migrate(session)

        print("\n📊 Migration Results:")
        if result.success:
            print(f"✅ {result.message}")
            if result.migrated > 0:
                print(f"📝 {result.migrated} notes migrated successfully")
            if result.skipped > 0:
                print(f"⚠️  {result.skipped} empty notes were skipped")
        else:
            print(f"❌ {result.message}")

        print()
        print("| Migrated | Skipped | Errors |")
        print("|----------|---------|--------|")
        print(f"| {result.migrated:>8} | {result.skipped:>7} | {len(result.errors):>6} |")
        for issue in result.errors:
            where = f"note {issue.index}" if issue.type == "note" else issue.stage
            print(f"  - {where}: {issue.error}")

        if result.should_archive:
            print('💡 Run "note all" to see all your notes.')
            print("\n📦 Archiving legacy note files...")
            migration.archive()

        return result

    def handle_migrate_check(self) -> MigrationPreview:
        self.sessions.require()
        preview = self.migration(reporter=None).preview()
        if not preview.needed:
            print("ℹ️  No legacy notes found. Migration not needed.")
            return preview

        print(f"📊 Found {preview.total} legacy notes:")
        print(f"✅ {preview.valid} notes would be migrated")
        if preview.empty:
            print(f"⚠️  {preview.empty} empty notes would be skipped")
        if preview.invalid:
            print(f"❌ {preview.invalid} notes have an unrecognized format and would fail")
        print('\n💡 Run "note migrate" to perform the migration.')
        return preview

    # ------------------------------------------------------------------
    # Web viewer
    # ------------------------------------------------------------------

    def handle_web(self, port: Optional[int] = None) -> None:
        from note_cli.web.viewer import serve

        session = self.sessions.require()
        notes = self.notes.get_all_notes()
        port = port or config.web_port
        print(f"Serving {len(notes)} notes on http://localhost:{port} (Ctrl+C to stop)")
        serve(
            notes,
            session.username,
            host=config.web_host,
            port=port,
            open_browser=config.open_browser,
        )
