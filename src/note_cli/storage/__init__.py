"""Storage layer for note-cli."""

from note_cli.storage.legacy_store import LegacyNoteStore, normalize_legacy_note
from note_cli.storage.remote_store import (
    RemoteStore,
    StoreError,
    StoreErrorCode,
    StoreResult,
)
from note_cli.storage.session_store import FileSessionStore, SessionRepository

__all__ = [
    "FileSessionStore",
    "LegacyNoteStore",
    "RemoteStore",
    "SessionRepository",
    "StoreError",
    "StoreErrorCode",
    "StoreResult",
    "normalize_legacy_note",
]
