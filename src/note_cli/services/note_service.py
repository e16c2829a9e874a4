"""Service layer for session-scoped note operations."""

import logging
from typing import List, Optional, Sequence

from note_cli.exceptions import ErrorCode, NotFoundError, RemoteError, ValidationError
from note_cli.models.schema import Note
from note_cli.storage.remote_store import RemoteStore, StoreErrorCode, StoreResult
from note_cli.storage.session_store import SessionRepository
from note_cli.utils import looks_like_index

logger = logging.getLogger(__name__)


def unwrap(result: StoreResult, failure_prefix: str, operation: str):
    """Return ``result.data`` or raise the matching exception.

    Used for note calls only, so NOT_FOUND becomes a NotFoundError with
    NOTE_NOT_FOUND; anything else becomes RemoteError with
    ``failure_prefix`` in front of the store's message.
    """
    if result.ok:
        return result.data
    error = result.error
    if error.code == StoreErrorCode.NOT_FOUND:
        raise NotFoundError(f"{failure_prefix}: {error.message}")
    raise RemoteError(f"{failure_prefix}: {error.message}", operation=operation)


class NoteService:
    """Note operations for whoever is logged in.

    Every call authenticates through the session repository first and
    passes the session's user ID to the store, so one user can never
    touch another user's notes.
    """

    def __init__(self, store: RemoteStore, sessions: SessionRepository):
        self.store = store
        self.sessions = sessions

    def add_note(self, content: str, tags: Optional[Sequence[str]] = None) -> Note:
        """Create a note for the current user."""
        session = self.sessions.require()
        if not content or not content.strip():
            raise ValidationError(
                "Note content cannot be empty",
                field="content",
                code=ErrorCode.NOTE_CONTENT_REQUIRED,
            )
        clean_tags = [t.strip() for t in (tags or []) if t and t.strip()]
        result = self.store.create_note(session.id, content, clean_tags, username=session.username)
        note = unwrap(result, "Failed to add note", "create_note")
        logger.info(f"Note {note.id} added for {session.username}")
        return note

    def get_all_notes(self) -> List[Note]:
        session = self.sessions.require()
        result = self.store.list_notes(session.id, username=session.username)
        return unwrap(result, "Failed to get notes", "list_notes")

    def find_notes(self, term: str) -> List[Note]:
        """Case-insensitive substring search over note content."""
        session = self.sessions.require()
        result = self.store.search_by_content(session.id, term, username=session.username)
        return unwrap(result, "Failed to find notes", "search_by_content")

    def find_notes_by_tags(self, tags: Sequence[str]) -> List[Note]:
        """Notes carrying at least one of ``tags``."""
        session = self.sessions.require()
        result = self.store.search_by_tags(session.id, list(tags), username=session.username)
        return unwrap(result, "Failed to find notes", "search_by_tags")

    def remove_note(self, identifier: str) -> Note:
        """Delete one note, addressed by 1-based list index or by note ID.

        An all-digit identifier is an index into the listing order of
        ``get_all_notes``. Out-of-range indices, including negative
        ones, are rejected before anything is deleted.
        """
        session = self.sessions.require()
        identifier = str(identifier).strip()

        if looks_like_index(identifier):
            index = int(identifier)
            notes = self.get_all_notes()
            if index < 1 or index > len(notes):
                if notes:
                    hint = f"Choose a number between 1 and {len(notes)}"
                else:
                    hint = "You have no notes"
                raise ValidationError(
                    f"Invalid note index {index}. {hint}",
                    field="index",
                    value=index,
                    code=ErrorCode.NOTE_INDEX_OUT_OF_RANGE,
                )
            note_id = notes[index - 1].id
        else:
            note_id = identifier

        result = self.store.delete_note(note_id, session.id, username=session.username)
        if result.error and result.error.code == StoreErrorCode.NOT_FOUND:
            raise NotFoundError(f"Note not found: {identifier}", identifier=identifier)
        removed = unwrap(result, "Failed to remove note", "delete_note")
        logger.info(f"Note {removed.id} removed for {session.username}")
        return removed

    def remove_all_notes(self) -> List[Note]:
        session = self.sessions.require()
        result = self.store.delete_all(session.id, username=session.username)
        removed = unwrap(result, "Failed to remove notes", "delete_all")
        logger.info(f"Removed {len(removed)} notes for {session.username}")
        return removed
