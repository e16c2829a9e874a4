"""Username-based login, signup and session checks."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from note_cli.exceptions import ErrorCode, RemoteError, UniqueConstraintError
from note_cli.models.schema import Session
from note_cli.storage.remote_store import RemoteStore, StoreErrorCode
from note_cli.storage.session_store import SessionRepository
from note_cli.utils import validate_username

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginOutcome:
    """Result of ``AccountService.login``.

    ``status`` is "resumed" when the existing local session was reused,
    "existing" when a fresh session was opened for a known user and
    "created" when the user was registered first.
    """

    session: Session
    status: Literal["resumed", "existing", "created"]


class AccountService:
    """Maps a username to a remote user and a local session."""

    def __init__(self, store: RemoteStore, sessions: SessionRepository):
        self.store = store
        self.sessions = sessions

    def is_session_valid(self, session: Optional[Session]) -> bool:
        """A session is valid if the remote user with its username has its ID."""
        if session is None or not session.id or not session.username:
            return False
        result = self.store.find_user_by_username(session.username)
        if not result.ok:
            logger.info(f"Session check failed for {session.username}: {result.error.message}")
            return False
        return result.data.id == session.id

    def login(self, username: str) -> LoginOutcome:
        """Log in as ``username``, registering it on first use.

        Raises:
            ValidationError: If the username is malformed.
            UniqueConstraintError: If registration races with another
                signup for the same name.
            RemoteError: If the store fails.
        """
        normalized = validate_username(username)

        current = self.sessions.get()
        if current is not None:
            if current.username == normalized and self.is_session_valid(current):
                return LoginOutcome(session=current, status="resumed")
            # Stale or someone else's session
            self.sessions.clear()

        found = self.store.find_user_by_username(normalized)
        if found.ok:
            session = self.sessions.save(found.data)
            logger.info(f"Logged in existing user {normalized}")
            return LoginOutcome(session=session, status="existing")
        if found.error.code != StoreErrorCode.NOT_FOUND:
            raise RemoteError(f"Database error: {found.error.message}", operation="find_user_by_username")

        created = self.store.create_user(normalized)
        if not created.ok:
            if created.error.code == StoreErrorCode.UNIQUE_VIOLATION:
                raise UniqueConstraintError(normalized)
            raise RemoteError(
                f"Failed to create user: {created.error.message}",
                operation="create_user",
                code=ErrorCode.REMOTE_FAILED,
            )
        session = self.sessions.save(created.data)
        logger.info(f"Registered new user {normalized}")
        return LoginOutcome(session=session, status="created")

    def whoami(self) -> Optional[Session]:
        return self.sessions.get()

    def logout(self) -> Optional[Session]:
        """Clear the local session and return it, or None if there was none."""
        session = self.sessions.get()
        if session is None:
            return None
        self.sessions.clear()
        logger.info(f"Logged out {session.username}")
        return session
