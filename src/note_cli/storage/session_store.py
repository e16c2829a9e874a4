"""Local persistence of the logged-in identity."""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from note_cli.config import config
from note_cli.exceptions import AuthError, ErrorCode, StorageError
from note_cli.models.schema import Session, User, utc_now

logger = logging.getLogger(__name__)


class SessionRepository(ABC):
    """Single-slot store for the current session.

    Commands receive an instance instead of reaching for a global, so
    tests can substitute an in-memory implementation.
    """

    @abstractmethod
    def get(self) -> Optional[Session]:
        """Return the stored session, or None when there is none."""

    @abstractmethod
    def save(self, user: Union[User, Mapping[str, Any]]) -> Session:
        """Persist a new session for ``user`` stamped with the current time."""

    @abstractmethod
    def clear(self) -> bool:
        """Remove the stored session. Clearing an absent session succeeds."""

    def require(self) -> Session:
        """Return the session or raise AuthError if nobody is logged in."""
        session = self.get()
        if session is None:
            raise AuthError()
        return session

    @staticmethod
    def _session_for(user: Union[User, Mapping[str, Any]]) -> Session:
        if isinstance(user, User):
            return Session(id=user.id, username=user.username, login_time=utc_now())
        return Session(id=str(user["id"]), username=user["username"], login_time=utc_now())


class FileSessionStore(SessionRepository):
    """Session stored as a JSON file: ``{"id", "username", "loginTime"}``."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else config.get_session_path()

    def save(self, user: Union[User, Mapping[str, Any]]) -> Session:
        session = self._session_for(user)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(session.to_file_dict(), indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise StorageError(
                f"Could not save user session: {e}",
                operation="save_session",
                path=str(self.path),
                code=ErrorCode.STORAGE_WRITE_FAILED,
                original_error=e,
            ) from e
        logger.info(f"Session saved for {session.username}")
        return session

    def get(self) -> Optional[Session]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(
                f"Could not read user session: {e}",
                operation="read_session",
                path=str(self.path),
                original_error=e,
            ) from e
        except UnicodeDecodeError as e:
            raise self._malformed(e) from e

        try:
            return Session.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError, TypeError) as e:
            raise self._malformed(e) from e

    def _malformed(self, error: Exception) -> StorageError:
        return StorageError(
            "Could not read user session: session file is malformed",
            operation="read_session",
            path=str(self.path),
            original_error=error,
        )

    def clear(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            raise StorageError(
                f"Could not clear user session: {e}",
                operation="clear_session",
                path=str(self.path),
                code=ErrorCode.STORAGE_DELETE_FAILED,
                original_error=e,
            ) from e
        logger.info("Session cleared")
        return True
