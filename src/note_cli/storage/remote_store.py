"""Remote relational store for users and notes.

Every call returns a :class:`StoreResult` instead of raising for expected
conditions (missing rows, duplicate usernames, database failures). Note
calls are always scoped by the owning user's ID.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from note_cli.models.db_models import (
    DBNote,
    DBNoteTag,
    DBUser,
    get_session_factory,
    init_db,
)
from note_cli.models.schema import Note, User
from note_cli.observability import traced
from note_cli.utils import escape_like_pattern

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreErrorCode(str, Enum):
    """Failure categories reported by the store."""

    NOT_FOUND = "not_found"
    UNIQUE_VIOLATION = "unique_violation"
    REMOTE = "remote"


@dataclass(frozen=True)
class StoreError:
    """An expected failure reported by the store as data."""

    code: StoreErrorCode
    message: str


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Either ``data`` or ``error`` is set, never both."""

    data: Optional[T] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "StoreResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, code: StoreErrorCode, message: str) -> "StoreResult[T]":
        return cls(error=StoreError(code=code, message=message))


def _to_user(db_user: DBUser) -> User:
    return User(id=db_user.id, username=db_user.username, created_at=db_user.created_at)


def _to_note(db_note: DBNote) -> Note:
    return Note(
        id=db_note.id,
        owner_id=db_note.user_id,
        content=db_note.content,
        tags=db_note.tag_names,
        created_at=db_note.created_at,
    )


def _build_tags(tags: Sequence[str]) -> List[DBNoteTag]:
    return [DBNoteTag(position=i, name=name) for i, name in enumerate(tags)]


class RemoteStore:
    """SQLAlchemy-backed implementation of the user/note store contract.

    The database URL decides the backend; PostgreSQL is the intended
    production target, SQLite works for local use and tests.
    """

    def __init__(self, engine=None, database_url: Optional[str] = None):
        """Initialize the store.

        Args:
            engine: Pre-configured SQLAlchemy engine. When None, one is
                    created from ``database_url`` (or the configured URL).
            database_url: Used only when ``engine`` is None.
        """
        self.engine = engine if engine is not None else init_db(database_url)
        self.session_factory = get_session_factory(self.engine)
        logger.debug(f"RemoteStore initialized ({self.engine.dialect.name})")

    @contextmanager
    def _scoped_session(self, username: Optional[str] = None):
        """Open a session whose transaction is tagged with the acting user.

        On PostgreSQL the username is exposed to row-level security
        policies as ``current_setting('app.current_username')`` for the
        lifetime of the transaction.
        """
        with self.session_factory() as session:
            if username and self.engine.dialect.name == "postgresql":
                session.execute(
                    text("SELECT set_config('app.current_username', :username, true)"),
                    {"username": username},
                )
            yield session

    def _run(
        self,
        operation: str,
        fn: Callable[[Session], StoreResult[T]],
        username: Optional[str] = None,
    ) -> StoreResult[T]:
        try:
            with self._scoped_session(username) as session:
                return fn(session)
        except SQLAlchemyError as e:
            detail = getattr(e, "orig", None) or e
            logger.error(f"{operation} failed: {detail}")
            return StoreResult.failure(StoreErrorCode.REMOTE, str(detail))
        except UnicodeError as e:
            # The driver rejects text it cannot encode (e.g. lone surrogates)
            logger.error(f"{operation} failed: {e}")
            return StoreResult.failure(StoreErrorCode.REMOTE, f"Unencodable text: {e}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @traced("create_user")
    def create_user(self, username: str) -> StoreResult[User]:
        def op(session: Session) -> StoreResult[User]:
            db_user = DBUser(username=username)
            session.add(db_user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return StoreResult.failure(
                    StoreErrorCode.UNIQUE_VIOLATION,
                    f"duplicate key value violates unique constraint: username={username}",
                )
            logger.info(f"Created user: {username}")
            return StoreResult.success(_to_user(db_user))

        return self._run("create_user", op, username)

    @traced("find_user_by_username")
    def find_user_by_username(self, username: str) -> StoreResult[User]:
        def op(session: Session) -> StoreResult[User]:
            db_user = session.scalar(select(DBUser).where(DBUser.username == username))
            if db_user is None:
                return StoreResult.failure(
                    StoreErrorCode.NOT_FOUND, f"No user named '{username}'"
                )
            return StoreResult.success(_to_user(db_user))

        return self._run("find_user_by_username", op, username)

    @traced("find_user_by_id")
    def find_user_by_id(self, user_id: str) -> StoreResult[User]:
        def op(session: Session) -> StoreResult[User]:
            db_user = session.get(DBUser, user_id)
            if db_user is None:
                return StoreResult.failure(
                    StoreErrorCode.NOT_FOUND, f"No user with ID '{user_id}'"
                )
            return StoreResult.success(_to_user(db_user))

        return self._run("find_user_by_id", op)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def _notes_query(self, owner_id: str):
        return (
            select(DBNote)
            .options(selectinload(DBNote.tags))
            .where(DBNote.user_id == owner_id)
            .order_by(DBNote.created_at, DBNote.id)
        )

    def _get_owned_note(self, session: Session, note_id: str, owner_id: str) -> Optional[DBNote]:
        return session.scalar(
            select(DBNote)
            .options(selectinload(DBNote.tags))
            .where(DBNote.id == note_id, DBNote.user_id == owner_id)
        )

    @traced("create_note")
    def create_note(
        self,
        owner_id: str,
        content: str,
        tags: Optional[Sequence[str]] = None,
        username: Optional[str] = None,
    ) -> StoreResult[Note]:
        def op(session: Session) -> StoreResult[Note]:
            if session.get(DBUser, owner_id) is None:
                return StoreResult.failure(
                    StoreErrorCode.REMOTE,
                    f"Note owner '{owner_id}' does not exist",
                )
            db_note = DBNote(user_id=owner_id, content=content, tags=_build_tags(tags or []))
            session.add(db_note)
            session.commit()
            return StoreResult.success(_to_note(db_note))

        return self._run("create_note", op, username)

    @traced("list_notes")
    def list_notes(self, owner_id: str, username: Optional[str] = None) -> StoreResult[List[Note]]:
        def op(session: Session) -> StoreResult[List[Note]]:
            rows = session.scalars(self._notes_query(owner_id)).all()
            return StoreResult.success([_to_note(row) for row in rows])

        return self._run("list_notes", op, username)

    @traced("search_by_content")
    def search_by_content(
        self, owner_id: str, term: str, username: Optional[str] = None
    ) -> StoreResult[List[Note]]:
        """Case-insensitive substring match on note content."""
        pattern = f"%{escape_like_pattern(term)}%"

        def op(session: Session) -> StoreResult[List[Note]]:
            rows = session.scalars(
                self._notes_query(owner_id).where(
                    DBNote.content.ilike(pattern, escape="\\")
                )
            ).all()
            return StoreResult.success([_to_note(row) for row in rows])

        return self._run("search_by_content", op, username)

    @traced("search_by_tags")
    def search_by_tags(
        self, owner_id: str, tags: Sequence[str], username: Optional[str] = None
    ) -> StoreResult[List[Note]]:
        """Notes sharing at least one tag with ``tags``."""
        wanted = list(tags)

        def op(session: Session) -> StoreResult[List[Note]]:
            if not wanted:
                return StoreResult.success([])
            tagged = select(DBNoteTag.note_id).where(DBNoteTag.name.in_(wanted))
            rows = session.scalars(
                self._notes_query(owner_id).where(DBNote.id.in_(tagged))
            ).all()
            return StoreResult.success([_to_note(row) for row in rows])

        return self._run("search_by_tags", op, username)

    @traced("find_note_by_id")
    def find_note_by_id(
        self, note_id: str, owner_id: str, username: Optional[str] = None
    ) -> StoreResult[Note]:
        def op(session: Session) -> StoreResult[Note]:
            db_note = self._get_owned_note(session, note_id, owner_id)
            if db_note is None:
                return StoreResult.failure(
                    StoreErrorCode.NOT_FOUND, f"Note '{note_id}' not found"
                )
            return StoreResult.success(_to_note(db_note))

        return self._run("find_note_by_id", op, username)

    @traced("update_note")
    def update_note(
        self,
        note_id: str,
        owner_id: str,
        content: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        username: Optional[str] = None,
    ) -> StoreResult[Note]:
        def op(session: Session) -> StoreResult[Note]:
            db_note = self._get_owned_note(session, note_id, owner_id)
            if db_note is None:
                return StoreResult.failure(
                    StoreErrorCode.NOT_FOUND, f"Note '{note_id}' not found"
                )
            if content is not None:
                db_note.content = content
            if tags is not None:
                # Old rows must be gone before new positions are inserted
                db_note.tags.clear()
                session.flush()
                db_note.tags.extend(_build_tags(tags))
            session.commit()
            return StoreResult.success(_to_note(db_note))

        return self._run("update_note", op, username)

    @traced("delete_note")
    def delete_note(
        self, note_id: str, owner_id: str, username: Optional[str] = None
    ) -> StoreResult[Note]:
        def op(session: Session) -> StoreResult[Note]:
            db_note = self._get_owned_note(session, note_id, owner_id)
            if db_note is None:
                return StoreResult.failure(
                    StoreErrorCode.NOT_FOUND, f"Note '{note_id}' not found"
                )
            removed = _to_note(db_note)
            session.delete(db_note)
            session.commit()
            return StoreResult.success(removed)

        return self._run("delete_note", op, username)

    @traced("delete_all")
    def delete_all(self, owner_id: str, username: Optional[str] = None) -> StoreResult[List[Note]]:
        def op(session: Session) -> StoreResult[List[Note]]:
            rows = session.scalars(self._notes_query(owner_id)).all()
            removed = [_to_note(row) for row in rows]
            for row in rows:
                session.delete(row)
            session.commit()
            return StoreResult.success(removed)

        return self._run("delete_all", op, username)
