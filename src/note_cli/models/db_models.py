"""SQLAlchemy database models for the remote note store."""
import datetime
import uuid
from typing import Optional

from sqlalchemy import (Column, DateTime, ForeignKey, Integer, String, Text,
                        create_engine, event)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from note_cli.config import config

# Create base class for SQLAlchemy models
Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class DBUser(Base):
    """Database model for a user."""
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_new_id)
    username = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    notes = relationship("DBNote", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        """Return string representation of user."""
        return f"<User(id='{self.id}', username='{self.username}')>"


class DBNote(Base):
    """Database model for a note."""
    __tablename__ = "notes"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False, index=True)

    # Relationships
    owner = relationship("DBUser", back_populates="notes")
    tags = relationship(
        "DBNoteTag",
        order_by="DBNoteTag.position",
        back_populates="note",
        cascade="all, delete-orphan",
    )

    @property
    def tag_names(self) -> list:
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        """Return string representation of note."""
        return f"<Note(id='{self.id}', user_id='{self.user_id}')>"


class DBNoteTag(Base):
    """Database model for one tag of a note; position keeps tag order."""
    __tablename__ = "note_tags"
    note_id = Column(
        String(36), ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True
    )
    position = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)

    note = relationship("DBNote", back_populates="tags")

    def __repr__(self) -> str:
        """Return string representation of tag."""
        return f"<NoteTag(note_id='{self.note_id}', position={self.position}, name='{self.name}')>"


def init_db(database_url: Optional[str] = None) -> Engine:
    """Create the engine and make sure the schema exists.

    SQLite connections get foreign keys switched on so note deletion
    cascades to tags the same way it does on PostgreSQL.
    """
    url = database_url or config.get_db_url()
    engine = create_engine(url, pool_pre_ping=True)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine=None):
    """Get a session factory for the database."""
    if engine is None:
        engine = init_db()
    return sessionmaker(bind=engine, expire_on_commit=False)
