"""Configuration module for note-cli."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from note_cli import __version__

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config lives alongside the session file
_USER_ENV = Path.home() / ".note-cli" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


class NoteCliConfig(BaseModel):
    """Configuration for the note CLI."""

    # Base directory for all local state (session, legacy store, logs)
    base_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("NOTE_CLI_HOME", str(Path.home() / ".note-cli"))
        ).expanduser()
    )
    # Remote database. When unset, a SQLite file under base_dir is used.
    database_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("NOTE_CLI_DATABASE_URL") or None
    )
    # Local files (relative paths are resolved against base_dir)
    session_file: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTE_CLI_SESSION_FILE", "user.json"))
    )
    legacy_notes_file: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTE_CLI_LEGACY_FILE", "db.json"))
    )
    archive_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTE_CLI_ARCHIVE_DIR", "archive"))
    )
    log_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTE_CLI_LOG_DIR", "logs"))
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("NOTE_CLI_LOG_LEVEL", "WARNING").upper()
    )
    # Web viewer
    web_host: str = Field(
        default_factory=lambda: os.getenv("NOTE_CLI_WEB_HOST", "127.0.0.1")
    )
    web_port: int = Field(
        default_factory=lambda: int(os.getenv("NOTE_CLI_WEB_PORT", "5000"))
    )
    open_browser: bool = Field(
        default_factory=lambda: os.getenv("NOTE_CLI_OPEN_BROWSER", "true").lower()
        in _TRUTHY
    )
    app_version: str = Field(default=__version__)

    @model_validator(mode="after")
    def _validate_web_port(self) -> "NoteCliConfig":
        """Reject ports that cannot be bound."""
        if not 1 <= self.web_port <= 65535:
            raise ValueError("web_port must be between 1 and 65535")
        return self

    def get_absolute_path(self, path: Path) -> Path:
        """Convert a relative path to an absolute path based on base_dir."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return self.base_dir / path

    def get_session_path(self) -> Path:
        """Get the absolute path of the local session file."""
        return self.get_absolute_path(self.session_file)

    def get_legacy_path(self) -> Path:
        """Get the absolute path of the legacy JSON note store."""
        return self.get_absolute_path(self.legacy_notes_file)

    def get_backup_path(self) -> Path:
        """Get the sibling backup path written before each migration."""
        legacy = self.get_legacy_path()
        return legacy.with_name(legacy.name + ".backup")

    def get_archive_dir(self) -> Path:
        """Get the directory that receives archived legacy files."""
        return self.get_absolute_path(self.archive_dir)

    def get_log_dir(self) -> Path:
        """Get the directory for persistent log files."""
        return self.get_absolute_path(self.log_dir)

    def get_db_url(self) -> str:
        """Get the database URL, defaulting to SQLite under base_dir."""
        if self.database_url:
            return self.database_url
        db_path = self.base_dir / "notes.db"
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"


# Create a global config instance
config = NoteCliConfig()
