"""Data models for note-cli."""

import datetime
from dataclasses import dataclass, field
from datetime import timezone
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field, field_validator

from note_cli.exceptions import ErrorCode, FormatError

# Field aliases accepted in legacy object records, in lookup order
LEGACY_CONTENT_FIELDS: Sequence[str] = ("content", "text", "note")
LEGACY_TAG_FIELDS: Sequence[str] = ("tags", "labels")


def utc_now() -> datetime.datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.datetime.now(timezone.utc)


def json_type_name(value: Any) -> str:
    """Name a decoded JSON value's type the way JSON itself does."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class Session(BaseModel):
    """The locally persisted identity of the logged-in user."""

    id: str = Field(..., description="Remote user ID")
    username: str = Field(..., description="Username the session belongs to")
    login_time: datetime.datetime = Field(
        default_factory=utc_now, alias="loginTime", description="When login happened (UTC)"
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", "username")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Session identity fields must not be blank."""
        if not str(v).strip():
            raise ValueError("Session id and username cannot be empty")
        return v

    def to_file_dict(self) -> Dict[str, Any]:
        """Serialize with the on-disk field names."""
        return self.model_dump(mode="json", by_alias=True)


class User(BaseModel):
    """A user record from the remote store."""

    id: str = Field(..., description="Identifier assigned by the remote store")
    username: str = Field(..., description="Unique username")
    created_at: Optional[datetime.datetime] = Field(default=None)

    model_config = {"frozen": True}


class Note(BaseModel):
    """A note owned by exactly one user."""

    id: str = Field(..., description="Identifier assigned by the remote store")
    owner_id: str = Field(..., description="ID of the owning user")
    content: str = Field(..., description="Note text")
    tags: List[str] = Field(default_factory=list, description="Ordered tags")
    created_at: Optional[datetime.datetime] = Field(default=None)

    model_config = {"frozen": True}


@dataclass(frozen=True)
class NormalizedNote:
    """Canonical shape of a legacy record, ready to insert."""

    content: str
    tags: List[str]

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass(frozen=True)
class StringNote:
    """Legacy record stored as a bare string: the content, no tags."""

    text: str

    def normalize(self) -> NormalizedNote:
        return NormalizedNote(content=self.text, tags=[])


@dataclass(frozen=True)
class ObjectNote:
    """Legacy record stored as an object with aliased field names.

    Content is taken from the first non-empty field of
    LEGACY_CONTENT_FIELDS, tags from the first non-empty field of
    LEGACY_TAG_FIELDS.
    """

    fields: Dict[str, Any]

    def _first_present(self, names: Sequence[str]) -> Any:
        for name in names:
            value = self.fields.get(name)
            if value:
                return value
        return None

    def normalize(self) -> NormalizedNote:
        content = self._first_present(LEGACY_CONTENT_FIELDS)
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise FormatError(
                f"Invalid note content: expected string, got {json_type_name(content)}",
                record_type="object",
            )

        tags = self._first_present(LEGACY_TAG_FIELDS)
        if tags is None:
            tags = []
        if not isinstance(tags, list):
            raise FormatError(
                f"Invalid note tags: expected array, got {json_type_name(tags)}",
                record_type="object",
            )
        if any(isinstance(tag, (dict, list)) or tag is None for tag in tags):
            raise FormatError(
                "Invalid note tags: every tag must be a string",
                record_type="object",
            )
        return NormalizedNote(content=content, tags=[str(tag) for tag in tags])


LegacyRecord = Union[StringNote, ObjectNote]


def decode_legacy_record(raw: Any) -> LegacyRecord:
    """Classify a raw decoded JSON value as one of the legacy record shapes.

    Raises:
        FormatError: If the value is neither a string nor an object.
    """
    if isinstance(raw, str):
        return StringNote(text=raw)
    if isinstance(raw, dict):
        return ObjectNote(fields=raw)
    record_type = json_type_name(raw)
    raise FormatError(
        f"Invalid note format: {record_type}",
        record_type=record_type,
        code=ErrorCode.LEGACY_RECORD_INVALID,
    )


@dataclass
class MigrationIssue:
    """One failure recorded during a migration run.

    ``type`` is "system" for a stage failure that aborted the run
    (``stage`` names it) and "note" for a single record that could not be
    migrated (``index`` is 1-based, ``original_record`` is the raw value).
    """

    type: Literal["system", "note"]
    error: str
    index: Optional[int] = None
    original_record: Any = None
    stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "error": self.error}
        if self.type == "note":
            data["index"] = self.index
            data["original_record"] = self.original_record
        if self.stage:
            data["stage"] = self.stage
        return data


@dataclass
class MigrationResult:
    """Outcome of one migration run. Never persisted."""

    success: bool
    message: str = ""
    migrated: int = 0
    skipped: int = 0
    errors: List[MigrationIssue] = field(default_factory=list)

    @property
    def processed(self) -> int:
        """Records accounted for: migrated + skipped + failed."""
        return self.migrated + self.skipped + len(self.errors)

    @property
    def should_archive(self) -> bool:
        return self.success and self.migrated > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "migrated": self.migrated,
            "skipped": self.skipped,
            "errors": [issue.to_dict() for issue in self.errors],
        }


@dataclass
class MigrationPreview:
    """Read-only classification of the legacy store's records.

    ``invalid`` counts records that fail normalization, so
    ``valid + empty + invalid == total`` always holds.
    """

    needed: bool
    total: int = 0
    valid: int = 0
    empty: int = 0
    invalid: int = 0
