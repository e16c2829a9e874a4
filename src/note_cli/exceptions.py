"""Exceptions raised by note-cli.

Every error carries an ErrorCode so the CLI can log a stable identifier
next to the human message it prints.
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Stable identifiers for failures, grouped by the thousand."""

    # Validation errors (1xxx)
    VALIDATION_FAILED = 1001
    USERNAME_INVALID = 1002
    NOTE_CONTENT_REQUIRED = 1003
    NOTE_INDEX_OUT_OF_RANGE = 1004

    # Auth errors (2xxx)
    SESSION_REQUIRED = 2001

    # Lookup errors (3xxx)
    NOTE_NOT_FOUND = 3002
    USERNAME_TAKEN = 3003

    # Local storage errors (4xxx)
    STORAGE_READ_FAILED = 4001
    STORAGE_WRITE_FAILED = 4002
    STORAGE_DELETE_FAILED = 4003
    BACKUP_FAILED = 4004
    ARCHIVE_FAILED = 4005

    # Legacy format errors (5xxx)
    LEGACY_FILE_MISSING = 5001
    LEGACY_JSON_INVALID = 5002
    LEGACY_SHAPE_INVALID = 5003
    LEGACY_RECORD_INVALID = 5004

    # Remote store errors (6xxx)
    REMOTE_FAILED = 6001


class NoteCliError(Exception):
    """Base exception for all note-cli errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class ValidationError(NoteCliError):
    """Raised for bad user input (username format, note content, indices)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]  # Truncate for safety

        super().__init__(message, code=code, details=details)
        self.field = field
        self.value = value


class AuthError(NoteCliError):
    """Raised when a command needs a session and none is usable."""

    def __init__(
        self,
        message: str = 'No user session found. Please run "note setup <username>" first.',
        code: ErrorCode = ErrorCode.SESSION_REQUIRED
    ):
        super().__init__(message, code=code)


class UniqueConstraintError(NoteCliError):
    """Raised when a username is already registered."""

    def __init__(self, username: str, message: Optional[str] = None):
        super().__init__(
            message or (
                f'Username "{username}" is already taken. '
                "Please choose a different username."
            ),
            code=ErrorCode.USERNAME_TAKEN,
            details={"username": username}
        )
        self.username = username


class NotFoundError(NoteCliError):
    """Raised when a user or note cannot be found."""

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOTE_NOT_FOUND
    ):
        details = {}
        if identifier:
            details["identifier"] = identifier
        super().__init__(message, code=code, details=details)
        self.identifier = identifier


class StorageError(NoteCliError):
    """Raised for local file system failures other than "file is absent"."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.STORAGE_READ_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if path:
            details["path_hint"] = Path(path).name
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.operation = operation
        self.path = path
        self.original_error = original_error


class FormatError(NoteCliError):
    """Raised for malformed legacy JSON or an unrecognized legacy record."""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.LEGACY_RECORD_INVALID
    ):
        details = {}
        if record_type:
            details["record_type"] = record_type
        super().__init__(message, code=code, details=details)
        self.record_type = record_type


class RemoteError(NoteCliError):
    """Raised when the remote store reports a failure.

    The store's own message is passed through; ``operation`` names the
    store call that failed.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        code: ErrorCode = ErrorCode.REMOTE_FAILED
    ):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__(message, code=code, details=details)
        self.operation = operation
