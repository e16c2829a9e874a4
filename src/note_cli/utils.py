"""Utility functions for note-cli."""
import re
from typing import Iterable

from note_cli.exceptions import ErrorCode, ValidationError

USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 50
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

_NUMERIC_INDEX_PATTERN = re.compile(r"^\d+$")
_SIGNED_INDEX_PATTERN = re.compile(r"^-?\d+$")


def validate_username(username: str) -> str:
    """Validate and normalize a username.

    Surrounding whitespace is stripped; the remainder must be 2-50
    characters of letters, digits, underscores and hyphens.

    Args:
        username: Raw username from the command line.

    Returns:
        The trimmed username.

    Raises:
        ValidationError: If the username is empty, too short, too long,
            or contains disallowed characters.
    """
    normalized = (username or "").strip()

    if not normalized:
        raise ValidationError(
            "Username cannot be empty or contain only whitespace",
            field="username",
            code=ErrorCode.USERNAME_INVALID,
        )
    if len(normalized) < USERNAME_MIN_LENGTH:
        raise ValidationError(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters long",
            field="username",
            value=normalized,
            code=ErrorCode.USERNAME_INVALID,
        )
    if len(normalized) > USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username cannot be longer than {USERNAME_MAX_LENGTH} characters",
            field="username",
            value=normalized,
            code=ErrorCode.USERNAME_INVALID,
        )
    if not USERNAME_PATTERN.match(normalized):
        raise ValidationError(
            "Username can only contain letters, numbers, underscores, and hyphens",
            field="username",
            value=normalized,
            code=ErrorCode.USERNAME_INVALID,
        )
    return normalized


def is_numeric_index(value: str) -> bool:
    """Return True if ``value`` is made of decimal digits only."""
    return bool(_NUMERIC_INDEX_PATTERN.match(str(value)))


def looks_like_index(value: str) -> bool:
    """Like is_numeric_index, but also true for "-3" so it can be range-checked."""
    return bool(_SIGNED_INDEX_PATTERN.match(str(value)))


def truncate(text: str, length: int = 50) -> str:
    """Shorten text for one-line previews, marking the cut with '...'."""
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


def format_note_list(notes: Iterable) -> str:
    """Render notes as the numbered listing shown by `all` and `find`.

    Indices are 1-based and match what `remove <index>` expects.
    """
    blocks = []
    for index, note in enumerate(notes, 1):
        blocks.append(
            f"[{index}]\n"
            f"note: {note.content}\n"
            f"id: {note.id}\n"
            f"tags: {', '.join(note.tags)}"
        )
    return "\n\n".join(blocks)


def escape_like_pattern(value: str) -> str:
    """Escape SQL LIKE wildcards to treat them as literals.

    Prevents SQL LIKE pattern injection where user input containing
    '%' or '_' could match unintended patterns.

    Example:
        >>> escape_like_pattern("100% complete")
        '100\\% complete'
    """
    escape_table = str.maketrans(
        {
            "\\": "\\\\",  # Escape backslash first
            "%": "\\%",
            "_": "\\_",
        }
    )
    return value.translate(escape_table)
