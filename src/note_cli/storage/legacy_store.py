"""Reader for the pre-database local JSON note file."""
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from note_cli.config import config
from note_cli.exceptions import ErrorCode, FormatError, StorageError
from note_cli.models.schema import NormalizedNote, decode_legacy_record

logger = logging.getLogger(__name__)


def normalize_legacy_note(record: Any) -> NormalizedNote:
    """Convert one raw legacy record into ``{content, tags}``.

    A string becomes the content with no tags. An object contributes
    content from ``content``/``text``/``note`` and tags from
    ``tags``/``labels`` (first non-empty alias wins).

    Raises:
        FormatError: If the record is neither a string nor an object, or
            its fields have the wrong types.
    """
    return decode_legacy_record(record).normalize()


class LegacyNoteStore:
    """The legacy file: a JSON object ``{"notes": [...]}``."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else config.get_legacy_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def read_all(self) -> List[Any]:
        """Load every raw record, in file order.

        Raises:
            StorageError: If the file is missing or unreadable.
            FormatError: If the file is not valid UTF-8 JSON or lacks a
                ``notes`` array.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StorageError(
                "Legacy notes file not found",
                operation="read_legacy",
                path=str(self.path),
                code=ErrorCode.LEGACY_FILE_MISSING,
            ) from e
        except OSError as e:
            raise StorageError(
                f"Failed to read legacy notes: {e}",
                operation="read_legacy",
                path=str(self.path),
                original_error=e,
            ) from e
        except UnicodeDecodeError as e:
            raise FormatError(
                "Legacy notes file is not valid UTF-8",
                code=ErrorCode.LEGACY_JSON_INVALID,
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FormatError(
                "Legacy notes file contains invalid JSON",
                code=ErrorCode.LEGACY_JSON_INVALID,
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("notes"), list):
            raise FormatError(
                "Invalid notes file format - expected object with notes array property",
                code=ErrorCode.LEGACY_SHAPE_INVALID,
            )

        logger.debug(f"Read {len(data['notes'])} legacy records from {self.path}")
        return data["notes"]

    @staticmethod
    def normalize(record: Any) -> NormalizedNote:
        return normalize_legacy_note(record)
