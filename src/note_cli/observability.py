"""Diagnostics for note-cli: a rotating log file and remote call tracing.

User-facing output never goes through logging; the log exists so a failed
run (a migration in particular) can be reconstructed afterwards.
"""
import functools
import inspect
import logging
import time
import uuid
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "note_cli"
LOG_FILE_NAME = "note-cli.log"

# ISO 8601 timestamps
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Arguments worth echoing in a trace line; note content never is
TRACE_ARGUMENTS = ("owner_id", "note_id", "user_id", "username")

F = TypeVar("F", bound=Callable[..., Any])


def configure_logging(
    log_dir: Union[str, Path],
    level: int = logging.WARNING,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console: bool = True,
) -> Path:
    """Attach the log file (and optionally stderr) to the package logger.

    The file always receives INFO and above; ``level`` only controls what
    reaches the console. Calling this twice does not add handlers twice.

    Args:
        log_dir: Directory for ``note-cli.log`` and its rotations.
        level: Console level.
        max_bytes: Size at which the file rotates.
        backup_count: Rotated files kept.
        console: Whether to log to stderr as well.

    Returns:
        Path to the active log file.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(min(level, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handler_types = {type(h) for h in package_logger.handlers}
    if RotatingFileHandler not in handler_types:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setLevel(min(level, logging.INFO))
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    if console and logging.StreamHandler not in handler_types:
        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(level)
        stderr_handler.setFormatter(formatter)
        package_logger.addHandler(stderr_handler)

    logger.debug(f"Logging to {log_file} (rotate at {max_bytes} bytes, keep {backup_count})")
    return log_file


@contextmanager
def timed_operation(operation: str, **context: Any) -> Iterator[Dict[str, Any]]:
    """Log how long ``operation`` took, tagged with a short trace id.

    The yielded dict collects outcome fields (``result_count``,
    ``store_error``...) that are appended to the closing log line.

    Example:
        with timed_operation("list_notes", owner_id=owner_id) as outcome:
            rows = fetch()
            outcome["result_count"] = len(rows)
    """
    trace_id = uuid.uuid4().hex[:8]
    outcome: Dict[str, Any] = {}
    started = time.perf_counter()
    described = " ".join(f"{k}={v}" for k, v in context.items())
    logger.debug(f"[{trace_id}] {operation} begin {described}".rstrip())

    failure: Optional[BaseException] = None
    try:
        yield outcome
    except Exception as e:
        failure = e
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        fields = " ".join(f"{k}={v}" for k, v in outcome.items())
        status = "ok" if failure is None else f"raised {type(failure).__name__}: {failure}"
        logger.debug(f"[{trace_id}] {operation} {status} in {elapsed_ms:.1f}ms {fields}".rstrip())


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Wrap a remote store method in :func:`timed_operation`.

    Identifying arguments (owner, note, username) are picked out whether
    they were passed positionally or by keyword. A returned store result
    contributes its error code or the number of rows it carries.
    """

    def decorator(func: F) -> F:
        name = operation_name or func.__name__
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            bound = signature.bind_partial(*args, **kwargs).arguments
            context = {k: bound[k] for k in TRACE_ARGUMENTS if bound.get(k) is not None}

            with timed_operation(name, **context) as outcome:
                result = func(*args, **kwargs)
                error = getattr(result, "error", None)
                if error is not None:
                    outcome["store_error"] = getattr(error, "code", error)
                elif isinstance(getattr(result, "data", None), list):
                    outcome["result_count"] = len(result.data)
                return result

        return wrapper  # type: ignore[return-value]

    return decorator
