"""Tests for log file setup and remote call tracing."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from note_cli.observability import PACKAGE_LOGGER, configure_logging, timed_operation, traced
from note_cli.storage.remote_store import StoreErrorCode, StoreResult


@pytest.fixture
def package_logger():
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    yield package_logger
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_creates_log_file(self, temp_home, package_logger):
        log_file = configure_logging(temp_home / "logs", console=False)

        assert log_file == temp_home / "logs" / "note-cli.log"
        assert log_file.exists()
        logging.getLogger("note_cli.something").info("hello from a module")
        for handler in package_logger.handlers:
            handler.flush()
        assert "hello from a module" in log_file.read_text()

    def test_idempotent(self, temp_home, package_logger):
        configure_logging(temp_home, console=True)
        configure_logging(temp_home, console=True)

        file_handlers = [h for h in package_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert len(package_logger.handlers) == 2

    def test_console_respects_level(self, temp_home, package_logger):
        configure_logging(temp_home, level=logging.ERROR, console=True)
        console = [h for h in package_logger.handlers if not isinstance(h, RotatingFileHandler)]
        assert console[0].level == logging.ERROR
        # The file still records INFO
        assert package_logger.level == logging.INFO


class TestTracing:
    """Tests for timed_operation and traced."""

    def test_timed_operation_logs_outcome(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="note_cli.observability"):
            with timed_operation("list_notes", owner_id="u1") as outcome:
                outcome["result_count"] = 3

        lines = [r.getMessage() for r in caplog.records]
        assert any("list_notes begin owner_id=u1" in line for line in lines)
        assert any("list_notes ok" in line and "result_count=3" in line for line in lines)

    def test_timed_operation_reraises(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="note_cli.observability"):
            with pytest.raises(ValueError):
                with timed_operation("boom"):
                    raise ValueError("bad")
        assert any("raised ValueError: bad" in r.getMessage() for r in caplog.records)

    def test_traced_picks_positional_arguments(self, caplog):
        class Store:
            @traced("delete_note")
            def delete_note(self, note_id, owner_id, username=None):
                return StoreResult.failure(StoreErrorCode.NOT_FOUND, "gone")

        with caplog.at_level(logging.DEBUG, logger="note_cli.observability"):
            result = Store().delete_note("n1", "u1", username="alice")

        assert result.error.code == StoreErrorCode.NOT_FOUND
        begin = caplog.records[0].getMessage()
        assert "note_id=n1" in begin
        assert "owner_id=u1" in begin
        assert "username=alice" in begin
        assert "store_error=" in caplog.records[-1].getMessage()

    def test_traced_keeps_function_metadata(self):
        @traced()
        def list_notes(owner_id):
            """List them."""
            return StoreResult.success([])

        assert list_notes.__name__ == "list_notes"
        assert list_notes.__doc__ == "List them."
