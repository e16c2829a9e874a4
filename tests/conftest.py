"""Common test fixtures for note-cli."""

import json
import tempfile
from pathlib import Path

import pytest

from note_cli.backup import LegacyBackupManager
from note_cli.commands import CommandHandlers
from note_cli.config import config
from note_cli.models.db_models import init_db
from note_cli.storage.legacy_store import LegacyNoteStore
from note_cli.storage.remote_store import RemoteStore
from tests.fakes import InMemorySessionStore


@pytest.fixture
def temp_home():
    """Create a temporary directory standing in for ~/.note-cli."""
    with tempfile.TemporaryDirectory() as home_dir:
        yield Path(home_dir)


@pytest.fixture
def test_config(temp_home, monkeypatch):
    """Point the global config at the temp home (auto-restored even on crash)."""
    monkeypatch.setattr(config, "base_dir", temp_home)
    monkeypatch.setattr(config, "database_url", f"sqlite:///{temp_home / 'test_notes.db'}")
    monkeypatch.setattr(config, "open_browser", False)
    yield config


@pytest.fixture
def remote_store(test_config):
    """A RemoteStore on a fresh SQLite database."""
    engine = init_db(test_config.get_db_url())
    store = RemoteStore(engine=engine)
    yield store
    engine.dispose()


@pytest.fixture
def sessions():
    """An empty in-memory session repository."""
    return InMemorySessionStore()


@pytest.fixture
def alice(remote_store):
    """A registered user."""
    return remote_store.create_user("alice").data


@pytest.fixture
def alice_session(sessions, alice):
    """Log alice in and return the session."""
    return sessions.save(alice)


@pytest.fixture
def legacy_path(test_config):
    return test_config.get_legacy_path()


@pytest.fixture
def write_legacy(legacy_path):
    """Write a legacy notes file. Accepts the notes list or raw text."""

    def _write(notes=None, raw=None):
        legacy_path.parent.mkdir(parents=True, exist_ok=True)
        if raw is not None:
            legacy_path.write_text(raw, encoding="utf-8")
        else:
            legacy_path.write_text(json.dumps({"notes": notes or []}), encoding="utf-8")
        return legacy_path

    return _write


@pytest.fixture
def legacy_store(legacy_path):
    return LegacyNoteStore(legacy_path)


@pytest.fixture
def backup_manager(test_config, legacy_path):
    return LegacyBackupManager(
        legacy_path=legacy_path,
        backup_path=test_config.get_backup_path(),
        archive_dir=test_config.get_archive_dir(),
    )


@pytest.fixture
def handlers(sessions, remote_store, legacy_store, backup_manager):
    """Command handlers wired to the test stores."""
    return CommandHandlers(
        sessions=sessions,
        store=remote_store,
        legacy_store=legacy_store,
        backup_manager=backup_manager,
    )
