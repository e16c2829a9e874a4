"""Tests for the CLI command handlers and their output."""

from unittest.mock import patch

import pytest

from note_cli.commands import CommandHandlers
from note_cli.exceptions import AuthError, StorageError, ValidationError
from tests.fakes import InMemorySessionStore


class TestSessionCommands:
    """Tests for setup, whoami and logout."""

    def test_setup_creates_account(self, handlers, capsys):
        session = handlers.handle_setup("alice")
        assert session.username == "alice"
        assert "✓ Account created for alice!" in capsys.readouterr().out

    def test_setup_welcomes_back(self, handlers, alice, capsys):
        handlers.handle_setup("alice")
        assert "✓ Welcome back, alice!" in capsys.readouterr().out

    def test_setup_points_at_migration(self, handlers, write_legacy, capsys):
        legacy = write_legacy(["old note"])
        handlers.handle_setup("alice")

        out = capsys.readouterr().out
        assert "🔍 Legacy notes detected!" in out
        assert 'note migrate' in out
        # Setup never migrates on its own
        assert legacy.exists()
        assert handlers.notes.get_all_notes() == []

    def test_setup_invalid_username(self, handlers):
        with pytest.raises(ValidationError):
            handlers.handle_setup("!!")

    def test_whoami(self, handlers, alice_session, capsys):
        assert handlers.handle_whoami() == alice_session
        assert capsys.readouterr().out.strip() == "Logged in as: alice"

    def test_whoami_without_session(self, handlers, capsys):
        assert handlers.handle_whoami() is None
        assert "No user session found" in capsys.readouterr().out

    def test_logout(self, handlers, alice_session, sessions, capsys):
        assert handlers.handle_logout() == "alice"
        assert sessions.get() is None
        assert "✓ Logged out alice successfully." in capsys.readouterr().out

        assert handlers.handle_logout() is None
        assert "✓ No active session to logout from." in capsys.readouterr().out

    def test_session_commands_never_open_the_store(self, alice):
        factory_calls = []

        def factory():
            factory_calls.append(1)
            raise AssertionError("store should not be opened")

        handlers = CommandHandlers(
            sessions=InMemorySessionStore(), store_factory=factory
        )
        handlers.handle_whoami()
        handlers.handle_logout()
        assert factory_calls == []


class TestNoteCommands:
    """Tests for add, all, find, remove and clean."""

    def test_commands_require_session(self, handlers):
        with pytest.raises(AuthError):
            handlers.handle_all()

    def test_add_and_all(self, handlers, alice_session, capsys):
        note = handlers.handle_add("Buy milk", ["shopping"])
        assert f"✓ Note added! ID: {note.id}" in capsys.readouterr().out

        handlers.handle_all()
        out = capsys.readouterr().out
        assert "[1]\nnote: Buy milk\n" in out
        assert f"id: {note.id}" in out
        assert "tags: shopping" in out

    def test_all_empty(self, handlers, alice_session, capsys):
        assert handlers.handle_all() == []
        assert "No notes found." in capsys.readouterr().out

    def test_find_by_term_and_tags(self, handlers, alice_session, capsys):
        handlers.handle_add("Call the bank", ["finance"])
        handlers.handle_add("Walk the dog", ["home"])
        capsys.readouterr()

        assert [n.content for n in handlers.handle_find("dog")] == ["Walk the dog"]
        assert [n.content for n in handlers.handle_find("", ["finance"])] == ["Call the bank"]
        assert handlers.handle_find("nothing matches") == []
        assert "No notes found." in capsys.readouterr().out

    def test_remove_by_index(self, handlers, alice_session, capsys):
        handlers.handle_add("first")
        second = handlers.handle_add("second")
        capsys.readouterr()

        assert handlers.handle_remove("2") == second.id
        assert "✓ Note #2 removed successfully" in capsys.readouterr().out

    def test_remove_by_id(self, handlers, alice_session, capsys):
        note = handlers.handle_add("first")
        capsys.readouterr()

        handlers.handle_remove(note.id)
        assert f"✓ Note removed: {note.id}" in capsys.readouterr().out

    def test_clean(self, handlers, alice_session, capsys):
        handlers.handle_add("a")
        handlers.handle_add("b")
        capsys.readouterr()

        assert len(handlers.handle_clean()) == 2
        assert "✓ All notes removed (2 deleted)" in capsys.readouterr().out


class TestMigrationCommands:
    """Tests for migrate and migrate-check."""

    def test_migrate_requires_session(self, handlers, write_legacy):
        write_legacy(["x"])
        with pytest.raises(AuthError):
            handlers.handle_migrate()

    def test_migrate_success_archives(self, handlers, alice_session, write_legacy, backup_manager, capsys):
        legacy = write_legacy(["one", {"content": "two", "tags": ["t"]}, ""])

        result = handlers.handle_migrate()

        assert result.success
        assert result.migrated == 2
        assert not legacy.exists()
        assert len(backup_manager.list_archives()) == 1
        out = capsys.readouterr().out
        assert "🚀 Starting migration for user: alice" in out
        assert "| Migrated | Skipped | Errors |" in out
        assert "|        2 |       1 |      0 |" in out
        assert "📦 Legacy files archived to:" in out

    def test_migrate_with_errors_keeps_legacy_file(self, handlers, alice_session, write_legacy, capsys):
        legacy = write_legacy(["one", 5])

        result = handlers.handle_migrate()

        assert not result.success
        assert legacy.exists()
        out = capsys.readouterr().out
        assert "❌ Migration completed with 1 errors." in out
        assert "  - note 2: Invalid note format: number" in out

    def test_migrate_nothing_to_do(self, handlers, alice_session, capsys):
        result = handlers.handle_migrate()
        assert result.success
        assert "✅ No migration needed" in capsys.readouterr().out

    def test_migrate_archive_failure_propagates(self, handlers, alice_session, write_legacy):
        write_legacy(["one"])
        with patch.object(handlers.backup_manager, "archive", side_effect=StorageError("Failed to archive legacy files: boom")):
            with pytest.raises(StorageError):
                handlers.handle_migrate()
        # Notes were imported before archival failed
        assert len(handlers.notes.get_all_notes()) == 1

    def test_migrate_check(self, handlers, alice_session, write_legacy, capsys):
        write_legacy(["a", "", {"text": "b"}, 3])

        preview = handlers.handle_migrate_check()

        assert (preview.valid, preview.empty, preview.invalid) == (2, 1, 1)
        out = capsys.readouterr().out
        assert "📊 Found 4 legacy notes:" in out
        assert "✅ 2 notes would be migrated" in out
        assert "⚠️  1 empty notes would be skipped" in out
        assert "❌ 1 notes have an unrecognized format and would fail" in out
        assert handlers.notes.get_all_notes() == []

    def test_migrate_check_without_legacy_file(self, handlers, alice_session, capsys):
        assert not handlers.handle_migrate_check().needed
        assert "Migration not needed" in capsys.readouterr().out


class TestWebCommand:
    """Tests for the web viewer command."""

    def test_web_serves_current_notes(self, handlers, alice_session, test_config):
        handlers.handle_add("visible")
        with patch("note_cli.web.viewer.serve") as serve:
            handlers.handle_web(8123)

        serve.assert_called_once()
        args, kwargs = serve.call_args
        notes, username = args
        assert [n.content for n in notes] == ["visible"]
        assert username == "alice"
        assert kwargs["port"] == 8123
        assert kwargs["open_browser"] is False

    def test_web_defaults_to_configured_port(self, handlers, alice_session, test_config):
        with patch("note_cli.web.viewer.serve") as serve:
            handlers.handle_web()
        assert serve.call_args.kwargs["port"] == test_config.web_port

    def test_web_requires_session(self, handlers):
        with pytest.raises(AuthError):
            handlers.handle_web()
