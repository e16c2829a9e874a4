"""End-to-end tests for the command line entry point."""

import json
import logging

import pytest

from note_cli.config import config
from note_cli.main import build_parser, main


@pytest.fixture
def cli(test_config, monkeypatch):
    """Run the CLI with local state confined to the temp home."""
    monkeypatch.setattr(config, "log_dir", test_config.base_dir / "logs")

    def _run(*argv):
        return main(list(argv))

    yield _run

    # Detach handlers pointing into the temp dir
    package_logger = logging.getLogger("note_cli")
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)


class TestParser:
    """Tests for argument parsing."""

    def test_add_with_tags(self):
        args = build_parser().parse_args(["add", "Buy milk", "--tags", "a", "b"])
        assert args.command == "add"
        assert args.note == "Buy milk"
        assert args.tags == ["a", "b"]

    def test_web_port_is_optional(self):
        assert build_parser().parse_args(["web"]).port is None
        assert build_parser().parse_args(["web", "8080"]).port == 8080

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Tests for full command runs through main()."""

    def test_setup_add_all_flow(self, cli, capsys, test_config):
        assert cli("setup", "alice") == 0
        assert cli("whoami") == 0
        assert cli("add", "Buy milk", "--tags", "shopping") == 0
        capsys.readouterr()

        assert cli("all") == 0
        out = capsys.readouterr().out
        assert "note: Buy milk" in out
        assert "tags: shopping" in out

        session = json.loads(test_config.get_session_path().read_text())
        assert session["username"] == "alice"
        assert "loginTime" in session

    def test_command_without_session_fails(self, cli, capsys):
        assert cli("all") == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: No user session found")

    def test_invalid_username(self, cli, capsys):
        assert cli("setup", "x") == 1
        assert "Username must be at least 2 characters long" in capsys.readouterr().err

    def test_find_needs_term_or_tags(self, cli, capsys):
        cli("setup", "alice")
        assert cli("find") == 2

    def test_remove_out_of_range(self, cli, capsys):
        cli("setup", "alice")
        cli("add", "only")
        capsys.readouterr()
        assert cli("remove", "5") == 1
        assert "Invalid note index 5. Choose a number between 1 and 1" in capsys.readouterr().err

    def test_migrate_exit_codes(self, cli, test_config, capsys):
        cli("setup", "alice")
        legacy = test_config.get_legacy_path()

        legacy.write_text(json.dumps({"notes": ["good", 1]}))
        assert cli("migrate") == 1
        assert legacy.exists()

        legacy.write_text(json.dumps({"notes": ["good"]}))
        assert cli("migrate") == 0
        assert not legacy.exists()

    def test_logout(self, cli, test_config):
        cli("setup", "alice")
        assert cli("logout") == 0
        assert not test_config.get_session_path().exists()
        assert cli("logout") == 0

    def test_home_flag_overrides_config(self, cli, monkeypatch, temp_home):
        other_home = temp_home / "elsewhere"
        monkeypatch.setattr(config, "database_url", None)
        assert cli("--home", str(other_home), "setup", "alice") == 0
        assert (other_home / "user.json").exists()
        assert (other_home / "notes.db").exists()

    def test_writes_log_file(self, cli, test_config):
        cli("setup", "alice")
        assert (test_config.base_dir / "logs" / "note-cli.log").exists()
