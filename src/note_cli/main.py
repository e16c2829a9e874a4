#!/usr/bin/env python
"""Main entry point for the note CLI."""
import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from note_cli import __version__
from note_cli.backup import LegacyBackupManager
from note_cli.commands import CommandHandlers
from note_cli.config import config
from note_cli.exceptions import NoteCliError
from note_cli.observability import configure_logging
from note_cli.storage.legacy_store import LegacyNoteStore
from note_cli.storage.remote_store import RemoteStore
from note_cli.storage.session_store import FileSessionStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per verb."""
    parser = argparse.ArgumentParser(
        prog="note", description="Personal notes, stored in your remote database"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--home",
        help="Directory for local state (session, legacy notes, logs)",
        type=str,
        default=None,
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL of the note database",
        type=str,
        default=None,
    )
    parser.add_argument(
        "--log-level",
        help="Console logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    p = sub.add_parser("setup", help="Log in as a user, creating the account if needed")
    p.add_argument("username", help="2-50 letters, digits, underscores or hyphens")

    sub.add_parser("whoami", help="Show the logged-in user")
    sub.add_parser("logout", help="Forget the local session")
    sub.add_parser("migrate", help="Import notes from the legacy local file")
    sub.add_parser("migrate-check", help="Preview what migrate would import")

    p = sub.add_parser("add", help="Create a new note")
    p.add_argument("note", help="The content of the note you want to create")
    p.add_argument("--tags", nargs="*", default=[], help="Tags to add to the note")

    sub.add_parser("all", help="Get all notes")

    p = sub.add_parser("find", help="Get matching notes")
    p.add_argument("filter", nargs="?", default="", help="The search term to filter notes by")
    p.add_argument("--tags", nargs="+", default=None, help="Match notes sharing any of these tags instead")

    p = sub.add_parser("remove", help="Remove a note by list index or ID")
    p.add_argument("id", help="1-based index from `note all`, or a note ID")

    sub.add_parser("clean", help="Remove all notes")

    p = sub.add_parser("web", help="Launch website to see notes")
    p.add_argument("port", nargs="?", type=int, default=None, help="Port to bind on")

    return parser


def update_config(args: argparse.Namespace) -> None:
    """Update the global config with command line arguments."""
    if args.home:
        config.base_dir = Path(args.home).expanduser()
    if args.database_url:
        config.database_url = args.database_url
    if args.log_level:
        config.log_level = args.log_level


def build_handlers() -> CommandHandlers:
    """Create the handlers from the current config."""
    legacy_store = LegacyNoteStore(config.get_legacy_path())
    return CommandHandlers(
        sessions=FileSessionStore(config.get_session_path()),
        store_factory=lambda: RemoteStore(database_url=config.get_db_url()),
        legacy_store=legacy_store,
        backup_manager=LegacyBackupManager(
            legacy_path=legacy_store.path,
            backup_path=config.get_backup_path(),
            archive_dir=config.get_archive_dir(),
        ),
    )


def run_command(args: argparse.Namespace, handlers: CommandHandlers) -> int:
    """Dispatch one parsed command. Returns the process exit code."""
    command = args.command
    if command == "setup":
        handlers.handle_setup(args.username)
    elif command == "whoami":
        handlers.handle_whoami()
    elif command == "logout":
        handlers.handle_logout()
    elif command == "add":
        handlers.handle_add(args.note, args.tags)
    elif command == "all":
        handlers.handle_all()
    elif command == "find":
        if not args.filter and not args.tags:
            print("Error: Provide a search term or --tags", file=sys.stderr)
            return 2
        handlers.handle_find(args.filter, args.tags)
    elif command == "remove":
        handlers.handle_remove(args.id)
    elif command == "clean":
        handlers.handle_clean()
    elif command == "migrate":
        result = handlers.handle_migrate()
        return 0 if result.success else 1
    elif command == "migrate-check":
        handlers.handle_migrate_check()
    elif command == "web":
        handlers.handle_web(args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the note CLI."""
    args = build_parser().parse_args(argv)
    update_config(args)

    # Configure logging (persistent file logging with rotation, console on stderr)
    log_level = getattr(logging, config.log_level.upper(), logging.WARNING)
    try:
        configure_logging(config.get_log_dir(), level=log_level, console=True)
    except Exception as e:
        # Fall back to basic console logging if file logging fails
        logging.basicConfig(level=log_level)
        logger.warning(f"Failed to configure file logging: {e}")

    try:
        return run_command(args, build_handlers())
    except NoteCliError as e:
        logger.info(f"{args.command} failed [{e.code.name}]: {e.message}", extra={"error_details": e.details})
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        # Unexpected errors - log with full stack trace but print a short reference
        error_id = str(uuid.uuid4())[:8]
        logger.error(f"Unexpected error [{error_id}]: {e}", exc_info=True)
        print(f"Error: An unexpected error occurred (ref: {error_id})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
