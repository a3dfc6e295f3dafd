"""CLI entry point for notesync."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from loguru import logger

from .. import __version__
from ..core.config import Config
from . import commands


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="notesync",
        description="Mirror a markdown vault into a SQLite index",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("-c", "--config", type=Path, help="TOML configuration file")
    parser.add_argument("--db", type=Path, help="Store file (overrides config)")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for SQL)"
    )

    subparsers = parser.add_subparsers(dest="command", required=False)

    subparsers.add_parser("init", help="Create or upgrade the store schema")

    sync_parser = subparsers.add_parser("sync", help="Full sync of a vault")
    sync_parser.add_argument("vault", nargs="?", type=Path, help="Vault directory")

    delete_parser = subparsers.add_parser("delete", help="Remove a note from the store")
    delete_parser.add_argument("path", help="Vault-relative note path")

    touch_parser = subparsers.add_parser("touch", help="Mark a note as opened now")
    touch_parser.add_argument("path", help="Vault-relative note path")

    show_parser = subparsers.add_parser("show", help="Show a stored note")
    show_parser.add_argument("path", help="Vault-relative note path")

    subparsers.add_parser("diagnose", help="Check the store file and engine settings")

    return parser


def configure_logging(verbosity: int) -> None:
    """Route loguru output to stderr at a level chosen by -v flags."""
    level = {0: "WARNING", 1: "INFO"}.get(verbosity, "DEBUG")
    logger.remove()
    logger.add(sys.stderr, level=level)


def load_config(args) -> Config:
    """Build configuration from file/env and command-line overrides."""
    config = Config.from_env_or_file(args.config)
    if args.db:
        config.db_path = args.db
    if args.verbose >= 2:
        config.store.log_sql = True
    return config


def main() -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()
    configure_logging(args.verbose)

    try:
        config = load_config(args)

        if args.command == "init":
            commands.handle_init(args, config)
        elif args.command == "sync":
            commands.handle_sync(args, config)
        elif args.command == "delete":
            commands.handle_delete(args, config)
        elif args.command == "touch":
            commands.handle_touch(args, config)
        elif args.command == "show":
            commands.handle_show(args, config)
        elif args.command == "diagnose":
            commands.handle_diagnose(args, config)
        else:
            parser.print_help()

        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
