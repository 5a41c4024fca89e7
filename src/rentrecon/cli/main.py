"""Main CLI entry point."""

import logging
import os

import click
from rentrecon.database.factories import create_sqlite_ledger

# Import and register all commands at module level
from rentrecon.cli.commands import (
    allocate,
    import_cmd,
    imports,
    inbox,
    mapping,
    suggest,
)

DEFAULT_USER = "default"


def configure_logging() -> None:
    """Configure root logging from RENTRECON_LOG_LEVEL (default WARNING)."""
    level_name = os.environ.get("RENTRECON_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides RENTRECON_DB_PATH environment variable)",
    envvar="RENTRECON_DB_PATH",
)
@click.option(
    "--user",
    default=DEFAULT_USER,
    show_default=True,
    help="User whose bank data to work on (overrides RENTRECON_USER environment variable)",
    envvar="RENTRECON_USER",
)
@click.pass_context
def cli(ctx, db_path: str | None, user: str):
    """rentrecon - Bank statement reconciliation for rental properties.

    Import CSV and CAMT.053 bank exports, match incoming payments to rent
    dues, income entries and expenses, and roll back imports when needed.
    """
    ctx.ensure_object(dict)
    ctx.obj["user"] = user

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_ledger(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
import_cmd.register_commands(cli)
mapping.register_commands(cli)
imports.register_commands(cli)
inbox.register_commands(cli)
allocate.register_commands(cli)
suggest.register_commands(cli)


def main():
    """Main entry point for CLI."""
    configure_logging()
    cli()


if __name__ == "__main__":
    main()
