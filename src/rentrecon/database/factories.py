"""Ledger factory functions for creating ledger instances."""

import os
from pathlib import Path
from typing import Optional

from rentrecon.database.sqlalchemy_db import SQLAlchemyLedger


def create_sqlite_ledger(database_path: Optional[str] = None) -> SQLAlchemyLedger:
    """Create a SQLite-backed ledger.

    Args:
        database_path: Path to SQLite database file. If None, checks RENTRECON_DB_PATH
            environment variable, then defaults to ~/.rentrecon/rentrecon.db

    Returns:
        SQLAlchemyLedger instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("RENTRECON_DB_PATH")

    if database_path is None:
        # Default to ~/.rentrecon/rentrecon.db
        home = Path.home()
        db_dir = home / ".rentrecon"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "rentrecon.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyLedger(database_url)


def create_memory_ledger() -> SQLAlchemyLedger:
    """Create a ledger backed by a private in-memory SQLite database."""
    return SQLAlchemyLedger("sqlite://")
