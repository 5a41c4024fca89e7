"""Database layer for rentrecon application."""

from rentrecon.database.base import Ledger
from rentrecon.database.factories import create_memory_ledger, create_sqlite_ledger
from rentrecon.database.sqlalchemy_db import SQLAlchemyLedger

__all__ = ["Ledger", "SQLAlchemyLedger", "create_memory_ledger", "create_sqlite_ledger"]
