"""Shared pytest fixtures for rentrecon tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from rentrecon.database.factories import create_sqlite_ledger
from rentrecon.domain.allocation import AllocationService
from rentrecon.domain.bank_import import BankImportService
from rentrecon.domain.csv_mapping import CsvMappingService
from rentrecon.domain.entities import Direction
from rentrecon.domain.fingerprint import fingerprint_for
from rentrecon.domain.inbox import InboxService
from rentrecon.domain.suggestion import SuggestionService
from rentrecon.parsers.base import RawTransaction
from rentrecon.parsers.csv_parser import CsvColumnMapping


@pytest.fixture
def temp_db():
    """Create a temporary ledger database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create ledger
    db = create_sqlite_ledger(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id():
    """User the CLI acts as when --user is not given."""
    return "default"


@pytest.fixture
def import_service(temp_db):
    """Create a BankImportService with a temporary database."""
    return BankImportService(temp_db)


@pytest.fixture
def allocation_service(temp_db):
    """Create an AllocationService with a temporary database."""
    return AllocationService(temp_db)


@pytest.fixture
def suggestion_service(temp_db):
    """Create a SuggestionService with a temporary database."""
    return SuggestionService(temp_db)


@pytest.fixture
def inbox_service(temp_db):
    """Create an InboxService with a temporary database."""
    return InboxService(temp_db)


@pytest.fixture
def csv_mapping_service(temp_db):
    """Create a CsvMappingService with a temporary database."""
    return CsvMappingService(temp_db)


@pytest.fixture
def sparkasse_mapping():
    """Column mapping for fixtures/sparkasse_export.csv."""
    return CsvColumnMapping(
        booking_date="Buchungstag",
        amount="Betrag",
        value_date="Valutadatum",
        counterparty_name="Auftraggeber/Empfänger",
        counterparty_iban="IBAN",
        usage_text="Verwendungszweck",
        currency="Währung",
        skip_rows=2,
    )


@pytest.fixture
def sample_tenants(temp_db, user_id):
    """Create sample tenants and return their IDs by last name."""
    return {
        "Mustermann": temp_db.create_tenant(
            user_id, "Max", "Mustermann", iban="DE12500105170648489890", property_id=1
        ),
        "Beispiel": temp_db.create_tenant(user_id, "Erika", "Beispiel", property_id=2),
        "Wu": temp_db.create_tenant(user_id, "Li", "Wu", property_id=3),
    }


@pytest.fixture
def sample_rent_payments(temp_db, user_id, sample_tenants):
    """Create February and March rent (950.00 each) for Max Mustermann."""
    tenant_id = sample_tenants["Mustermann"]
    return {
        "february": temp_db.create_rent_payment(
            user_id, tenant_id, date(2025, 2, 1), Decimal("950.00"), description="Miete Februar"
        ),
        "march": temp_db.create_rent_payment(
            user_id, tenant_id, date(2025, 3, 1), Decimal("950.00"), description="Miete März"
        ),
    }


@pytest.fixture
def make_transaction(temp_db, user_id):
    """Factory inserting a bank transaction directly through the ledger."""
    counter = {"n": 0}

    def _make(
        amount,
        counterparty_name=None,
        counterparty_iban=None,
        usage_text=None,
        booking_date=date(2025, 3, 1),
        import_file_id=None,
        value_date=None,
    ):
        counter["n"] += 1
        amount = Decimal(str(amount))
        raw = RawTransaction(
            booking_date=booking_date,
            value_date=value_date,
            amount=amount,
            direction=Direction.CREDIT if amount >= 0 else Direction.DEBIT,
            counterparty_name=counterparty_name,
            counterparty_iban=counterparty_iban,
            usage_text=usage_text,
            bank_reference=f"TEST-{counter['n']}",
        )
        transaction_id = temp_db.create_bank_transaction(user_id, import_file_id, raw, fingerprint_for(user_id, raw))
        return temp_db.get_bank_transaction(user_id, transaction_id)

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
