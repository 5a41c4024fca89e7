"""Tests for the Ledger interface returning domain models."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from rentrecon.database.factories import create_memory_ledger
from rentrecon.domain import entities
from rentrecon.domain.entities import (
    AllocationRequest,
    AllocationTargetType,
    BankTransactionStatus,
    CreatedBy,
    Direction,
    ImportFileStatus,
    SourceType,
)
from rentrecon.domain.errors import ConflictError, DuplicateFingerprintError, NotFoundError
from rentrecon.parsers.base import RawTransaction


def _raw(reference="REF-1", amount="950.00"):
    return RawTransaction(
        booking_date=date(2025, 3, 1),
        amount=Decimal(amount),
        direction=Direction.CREDIT,
        counterparty_name="Max Mustermann",
        counterparty_iban="DE12500105170648489890",
        usage_text="Miete Maerz",
        bank_reference=reference,
        raw_data={"Betrag": amount},
    )


class TestLedgerInterface:
    """Tests to verify the ledger returns domain models."""

    def test_import_file_returns_domain_model(self, temp_db, user_id):
        """Test that get_import_file returns a domain BankImportFile entity."""
        file_id = temp_db.create_import_file(user_id, "export.csv", SourceType.CSV, file_size_bytes=42)

        import_file = temp_db.get_import_file(user_id, file_id)

        assert isinstance(import_file, entities.BankImportFile)
        assert import_file.status == ImportFileStatus.PENDING
        assert import_file.source_type == SourceType.CSV
        assert import_file.file_size_bytes == 42
        assert import_file.rollback_available is False
        assert import_file.raw_meta == {}
        assert isinstance(import_file.uploaded_at, datetime)

    def test_bank_transaction_returns_domain_model(self, temp_db, user_id):
        """Test that get_bank_transaction returns a domain BankTransaction entity."""
        transaction_id = temp_db.create_bank_transaction(user_id, None, _raw(), "fp-1")

        transaction = temp_db.get_bank_transaction(user_id, transaction_id)

        assert isinstance(transaction, entities.BankTransaction)
        assert transaction.amount == Decimal("950.00")
        assert isinstance(transaction.amount, Decimal)
        assert transaction.direction == Direction.CREDIT
        assert transaction.status == BankTransactionStatus.UNMATCHED
        assert transaction.fingerprint == "fp-1"
        assert transaction.raw_data == {"Betrag": "950.00"}
        assert temp_db.get_bank_transaction_by_fingerprint(user_id, "fp-1").id == transaction_id

    def test_transactions_are_scoped_per_user(self, temp_db, user_id):
        transaction_id = temp_db.create_bank_transaction(user_id, None, _raw(), "fp-1")

        assert temp_db.get_bank_transaction("someone-else", transaction_id) is None
        assert temp_db.get_bank_transaction_by_fingerprint("someone-else", "fp-1") is None

    def test_duplicate_fingerprint_raises(self, temp_db, user_id):
        temp_db.create_bank_transaction(user_id, None, _raw(), "fp-1")

        with pytest.raises(DuplicateFingerprintError):
            temp_db.create_bank_transaction(user_id, None, _raw("REF-2"), "fp-1")

        # The session is usable again after the failed insert
        temp_db.create_bank_transaction("someone-else", None, _raw(), "fp-1")

    def test_update_status_sets_all_fields(self, temp_db, user_id):
        transaction_id = temp_db.create_bank_transaction(user_id, None, _raw(), "fp-1")

        temp_db.update_bank_transaction_status(
            transaction_id, BankTransactionStatus.SUGGESTED, matched_by="suggestion:1", confidence=0.85
        )
        suggested = temp_db.get_bank_transaction(user_id, transaction_id)
        temp_db.update_bank_transaction_status(transaction_id, BankTransactionStatus.UNMATCHED)
        reset = temp_db.get_bank_transaction(user_id, transaction_id)

        assert suggested.matched_by == "suggestion:1"
        assert suggested.confidence == pytest.approx(0.85)
        assert reset.matched_by is None
        assert reset.confidence is None

    def test_update_status_of_missing_transaction(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.update_bank_transaction_status(999, BankTransactionStatus.IGNORED)

    def test_allocations_return_domain_models(self, temp_db, user_id, sample_rent_payments):
        transaction_id = temp_db.create_bank_transaction(user_id, None, _raw(), "fp-1")
        march = sample_rent_payments["march"]

        ids = temp_db.create_allocations(
            user_id,
            transaction_id,
            [AllocationRequest(AllocationTargetType.RENT_PAYMENT, march, Decimal("950.00"), notes="Maerz")],
            CreatedBy.MANUAL,
        )
        allocations = temp_db.list_live_allocations(user_id, transaction_id)

        assert [a.id for a in allocations] == ids
        assert isinstance(allocations[0], entities.BankTransactionAllocation)
        assert allocations[0].target_type == AllocationTargetType.RENT_PAYMENT
        assert allocations[0].created_by == CreatedBy.MANUAL
        assert allocations[0].notes == "Maerz"
        assert allocations[0].is_live
        assert temp_db.sum_live_allocations_for_target(
            user_id, AllocationTargetType.RENT_PAYMENT, march
        ) == Decimal("950.00")

        deleted = temp_db.soft_delete_allocations(user_id, transaction_id)

        assert deleted[0].deleted_at is not None
        assert temp_db.list_live_allocations(user_id, transaction_id) == []
        assert temp_db.sum_live_allocations_for_target(user_id, AllocationTargetType.RENT_PAYMENT, march) == 0

    def test_obligations_return_domain_models(self, temp_db, user_id, sample_rent_payments):
        income_id = temp_db.create_income_entry(user_id, Decimal("300.00"), date(2025, 3, 1))
        expense_id = temp_db.create_expense(user_id, Decimal("-120.50"), date(2025, 3, 3))

        payment = temp_db.get_obligation(user_id, AllocationTargetType.RENT_PAYMENT, sample_rent_payments["march"])
        income = temp_db.get_obligation(user_id, AllocationTargetType.INCOME_ENTRY, income_id)
        expense = temp_db.get_obligation(user_id, AllocationTargetType.EXPENSE, expense_id)

        assert isinstance(payment, entities.RentPayment)
        assert payment.payment_status == entities.RentPaymentStatus.UNPAID
        assert payment.paid_amount == Decimal("0")
        assert isinstance(income, entities.IncomeEntry)
        assert income.status == entities.EntryStatus.OPEN
        assert isinstance(expense, entities.Expense)
        assert expense.due_amount == Decimal("120.50")
        assert temp_db.get_obligation(user_id, AllocationTargetType.EXPENSE, 999) is None

    def test_delete_obligation_keeps_allocations(self, temp_db, user_id, sample_rent_payments):
        march = sample_rent_payments["march"]
        transaction_id = temp_db.create_bank_transaction(user_id, None, _raw(), "fp-delete")
        temp_db.create_allocations(
            user_id,
            transaction_id,
            [AllocationRequest(AllocationTargetType.RENT_PAYMENT, march, Decimal("950.00"))],
            CreatedBy.MANUAL,
        )

        assert temp_db.delete_obligation(user_id, AllocationTargetType.RENT_PAYMENT, march) is True
        assert temp_db.delete_obligation(user_id, AllocationTargetType.RENT_PAYMENT, march) is False
        assert temp_db.get_obligation(user_id, AllocationTargetType.RENT_PAYMENT, march) is None
        assert len(temp_db.list_live_allocations(user_id, transaction_id)) == 1

        temp_db.recalculate_obligation(user_id, AllocationTargetType.RENT_PAYMENT, march)

    def test_list_open_rent_payments_oldest_first(self, temp_db, user_id, sample_tenants, sample_rent_payments):
        january = temp_db.create_rent_payment(
            user_id, sample_tenants["Mustermann"], date(2025, 1, 1), Decimal("950.00")
        )

        payments = temp_db.list_open_rent_payments(user_id, sample_tenants["Mustermann"])

        assert [p.id for p in payments] == [january, sample_rent_payments["february"], sample_rent_payments["march"]]

    def test_tenants_return_domain_models(self, temp_db, user_id, sample_tenants):
        temp_db.create_tenant(user_id, "Karl", "Ausgezogen", is_active=False)

        tenants = temp_db.list_active_tenants(user_id)

        assert [t.last_name for t in tenants] == ["Mustermann", "Beispiel", "Wu"]
        assert all(isinstance(t, entities.Tenant) for t in tenants)
        assert tenants[0].display_name == "Max Mustermann"

    def test_csv_mapping_conflict(self, temp_db, user_id):
        temp_db.create_csv_mapping(user_id, "Sparkasse", {"booking_date": "Buchungstag", "amount": "Betrag"})

        with pytest.raises(ConflictError):
            temp_db.create_csv_mapping(user_id, "Sparkasse", {})
        assert temp_db.get_csv_mapping(user_id, "Sparkasse").mapping["amount"] == "Betrag"
        assert temp_db.delete_csv_mapping(user_id, "Sparkasse") is True
        assert temp_db.delete_csv_mapping(user_id, "Sparkasse") is False


class TestMemoryLedger:
    """Tests for the in-memory ledger used by short-lived tools."""

    def test_state_survives_across_calls(self):
        ledger = create_memory_ledger()
        ledger.connect()
        ledger.initialize_schema()

        file_id = ledger.create_import_file("user-1", "export.csv", SourceType.CSV)
        ledger.update_import_file_status(file_id, ImportFileStatus.PROCESSING)

        assert ledger.get_import_file("user-1", file_id).status == ImportFileStatus.PROCESSING
        ledger.disconnect()
