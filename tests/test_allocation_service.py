"""Tests for AllocationService."""

import pytest
from datetime import date
from decimal import Decimal

from rentrecon.domain.entities import (
    AllocationRequest,
    AllocationTargetType,
    BankTransactionStatus,
    CreatedBy,
    EntryStatus,
    RentPaymentStatus,
)
from rentrecon.domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    NothingToUndoError,
    OverAllocationError,
    ValidationError,
)

RENT = AllocationTargetType.RENT_PAYMENT


def rent(payment_id, amount):
    return AllocationRequest(RENT, payment_id, Decimal(amount))


class TestAllocate:
    """Tests for allocating transactions to obligations."""

    def test_full_allocation_marks_rent_paid(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("950.00", counterparty_name="Max Mustermann")
        march = sample_rent_payments["march"]

        live = allocation_service.allocate(user_id, transaction.id, [rent(march, "950.00")])

        assert len(live) == 1
        assert live[0].amount_allocated == Decimal("950.00")
        assert live[0].created_by == CreatedBy.MANUAL

        updated = temp_db.get_bank_transaction(user_id, transaction.id)
        assert updated.status == BankTransactionStatus.MATCHED_MANUAL
        assert updated.matched_by == "manual"

        payment = temp_db.get_obligation(user_id, RENT, march)
        assert payment.payment_status == RentPaymentStatus.PAID
        assert payment.paid is True
        assert payment.paid_amount == Decimal("950.00")
        assert payment.paid_date is not None

    def test_split_across_two_months(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        """One transfer covering February in full and March in part."""
        transaction = make_transaction("1500.00")
        february, march = sample_rent_payments["february"], sample_rent_payments["march"]

        allocation_service.allocate(user_id, transaction.id, [rent(february, "950.00"), rent(march, "550.00")])

        assert temp_db.get_obligation(user_id, RENT, february).payment_status == RentPaymentStatus.PAID
        partial = temp_db.get_obligation(user_id, RENT, march)
        assert partial.payment_status == RentPaymentStatus.PARTIAL
        assert partial.paid_amount == Decimal("550.00")
        assert partial.open_amount == Decimal("400.00")
        assert partial.paid_date is None

    def test_partial_transaction_allocation_then_top_up(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("950.00")
        march = sample_rent_payments["march"]

        allocation_service.allocate(user_id, transaction.id, [rent(march, "500.00")])
        live = allocation_service.allocate(user_id, transaction.id, [rent(march, "450.00")])

        assert [a.amount_allocated for a in live] == [Decimal("500.00"), Decimal("450.00")]
        assert temp_db.get_obligation(user_id, RENT, march).payment_status == RentPaymentStatus.PAID

    def test_income_and_expense_targets(self, allocation_service, temp_db, user_id, make_transaction):
        income_id = temp_db.create_income_entry(user_id, Decimal("300.00"), date(2025, 3, 1), "Garage")
        expense_id = temp_db.create_expense(user_id, Decimal("-120.50"), date(2025, 3, 3), "Strom")
        credit = make_transaction("300.00")
        debit = make_transaction("-120.50")

        allocation_service.allocate(
            user_id, credit.id, [AllocationRequest(AllocationTargetType.INCOME_ENTRY, income_id, Decimal("300.00"))]
        )
        allocation_service.allocate(
            user_id, debit.id, [AllocationRequest(AllocationTargetType.EXPENSE, expense_id, Decimal("120.50"))]
        )

        assert temp_db.get_obligation(user_id, AllocationTargetType.INCOME_ENTRY, income_id).status == EntryStatus.PAID
        assert temp_db.get_obligation(user_id, AllocationTargetType.EXPENSE, expense_id).status == EntryStatus.PAID

    def test_auto_allocation_status(self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments):
        transaction = make_transaction("950.00")

        allocation_service.allocate(
            user_id, transaction.id, [rent(sample_rent_payments["march"], "950.00")], created_by="auto"
        )

        assert temp_db.get_bank_transaction(user_id, transaction.id).status == BankTransactionStatus.MATCHED_AUTO

    def test_manual_allocation_keeps_match_manual(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("1500.00")
        allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["february"], "950.00")])

        allocation_service.allocate(
            user_id, transaction.id, [rent(sample_rent_payments["march"], "550.00")], created_by="auto"
        )

        updated = temp_db.get_bank_transaction(user_id, transaction.id)
        assert updated.status == BankTransactionStatus.MATCHED_MANUAL
        assert updated.matched_by == "manual"

    def test_cannot_exceed_transaction_amount(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("1000.00")

        with pytest.raises(OverAllocationError) as excinfo:
            allocation_service.allocate(
                user_id,
                transaction.id,
                [rent(sample_rent_payments["february"], "950.00"), rent(sample_rent_payments["march"], "100.00")],
            )

        assert "exceeds transaction amount" in str(excinfo.value)
        # Nothing was written
        assert temp_db.list_live_allocations(user_id, transaction.id) == []
        assert temp_db.get_bank_transaction(user_id, transaction.id).status == BankTransactionStatus.UNMATCHED

    def test_existing_allocations_count_against_transaction(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("950.00")
        allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["february"], "900.00")])

        with pytest.raises(OverAllocationError):
            allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "100.00")])

    def test_tolerance_allows_rounding_slack(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("949.99")

        live = allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "950.00")])

        assert len(live) == 1

    def test_cannot_exceed_target_open_amount(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        first = make_transaction("950.00")
        second = make_transaction("950.00", booking_date=date(2025, 3, 2))
        march = sample_rent_payments["march"]
        allocation_service.allocate(user_id, first.id, [rent(march, "950.00")])

        with pytest.raises(OverAllocationError) as excinfo:
            allocation_service.allocate(user_id, second.id, [rent(march, "10.00")])

        assert "open amount" in str(excinfo.value)

    def test_requests_for_the_same_target_are_combined(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("2000.00")
        march = sample_rent_payments["march"]

        with pytest.raises(OverAllocationError):
            allocation_service.allocate(user_id, transaction.id, [rent(march, "500.00"), rent(march, "500.00")])

    def test_debit_amount_is_used_unsigned(self, allocation_service, temp_db, user_id, make_transaction):
        expense_id = temp_db.create_expense(user_id, Decimal("200.00"), date(2025, 3, 3))
        debit = make_transaction("-120.50")

        with pytest.raises(OverAllocationError):
            allocation_service.allocate(
                user_id, debit.id, [AllocationRequest(AllocationTargetType.EXPENSE, expense_id, Decimal("150.00"))]
            )

    def test_validation(self, allocation_service, user_id, make_transaction, sample_rent_payments):
        transaction = make_transaction("950.00")

        with pytest.raises(ValidationError):
            allocation_service.allocate(user_id, transaction.id, [])
        with pytest.raises(ValidationError):
            allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "0")])
        with pytest.raises(ValidationError):
            allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "-5.00")])

    def test_unknown_transaction_and_target(self, allocation_service, user_id, make_transaction):
        with pytest.raises(NotFoundError):
            allocation_service.allocate(user_id, 999, [rent(1, "1.00")])

        transaction = make_transaction("950.00")
        with pytest.raises(NotFoundError) as excinfo:
            allocation_service.allocate(user_id, transaction.id, [rent(999, "1.00")])
        assert "rent_payment 999" in str(excinfo.value)

    def test_ignored_transaction_cannot_be_allocated(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("950.00")
        allocation_service.ignore(user_id, transaction.id)

        with pytest.raises(InvalidTransitionError):
            allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "950.00")])


class TestUndo:
    """Tests for undoing allocations."""

    def test_undo_reverts_everything(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("1500.00")
        february, march = sample_rent_payments["february"], sample_rent_payments["march"]
        allocation_service.allocate(user_id, transaction.id, [rent(february, "950.00"), rent(march, "550.00")])

        removed = allocation_service.undo_allocation(user_id, transaction.id)

        assert len(removed) == 2
        assert all(not a.is_live for a in removed)
        assert temp_db.list_live_allocations(user_id, transaction.id) == []

        updated = temp_db.get_bank_transaction(user_id, transaction.id)
        assert updated.status == BankTransactionStatus.UNMATCHED
        assert updated.matched_by is None
        for payment_id in (february, march):
            payment = temp_db.get_obligation(user_id, RENT, payment_id)
            assert payment.payment_status == RentPaymentStatus.UNPAID
            assert payment.paid_date is None

    def test_undo_keeps_other_transactions_allocations(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        first = make_transaction("500.00")
        second = make_transaction("450.00", booking_date=date(2025, 3, 2))
        march = sample_rent_payments["march"]
        allocation_service.allocate(user_id, first.id, [rent(march, "500.00")])
        allocation_service.allocate(user_id, second.id, [rent(march, "450.00")])

        allocation_service.undo_allocation(user_id, second.id)

        payment = temp_db.get_obligation(user_id, RENT, march)
        assert payment.payment_status == RentPaymentStatus.PARTIAL
        assert payment.paid_amount == Decimal("500.00")

    def test_undo_with_deleted_obligation(
        self, allocation_service, temp_db, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("1500.00")
        february, march = sample_rent_payments["february"], sample_rent_payments["march"]
        allocation_service.allocate(user_id, transaction.id, [rent(february, "950.00"), rent(march, "550.00")])
        assert temp_db.delete_obligation(user_id, RENT, february)

        removed = allocation_service.undo_allocation(user_id, transaction.id)

        assert len(removed) == 2
        assert temp_db.get_bank_transaction(user_id, transaction.id).status == BankTransactionStatus.UNMATCHED
        assert temp_db.get_obligation(user_id, RENT, february) is None
        assert temp_db.get_obligation(user_id, RENT, march).payment_status == RentPaymentStatus.UNPAID

    def test_undo_then_reallocate(self, allocation_service, user_id, make_transaction, sample_rent_payments):
        transaction = make_transaction("950.00")
        allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "950.00")])
        allocation_service.undo_allocation(user_id, transaction.id)

        live = allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["february"], "950.00")])

        assert len(live) == 1

    def test_nothing_to_undo(self, allocation_service, user_id, make_transaction):
        transaction = make_transaction("950.00")

        with pytest.raises(NothingToUndoError):
            allocation_service.undo_allocation(user_id, transaction.id)
        with pytest.raises(NotFoundError):
            allocation_service.undo_allocation(user_id, 999)


class TestIgnore:
    """Tests for ignoring transactions."""

    def test_ignore_and_unignore(self, allocation_service, user_id, make_transaction):
        transaction = make_transaction("-9.90", usage_text="Kontofuehrung")

        assert allocation_service.ignore(user_id, transaction.id).status == BankTransactionStatus.IGNORED
        # Ignoring twice is harmless
        assert allocation_service.ignore(user_id, transaction.id).status == BankTransactionStatus.IGNORED
        assert allocation_service.unignore(user_id, transaction.id).status == BankTransactionStatus.UNMATCHED
        assert allocation_service.unignore(user_id, transaction.id).status == BankTransactionStatus.UNMATCHED

    def test_matched_transaction_cannot_be_ignored(
        self, allocation_service, user_id, make_transaction, sample_rent_payments
    ):
        transaction = make_transaction("950.00")
        allocation_service.allocate(user_id, transaction.id, [rent(sample_rent_payments["march"], "950.00")])

        with pytest.raises(InvalidTransitionError):
            allocation_service.ignore(user_id, transaction.id)
        with pytest.raises(InvalidTransitionError):
            allocation_service.unignore(user_id, transaction.id)


class TestPlanRentDistribution:
    """Tests for spreading a payment over open rent."""

    def test_fills_oldest_first(self, allocation_service, user_id, make_transaction, sample_tenants, sample_rent_payments):
        transaction = make_transaction("1500.00")

        plan = allocation_service.plan_rent_distribution(user_id, transaction.id, sample_tenants["Mustermann"])

        assert plan == [
            rent(sample_rent_payments["february"], "950.00"),
            rent(sample_rent_payments["march"], "550.00"),
        ]

    def test_accounts_for_partial_payments(
        self, allocation_service, user_id, make_transaction, sample_tenants, sample_rent_payments
    ):
        earlier = make_transaction("400.00", booking_date=date(2025, 2, 1))
        allocation_service.allocate(user_id, earlier.id, [rent(sample_rent_payments["february"], "400.00")])
        transaction = make_transaction("950.00")

        plan = allocation_service.plan_rent_distribution(user_id, transaction.id, sample_tenants["Mustermann"])

        assert plan == [
            rent(sample_rent_payments["february"], "550.00"),
            rent(sample_rent_payments["march"], "400.00"),
        ]

    def test_tenant_without_rent(self, allocation_service, user_id, make_transaction, sample_tenants):
        transaction = make_transaction("950.00")

        assert allocation_service.plan_rent_distribution(user_id, transaction.id, sample_tenants["Wu"]) == []
        with pytest.raises(NotFoundError):
            allocation_service.plan_rent_distribution(user_id, transaction.id, 999)
