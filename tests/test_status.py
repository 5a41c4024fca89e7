"""Tests for status derivation rules."""

from datetime import date, datetime, UTC
from decimal import Decimal

from rentrecon.domain.entities import (
    AllocationTargetType,
    BankTransactionAllocation,
    BankTransactionStatus,
    CreatedBy,
    EntryStatus,
    RentPaymentStatus,
)
from rentrecon.domain.status import (
    derive_entry_status,
    derive_rent_payment_state,
    derive_transaction_status,
    live_sum,
)


def _allocation(amount, created_by=CreatedBy.MANUAL, deleted=False):
    return BankTransactionAllocation(
        id=1,
        user_id="user-1",
        bank_transaction_id=1,
        target_type=AllocationTargetType.RENT_PAYMENT,
        target_id=1,
        amount_allocated=Decimal(amount),
        created_by=created_by,
        notes=None,
        created_at=datetime.now(UTC),
        deleted_at=datetime.now(UTC) if deleted else None,
    )


def test_live_sum_ignores_deleted_allocations():
    allocations = [_allocation("100.00"), _allocation("50.00", deleted=True), _allocation("25.50")]

    assert live_sum(allocations) == Decimal("125.50")
    assert live_sum([]) == Decimal("0")


class TestRentPaymentState:
    """Tests for rent payment derivation."""

    def test_unpaid(self):
        state = derive_rent_payment_state(Decimal("0"), Decimal("950.00"))

        assert state.payment_status == RentPaymentStatus.UNPAID
        assert state.paid is False
        assert state.paid_date is None

    def test_partial(self):
        state = derive_rent_payment_state(Decimal("500.00"), Decimal("950.00"))

        assert state.payment_status == RentPaymentStatus.PARTIAL
        assert state.paid_amount == Decimal("500.00")
        assert state.paid is False

    def test_paid_sets_paid_date(self):
        state = derive_rent_payment_state(Decimal("950.00"), Decimal("950.00"), today=date(2025, 3, 2))

        assert state.payment_status == RentPaymentStatus.PAID
        assert state.paid is True
        assert state.paid_date == date(2025, 3, 2)


def test_entry_status_uses_absolute_amount():
    assert derive_entry_status(Decimal("120.50"), Decimal("-120.50")) == EntryStatus.PAID
    assert derive_entry_status(Decimal("100.00"), Decimal("120.50")) == EntryStatus.OPEN


class TestTransactionStatus:
    """Tests for transaction status derivation."""

    def test_no_allocations_is_unmatched(self):
        assert derive_transaction_status([]) == BankTransactionStatus.UNMATCHED

    def test_no_allocations_but_ignored(self):
        assert derive_transaction_status([], ignored=True) == BankTransactionStatus.IGNORED

    def test_any_manual_allocation_is_manual_match(self):
        allocations = [_allocation("10", CreatedBy.AUTO), _allocation("10", CreatedBy.MANUAL)]

        assert derive_transaction_status(allocations) == BankTransactionStatus.MATCHED_MANUAL

    def test_only_auto_allocations(self):
        assert derive_transaction_status([_allocation("10", CreatedBy.AUTO)]) == BankTransactionStatus.MATCHED_AUTO

    def test_deleted_allocations_do_not_count(self):
        assert derive_transaction_status([_allocation("10", deleted=True)]) == BankTransactionStatus.UNMATCHED
