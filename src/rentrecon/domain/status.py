"""Status derivation rules.

Obligation and transaction statuses are never incremented in place. They
are always recomputed from the set of live allocations, so these functions
are the single source of truth for both the allocation service and the
ledger's atomic rollback.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from rentrecon.domain.entities import (
    BankTransactionAllocation,
    BankTransactionStatus,
    CreatedBy,
    EntryStatus,
    RentPaymentStatus,
)

# Floating point and rounding slack accepted when comparing allocation sums
TOLERANCE = Decimal("0.01")


class RentPaymentState(NamedTuple):
    """Derived fields of a rent payment."""

    payment_status: RentPaymentStatus
    paid_amount: Decimal
    paid: bool
    paid_date: Optional[date]


def live_sum(allocations: Iterable[BankTransactionAllocation]) -> Decimal:
    """Sum the allocated amounts of all non-deleted allocations."""
    return sum((a.amount_allocated for a in allocations if a.is_live), Decimal("0"))


def derive_rent_payment_state(
    total_allocated: Decimal, due_amount: Decimal, today: Optional[date] = None
) -> RentPaymentState:
    """Derive a rent payment's status from its live allocation sum.

    Args:
        total_allocated: Sum of live allocations targeting the rent payment
        due_amount: Amount due
        today: Date stamped as paid date when fully paid (defaults to today)

    Returns:
        RentPaymentState with status, paid amount, paid flag and paid date
    """
    if total_allocated >= due_amount:
        status = RentPaymentStatus.PAID
    elif total_allocated > 0:
        status = RentPaymentStatus.PARTIAL
    else:
        status = RentPaymentStatus.UNPAID

    is_paid = status is RentPaymentStatus.PAID
    paid_date = (today or date.today()) if is_paid else None
    return RentPaymentState(status, total_allocated, is_paid, paid_date)


def derive_entry_status(total_allocated: Decimal, amount: Decimal) -> EntryStatus:
    """Derive an income entry's or expense's status from its live allocation sum."""
    if total_allocated >= abs(amount):
        return EntryStatus.PAID
    return EntryStatus.OPEN


def derive_transaction_status(
    allocations: Iterable[BankTransactionAllocation], ignored: bool = False
) -> BankTransactionStatus:
    """Derive a bank transaction's status from its live allocations.

    A transaction with at least one live manual allocation is MATCHED_MANUAL,
    one with only automatic allocations is MATCHED_AUTO. Without live
    allocations it is IGNORED when explicitly ignored, otherwise UNMATCHED.
    """
    live = [a for a in allocations if a.is_live]
    if live:
        if any(a.created_by is CreatedBy.MANUAL for a in live):
            return BankTransactionStatus.MATCHED_MANUAL
        return BankTransactionStatus.MATCHED_AUTO
    if ignored:
        return BankTransactionStatus.IGNORED
    return BankTransactionStatus.UNMATCHED
