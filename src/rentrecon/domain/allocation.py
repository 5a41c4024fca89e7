"""Allocation domain service."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Union

from rentrecon.database.base import Ledger
from rentrecon.domain.entities import (
    AllocationRequest,
    AllocationTargetType,
    BankTransaction,
    BankTransactionAllocation,
    BankTransactionStatus,
    CreatedBy,
)
from rentrecon.domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    NothingToUndoError,
    OverAllocationError,
    ValidationError,
    invalid_transition,
    no_live_allocations,
    target_not_found,
    target_over_allocated,
    tenant_not_found,
    transaction_not_found,
    transaction_over_allocated,
)
from rentrecon.domain.status import TOLERANCE, derive_transaction_status, live_sum

logger = logging.getLogger(__name__)


class AllocationService:
    """Service for allocating bank transactions to obligations.

    Obligation and transaction statuses are always re-derived from live
    allocations after a change, never adjusted incrementally.
    """

    def __init__(self, db: Ledger):
        """Initialize allocation service.

        Args:
            db: Ledger instance
        """
        self.db = db

    def _get_transaction(self, user_id: str, transaction_id: int) -> BankTransaction:
        transaction = self.db.get_bank_transaction(user_id, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def allocate(
        self,
        user_id: str,
        transaction_id: int,
        allocations: list[AllocationRequest],
        created_by: Union[CreatedBy, str] = CreatedBy.MANUAL,
    ) -> list[BankTransactionAllocation]:
        """Allocate a bank transaction (fully or partially) to one or more obligations.

        All checks run before anything is written; the allocations are then
        stored together and every affected status is recomputed.

        Args:
            user_id: Owner of the transaction
            transaction_id: Bank transaction ID
            allocations: Requested target/amount pairs
            created_by: Whether the allocation is manual or automatic

        Returns:
            All live allocations of the transaction after the change

        Raises:
            NotFoundError: If the transaction or a target does not exist
            InvalidTransitionError: If the transaction is ignored
            ValidationError: If no allocations are given or an amount is not positive
            OverAllocationError: If the transaction or a target would be over-allocated
        """
        created_by = CreatedBy(created_by)
        transaction = self._get_transaction(user_id, transaction_id)
        if transaction.status is BankTransactionStatus.IGNORED:
            raise InvalidTransitionError(invalid_transition(transaction_id, transaction.status.value, "allocate"))

        if not allocations:
            raise ValidationError("At least one allocation is required")
        for request in allocations:
            if request.amount_allocated <= 0:
                raise ValidationError(
                    f"Allocation amount must be positive, got {request.amount_allocated} "
                    f"for {AllocationTargetType(request.target_type).value} {request.target_id}"
                )

        # Conservation: live plus requested never exceeds the transaction amount
        existing = live_sum(self.db.list_live_allocations(user_id, transaction_id))
        requested = sum((r.amount_allocated for r in allocations), Decimal("0"))
        available = abs(transaction.amount) - existing
        if requested > available + TOLERANCE:
            raise OverAllocationError(transaction_over_allocated(requested, available))

        per_target: dict[tuple[AllocationTargetType, int], Decimal] = defaultdict(Decimal)
        for request in allocations:
            per_target[(AllocationTargetType(request.target_type), request.target_id)] += request.amount_allocated

        for (target_type, target_id), amount in per_target.items():
            obligation = self.db.get_obligation(user_id, target_type, target_id)
            if obligation is None:
                raise NotFoundError(target_not_found(target_type.value, target_id))
            open_amount = obligation.due_amount - self.db.sum_live_allocations_for_target(
                user_id, target_type, target_id
            )
            if amount > open_amount + TOLERANCE:
                raise OverAllocationError(target_over_allocated(target_type.value, target_id, amount, open_amount))

        self.db.create_allocations(user_id, transaction_id, allocations, created_by)

        live = self.db.list_live_allocations(user_id, transaction_id)
        status = derive_transaction_status(live)
        # One manual allocation makes the whole match manual
        matched_by = CreatedBy.MANUAL if status is BankTransactionStatus.MATCHED_MANUAL else CreatedBy.AUTO
        self.db.update_bank_transaction_status(
            transaction_id,
            status,
            matched_by=matched_by.value,
            confidence=transaction.confidence,
        )
        self._recalculate_targets(user_id, per_target.keys())

        logger.info(
            "Allocated %s of transaction %d to %d target(s) (%s)",
            requested,
            transaction_id,
            len(per_target),
            created_by.value,
        )
        return live

    def undo_allocation(self, user_id: str, transaction_id: int) -> list[BankTransactionAllocation]:
        """Soft-delete every live allocation of a transaction and reset it to UNMATCHED.

        Returns:
            The allocations that were removed

        Raises:
            NotFoundError: If the transaction does not exist
            NothingToUndoError: If the transaction has no live allocations
        """
        self._get_transaction(user_id, transaction_id)
        removed = self.db.soft_delete_allocations(user_id, transaction_id)
        if not removed:
            raise NothingToUndoError(no_live_allocations(transaction_id))

        self.db.update_bank_transaction_status(transaction_id, BankTransactionStatus.UNMATCHED)
        self._recalculate_targets(user_id, {(a.target_type, a.target_id) for a in removed})
        logger.info("Undid %d allocation(s) of transaction %d", len(removed), transaction_id)
        return removed

    def _recalculate_targets(
        self, user_id: str, targets: Iterable[tuple[AllocationTargetType, int]]
    ) -> None:
        for target_type, target_id in sorted(set(targets)):
            self.db.recalculate_obligation(user_id, target_type, target_id)

    def ignore(self, user_id: str, transaction_id: int) -> BankTransaction:
        """Mark an open transaction as ignored, dropping any pending suggestion.

        Raises:
            NotFoundError: If the transaction does not exist
            InvalidTransitionError: If the transaction is matched
        """
        transaction = self._get_transaction(user_id, transaction_id)
        if transaction.status is BankTransactionStatus.IGNORED:
            return transaction
        if transaction.status not in (BankTransactionStatus.UNMATCHED, BankTransactionStatus.SUGGESTED):
            raise InvalidTransitionError(invalid_transition(transaction_id, transaction.status.value, "ignore"))

        self.db.update_bank_transaction_status(transaction_id, BankTransactionStatus.IGNORED)
        return self._get_transaction(user_id, transaction_id)

    def unignore(self, user_id: str, transaction_id: int) -> BankTransaction:
        """Return an ignored transaction to UNMATCHED.

        Raises:
            NotFoundError: If the transaction does not exist
            InvalidTransitionError: If the transaction is neither ignored nor unmatched
        """
        transaction = self._get_transaction(user_id, transaction_id)
        if transaction.status is BankTransactionStatus.UNMATCHED:
            return transaction
        if transaction.status is not BankTransactionStatus.IGNORED:
            raise InvalidTransitionError(invalid_transition(transaction_id, transaction.status.value, "unignore"))

        self.db.update_bank_transaction_status(transaction_id, BankTransactionStatus.UNMATCHED)
        return self._get_transaction(user_id, transaction_id)

    def plan_rent_distribution(self, user_id: str, transaction_id: int, tenant_id: int) -> list[AllocationRequest]:
        """Propose how to spread a payment across a tenant's open rent payments.

        Open rent payments are filled oldest due date first, each up to its
        open remainder, until the unallocated part of the transaction is used
        up. Nothing is written.

        Args:
            user_id: Owner of the transaction
            transaction_id: Bank transaction ID
            tenant_id: Tenant whose rent payments should be settled

        Returns:
            Allocation requests ready to pass to allocate() (may be empty)

        Raises:
            NotFoundError: If the transaction or tenant does not exist
        """
        transaction = self._get_transaction(user_id, transaction_id)
        if self.db.get_tenant(user_id, tenant_id) is None:
            raise NotFoundError(tenant_not_found(tenant_id))

        remaining = abs(transaction.amount) - live_sum(self.db.list_live_allocations(user_id, transaction_id))
        plan = []
        for payment in self.db.list_open_rent_payments(user_id, tenant_id):
            if remaining <= 0:
                break
            open_amount = payment.due_amount - self.db.sum_live_allocations_for_target(
                user_id, AllocationTargetType.RENT_PAYMENT, payment.id
            )
            if open_amount <= 0:
                continue
            amount = min(open_amount, remaining)
            plan.append(AllocationRequest(AllocationTargetType.RENT_PAYMENT, payment.id, amount))
            remaining -= amount
        return plan
