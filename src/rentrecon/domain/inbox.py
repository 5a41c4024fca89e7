"""Inbox domain service: the read side of reconciliation."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Union

from rentrecon.database.base import Ledger
from rentrecon.domain.entities import (
    OPEN_STATUSES,
    BankTransaction,
    BankTransactionAllocation,
    BankTransactionStatus,
    Direction,
)
from rentrecon.domain.errors import NotFoundError, transaction_not_found

# Pseudo status selecting everything that still needs attention
ALL_OPEN = "ALL_OPEN"
DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class TransactionPage:
    """One page of a filtered transaction listing."""

    items: list[BankTransaction]
    total: int


def resolve_statuses(
    status: Union[None, str, BankTransactionStatus, Iterable[Union[str, BankTransactionStatus]]],
) -> Optional[list[BankTransactionStatus]]:
    """Expand a status filter into concrete statuses (None means no filter)."""
    if status is None:
        return None
    if isinstance(status, str):
        if status == ALL_OPEN:
            return list(OPEN_STATUSES)
        return [BankTransactionStatus(status)]
    return [BankTransactionStatus(s) for s in status]


class InboxService:
    """Service for browsing imported bank transactions."""

    def __init__(self, db: Ledger):
        """Initialize inbox service.

        Args:
            db: Ledger instance
        """
        self.db = db

    def list_transactions(
        self,
        user_id: str,
        status=None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        direction: Optional[Direction] = None,
        import_file_id: Optional[int] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        by_value_date: bool = False,
    ) -> TransactionPage:
        """List transactions with optional filters, newest first.

        Args:
            user_id: Owner of the transactions
            status: A status, an iterable of statuses, or ALL_OPEN
            date_from: Optional start date filter (inclusive)
            date_to: Optional end date filter (inclusive)
            direction: Optional credit/debit filter
            import_file_id: Optional filter on the originating import
            limit: Page size
            offset: Number of transactions to skip
            by_value_date: Apply the date range to value dates instead of booking dates

        Returns:
            TransactionPage with the page items and the total matching count
        """
        items, total = self.db.list_bank_transactions(
            user_id,
            statuses=resolve_statuses(status),
            date_from=date_from,
            date_to=date_to,
            direction=direction,
            import_file_id=import_file_id,
            limit=limit,
            offset=offset,
            by_value_date=by_value_date,
        )
        return TransactionPage(items=items, total=total)

    def get_transaction(self, user_id: str, transaction_id: int) -> BankTransaction:
        """Get a transaction.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.db.get_bank_transaction(user_id, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def get_allocations(self, user_id: str, transaction_id: int) -> list[BankTransactionAllocation]:
        """Get a transaction's live allocations, oldest first."""
        return self.db.list_live_allocations(user_id, transaction_id)

    def status_counts(self, user_id: str) -> dict[BankTransactionStatus, int]:
        """Count transactions per status (every status present, zero if unused)."""
        return self.db.count_bank_transactions_by_status(user_id)
