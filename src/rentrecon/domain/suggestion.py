"""Tenant suggestion domain service.

Scores incoming payments against the user's active tenants with a small set
of deterministic rules. A tenant's confidence is the highest score of any
rule that fires; the best tenant wins, with ties going to the tenant that
was created first.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from rentrecon.database.base import Ledger
from rentrecon.domain.allocation import AllocationService
from rentrecon.domain.entities import (
    BankTransaction,
    BankTransactionAllocation,
    BankTransactionStatus,
    CreatedBy,
    Direction,
    Tenant,
)
from rentrecon.domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    invalid_transition,
    tenant_not_found,
    transaction_not_found,
)

logger = logging.getLogger(__name__)

SUGGESTION_PREFIX = "suggestion:"


@dataclass(frozen=True)
class MatchSuggestion:
    """Best tenant match for a bank transaction."""

    tenant_id: int
    tenant_name: str
    property_id: Optional[int]
    confidence: float
    reason: str


def normalize_iban(iban: Optional[str]) -> str:
    """Uppercase an IBAN and drop its whitespace."""
    return "".join((iban or "").split()).upper()


class SuggestionService:
    """Service for suggesting which tenant a payment came from."""

    MIN_CONFIDENCE = 0.4
    PROMOTE_CONFIDENCE = 0.6
    BATCH_LIMIT = 200

    IBAN_SCORE = 0.95
    EXACT_NAME_SCORE = 0.85
    LAST_NAME_IN_COUNTERPARTY_SCORE = 0.6
    FULL_NAME_IN_USAGE_SCORE = 0.65
    LAST_NAME_IN_USAGE_SCORE = 0.4

    # Name rules only run below this score, usage text rules below the next
    NAME_RULES_BELOW = 0.8
    USAGE_RULES_BELOW = 0.7

    MIN_LAST_NAME_LENGTH = 3

    def __init__(self, db: Ledger):
        """Initialize suggestion service.

        Args:
            db: Ledger instance
        """
        self.db = db
        self.allocation_service = AllocationService(db)

    def score_tenant(self, transaction: BankTransaction, tenant: Tenant) -> tuple[float, str]:
        """Score how likely a tenant sent a transaction.

        Returns:
            Tuple of (confidence, reason); confidence 0 means no rule fired
        """
        confidence = 0.0
        reason = ""

        def raise_to(score: float, why: str) -> None:
            nonlocal confidence, reason
            if score > confidence:
                confidence, reason = score, why

        last_name = tenant.last_name.lower()
        usable_last_name = len(tenant.last_name) >= self.MIN_LAST_NAME_LENGTH
        full_name = tenant.full_name.lower()

        tx_iban = normalize_iban(transaction.counterparty_iban)
        if tx_iban and tx_iban == normalize_iban(tenant.iban):
            raise_to(self.IBAN_SCORE, f"IBAN matches (...{tx_iban[-4:]})")

        if confidence < self.NAME_RULES_BELOW and transaction.counterparty_name:
            counterparty = transaction.counterparty_name.strip().lower()
            if counterparty == full_name or (tenant.name and counterparty == tenant.name.lower()):
                raise_to(self.EXACT_NAME_SCORE, "Name matches exactly")
            elif usable_last_name and last_name in counterparty:
                raise_to(self.LAST_NAME_IN_COUNTERPARTY_SCORE, f'Last name "{tenant.last_name}" in counterparty')

        if confidence < self.USAGE_RULES_BELOW and transaction.usage_text:
            usage = transaction.usage_text.lower()
            if full_name and full_name in usage:
                raise_to(self.FULL_NAME_IN_USAGE_SCORE, "Name found in usage text")
            elif usable_last_name and last_name in usage:
                raise_to(self.LAST_NAME_IN_USAGE_SCORE, "Last name found in usage text")

        return confidence, reason

    def suggest_tenant(self, user_id: str, transaction: BankTransaction) -> Optional[MatchSuggestion]:
        """Find the active tenant most likely to have sent a transaction.

        Returns:
            MatchSuggestion, or None if no tenant reaches MIN_CONFIDENCE
        """
        best: Optional[MatchSuggestion] = None
        for tenant in self.db.list_active_tenants(user_id):
            confidence, reason = self.score_tenant(transaction, tenant)
            if confidence > (best.confidence if best else 0):
                best = MatchSuggestion(
                    tenant_id=tenant.id,
                    tenant_name=tenant.display_name,
                    property_id=tenant.property_id,
                    confidence=confidence,
                    reason=reason,
                )

        if best is not None and best.confidence >= self.MIN_CONFIDENCE:
            return best
        return None

    def run_suggestions(self, user_id: str) -> int:
        """Promote confidently matched unmatched credits to SUGGESTED.

        Looks at up to BATCH_LIMIT unmatched incoming transactions. Nothing
        is allocated; the operator still has to confirm each suggestion.

        Returns:
            Number of transactions promoted
        """
        transactions, _ = self.db.list_bank_transactions(
            user_id,
            statuses=[BankTransactionStatus.UNMATCHED],
            direction=Direction.CREDIT,
            limit=self.BATCH_LIMIT,
        )

        promoted = 0
        for transaction in transactions:
            suggestion = self.suggest_tenant(user_id, transaction)
            if suggestion is None or suggestion.confidence < self.PROMOTE_CONFIDENCE:
                continue
            self.db.update_bank_transaction_status(
                transaction.id,
                BankTransactionStatus.SUGGESTED,
                matched_by=f"{SUGGESTION_PREFIX}{suggestion.tenant_id}",
                confidence=suggestion.confidence,
            )
            promoted += 1

        logger.info("Suggestion run for %s: %d of %d transactions promoted", user_id, promoted, len(transactions))
        return promoted

    def suggested_tenant_id(self, transaction: BankTransaction) -> Optional[int]:
        """Return the tenant a SUGGESTED transaction points at, if any."""
        if transaction.matched_by and transaction.matched_by.startswith(SUGGESTION_PREFIX):
            try:
                return int(transaction.matched_by[len(SUGGESTION_PREFIX):])
            except ValueError:
                return None
        return None

    def confirm_suggestion(self, user_id: str, transaction_id: int) -> list[BankTransactionAllocation]:
        """Accept a suggestion by allocating the payment to the tenant's open rent.

        Raises:
            NotFoundError: If the transaction or suggested tenant does not exist
            InvalidTransitionError: If the transaction is not SUGGESTED
            ValidationError: If the tenant has no open rent payments
        """
        transaction = self.db.get_bank_transaction(user_id, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        tenant_id = self.suggested_tenant_id(transaction)
        if transaction.status is not BankTransactionStatus.SUGGESTED or tenant_id is None:
            raise InvalidTransitionError(invalid_transition(transaction_id, transaction.status.value, "confirm"))
        if self.db.get_tenant(user_id, tenant_id) is None:
            raise NotFoundError(tenant_not_found(tenant_id))

        plan = self.allocation_service.plan_rent_distribution(user_id, transaction_id, tenant_id)
        if not plan:
            raise ValidationError(f"Tenant {tenant_id} has no open rent payments to allocate to")
        return self.allocation_service.allocate(user_id, transaction_id, plan, created_by=CreatedBy.MANUAL)
