"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class FormatError(ValidationError):
    """Bank file cannot be parsed or lacks a required column."""


class OverAllocationError(ValidationError):
    """Requested allocations exceed what the transaction or target can take."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class NothingToUndoError(NotFoundError):
    """Transaction has no live allocations to remove."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DuplicateFingerprintError(ConflictError):
    """A transaction with the same fingerprint already exists for the user."""


class InvalidTransitionError(ConflictError):
    """Status change not permitted from the transaction's current status."""


class LedgerError(DomainError):
    """Persistence failure other than a duplicate fingerprint."""


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Bank transaction {transaction_id} not found"


def import_file_not_found(import_file_id: int) -> str:
    """Return message for missing import file."""
    return f"Import file {import_file_id} not found"


def target_not_found(target_type: str, target_id: int) -> str:
    """Return message for missing allocation target."""
    return f"Allocation target {target_type} {target_id} not found"


def tenant_not_found(tenant_id: int) -> str:
    """Return message for missing tenant."""
    return f"Tenant {tenant_id} not found"


def mapping_not_found(name: str) -> str:
    """Return message for missing saved CSV mapping."""
    return f"CSV mapping '{name}' not found"


def no_live_allocations(transaction_id: int) -> str:
    """Return message when there is nothing to undo."""
    return f"No active allocations found for transaction {transaction_id}"


def transaction_over_allocated(requested: Decimal, available: Decimal) -> str:
    """Return message when allocations exceed the transaction amount."""
    return (
        f"Total allocated ({requested:.2f}) exceeds transaction amount "
        f"available for allocation ({available:.2f})"
    )


def target_over_allocated(target_type: str, target_id: int, requested: Decimal, open_amount: Decimal) -> str:
    """Return message when an allocation exceeds a target's open amount."""
    return (
        f"Allocation of {requested:.2f} to {target_type} {target_id} exceeds "
        f"its open amount ({open_amount:.2f})"
    )


def invalid_transition(transaction_id: int, current: str, action: str) -> str:
    """Return message for a disallowed status transition."""
    return f"Cannot {action} transaction {transaction_id} in status {current}"
