"""Domain model entities for rentrecon.

These are pure data classes representing business concepts, independent of
database schema. Every row the ledger hands out is converted into one of
these records, so business logic never sees untyped persistence rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class Direction(str, Enum):
    """Money flow as seen from the account holder."""

    CREDIT = "credit"
    DEBIT = "debit"


class SourceType(str, Enum):
    """Bank export formats an import file can come from."""

    CSV = "csv"
    CAMT053 = "camt053"
    MT940 = "mt940"


class ImportFileStatus(str, Enum):
    """Lifecycle of an uploaded bank export file."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    DELETED = "deleted"


class BankTransactionStatus(str, Enum):
    """Reconciliation state of a bank transaction."""

    UNMATCHED = "UNMATCHED"
    SUGGESTED = "SUGGESTED"
    MATCHED_AUTO = "MATCHED_AUTO"
    MATCHED_MANUAL = "MATCHED_MANUAL"
    IGNORED = "IGNORED"


# Statuses shown in the "open" inbox tab
OPEN_STATUSES = (BankTransactionStatus.UNMATCHED, BankTransactionStatus.SUGGESTED)
MATCHED_STATUSES = (BankTransactionStatus.MATCHED_AUTO, BankTransactionStatus.MATCHED_MANUAL)


class AllocationTargetType(str, Enum):
    """Kinds of obligations a bank transaction can be allocated to."""

    RENT_PAYMENT = "rent_payment"
    INCOME_ENTRY = "income_entry"
    EXPENSE = "expense"


class CreatedBy(str, Enum):
    """Origin of an allocation."""

    AUTO = "auto"
    MANUAL = "manual"


class RentPaymentStatus(str, Enum):
    """Payment state of a rent due."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class EntryStatus(str, Enum):
    """Payment state of a manual income or expense entry."""

    OPEN = "open"
    PAID = "paid"


class RollbackStatus(str, Enum):
    """Outcome of an import rollback request."""

    SUCCESS = "success"
    ALREADY_DELETED = "already_deleted"
    NOT_AVAILABLE = "not_available"


@dataclass(frozen=True)
class BankImportFile:
    """Uploaded bank export file and its import statistics."""

    id: int
    user_id: str
    filename: str
    source_type: SourceType
    file_size_bytes: Optional[int]
    status: ImportFileStatus
    total_rows: int
    imported_rows: int
    duplicate_rows: int
    skipped_rows: int
    error_message: Optional[str]
    raw_meta: dict[str, Any]
    storage_path: Optional[str]
    rollback_available: bool
    deleted_at: Optional[datetime]
    summary: dict[str, Any]
    uploaded_at: datetime
    processed_at: Optional[datetime]

    @property
    def is_finalized(self) -> bool:
        """True once the file has been rolled back or deleted."""
        return self.status in (ImportFileStatus.ROLLED_BACK, ImportFileStatus.DELETED)


@dataclass(frozen=True)
class BankTransaction:
    """Bank transaction domain entity."""

    id: int
    user_id: str
    import_file_id: Optional[int]
    transaction_date: date
    value_date: Optional[date]
    amount: Decimal
    currency: str
    direction: Direction
    counterparty_name: Optional[str]
    counterparty_iban: Optional[str]
    usage_text: Optional[str]
    end_to_end_id: Optional[str]
    mandate_id: Optional[str]
    bank_reference: Optional[str]
    fingerprint: str
    status: BankTransactionStatus
    matched_by: Optional[str]
    confidence: Optional[float]
    raw_data: dict[str, Any]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class BankTransactionAllocation:
    """Attribution of (part of) a bank transaction to one obligation."""

    id: int
    user_id: str
    bank_transaction_id: int
    target_type: AllocationTargetType
    target_id: int
    amount_allocated: Decimal
    created_by: CreatedBy
    notes: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        return self.deleted_at is None


@dataclass(frozen=True)
class AllocationRequest:
    """Requested allocation of an amount to a target, before it is persisted."""

    target_type: AllocationTargetType
    target_id: int
    amount_allocated: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class RentPayment:
    """Rent due for a tenant."""

    id: int
    user_id: str
    tenant_id: int
    due_date: date
    amount: Decimal
    paid_amount: Decimal
    payment_status: RentPaymentStatus
    paid: bool
    paid_date: Optional[date]
    description: Optional[str]

    @property
    def due_amount(self) -> Decimal:
        return self.amount

    @property
    def open_amount(self) -> Decimal:
        return self.amount - self.paid_amount


@dataclass(frozen=True)
class IncomeEntry:
    """Manual income entry expecting a payment."""

    id: int
    user_id: str
    amount: Decimal
    description: Optional[str]
    entry_date: date
    status: EntryStatus

    @property
    def due_amount(self) -> Decimal:
        return abs(self.amount)


@dataclass(frozen=True)
class Expense:
    """Manual expense entry expecting a payment."""

    id: int
    user_id: str
    amount: Decimal
    description: Optional[str]
    entry_date: date
    status: EntryStatus

    @property
    def due_amount(self) -> Decimal:
        return abs(self.amount)


Obligation = RentPayment | IncomeEntry | Expense


@dataclass(frozen=True)
class Tenant:
    """Tenant as known to the suggestion engine."""

    id: int
    user_id: str
    first_name: str
    last_name: str
    name: Optional[str]
    iban: Optional[str]
    property_id: Optional[int]
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return self.name or self.full_name


@dataclass(frozen=True)
class CsvImportMapping:
    """Named, reusable CSV column mapping for one bank export format."""

    id: int
    user_id: str
    name: str
    mapping: dict[str, Any]
    created_at: datetime


@dataclass(frozen=True)
class ImportResult:
    """Statistics of a single import run."""

    import_file_id: int
    total_rows: int
    imported_rows: int
    duplicate_rows: int
    skipped_rows: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RollbackResult:
    """Outcome of rolling back an import file."""

    status: RollbackStatus
    message: Optional[str] = None
    deleted_allocations: int = 0
    deleted_transactions: int = 0
    recalced_obligations: int = 0
