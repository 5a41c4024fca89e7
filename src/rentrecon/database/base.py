"""Abstract ledger interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from rentrecon.domain.entities import (
    AllocationRequest,
    AllocationTargetType,
    BankImportFile,
    BankTransaction,
    BankTransactionAllocation,
    BankTransactionStatus,
    CreatedBy,
    CsvImportMapping,
    Direction,
    ImportFileStatus,
    Obligation,
    RentPayment,
    RollbackResult,
    SourceType,
    Tenant,
)
from rentrecon.parsers.base import RawTransaction


class Ledger(ABC):
    """Abstract persistence interface for rentrecon.

    Every method is scoped to a user and returns domain entities, never
    ORM rows. Lookups of rows owned by another user behave as if the row
    did not exist.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Import file operations
    @abstractmethod
    def create_import_file(
        self,
        user_id: str,
        filename: str,
        source_type: SourceType,
        file_size_bytes: Optional[int] = None,
        storage_path: Optional[str] = None,
    ) -> int:
        """Create an import file in status pending. Returns import file ID."""
        pass

    @abstractmethod
    def update_import_file_status(
        self, import_file_id: int, status: ImportFileStatus, error_message: Optional[str] = None
    ) -> None:
        """Set the status (and optionally the error message) of an import file."""
        pass

    @abstractmethod
    def complete_import_file(
        self,
        import_file_id: int,
        total_rows: int,
        imported_rows: int,
        duplicate_rows: int,
        skipped_rows: int,
        errors: list[str],
        rollback_available: bool,
    ) -> None:
        """Mark an import file completed and store its statistics."""
        pass

    @abstractmethod
    def get_import_file(self, user_id: str, import_file_id: int) -> Optional[BankImportFile]:
        """Get import file by ID."""
        pass

    @abstractmethod
    def list_import_files(self, user_id: str, since: Optional[datetime] = None) -> list[BankImportFile]:
        """List import files, newest upload first, optionally only those uploaded since a moment."""
        pass

    @abstractmethod
    def count_import_transactions(self, user_id: str, import_file_id: int) -> int:
        """Count the bank transactions that still belong to an import file."""
        pass

    @abstractmethod
    def expire_import_artifacts(self, user_id: str, uploaded_before: datetime) -> int:
        """Drop storage path and rollback availability of files uploaded before a moment.

        Returns:
            Number of import files expired
        """
        pass

    @abstractmethod
    def rollback_import(self, user_id: str, import_file_id: int) -> RollbackResult:
        """Atomically undo an import.

        Soft-deletes the live allocations of the file's transactions,
        recalculates every obligation they targeted, hard-deletes the
        transactions and marks the file rolled back with a summary. Either
        all of it happens or none of it does.

        Raises:
            NotFoundError: If the import file does not exist
            LedgerError: If the database transaction fails
        """
        pass

    # Bank transaction operations
    @abstractmethod
    def create_bank_transaction(
        self, user_id: str, import_file_id: Optional[int], raw: RawTransaction, fingerprint: str
    ) -> int:
        """Insert a parsed transaction as UNMATCHED. Returns transaction ID.

        Raises:
            DuplicateFingerprintError: If the fingerprint already exists for the user
            LedgerError: On any other persistence failure
        """
        pass

    @abstractmethod
    def get_bank_transaction(self, user_id: str, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def get_bank_transaction_by_fingerprint(self, user_id: str, fingerprint: str) -> Optional[BankTransaction]:
        """Get bank transaction by fingerprint."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        user_id: str,
        statuses: Optional[Iterable[BankTransactionStatus]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        direction: Optional[Direction] = None,
        import_file_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        by_value_date: bool = False,
    ) -> tuple[list[BankTransaction], int]:
        """List bank transactions, newest transaction date first.

        With by_value_date the date range applies to the value date, falling
        back to the booking date for transactions without one.

        Returns:
            Tuple of (page of transactions, total number matching the filters)
        """
        pass

    @abstractmethod
    def count_bank_transactions_by_status(self, user_id: str) -> dict[BankTransactionStatus, int]:
        """Count bank transactions per status."""
        pass

    @abstractmethod
    def update_bank_transaction_status(
        self,
        transaction_id: int,
        status: BankTransactionStatus,
        matched_by: Optional[str] = None,
        confidence: Optional[float] = None,
    ) -> None:
        """Set status, matched_by and confidence of a transaction (None clears a field)."""
        pass

    # Allocation operations
    @abstractmethod
    def create_allocations(
        self,
        user_id: str,
        transaction_id: int,
        requests: list[AllocationRequest],
        created_by: CreatedBy,
    ) -> list[int]:
        """Insert all allocations in one database transaction. Returns allocation IDs."""
        pass

    @abstractmethod
    def list_live_allocations(self, user_id: str, transaction_id: int) -> list[BankTransactionAllocation]:
        """List the non-deleted allocations of a transaction, oldest first."""
        pass

    @abstractmethod
    def soft_delete_allocations(self, user_id: str, transaction_id: int) -> list[BankTransactionAllocation]:
        """Soft-delete every live allocation of a transaction. Returns the deleted allocations."""
        pass

    @abstractmethod
    def sum_live_allocations_for_target(
        self, user_id: str, target_type: AllocationTargetType, target_id: int
    ) -> Decimal:
        """Sum the live allocations pointing at one obligation."""
        pass

    # Obligation operations
    @abstractmethod
    def get_obligation(
        self, user_id: str, target_type: AllocationTargetType, target_id: int
    ) -> Optional[Obligation]:
        """Get the rent payment, income entry or expense an allocation can target."""
        pass

    @abstractmethod
    def recalculate_obligation(self, user_id: str, target_type: AllocationTargetType, target_id: int) -> None:
        """Re-derive an obligation's status from a fresh sum of its live allocations."""
        pass

    @abstractmethod
    def delete_obligation(self, user_id: str, target_type: AllocationTargetType, target_id: int) -> bool:
        """Delete an obligation, leaving its allocations in place. Returns False if it did not exist."""
        pass

    @abstractmethod
    def create_rent_payment(
        self,
        user_id: str,
        tenant_id: int,
        due_date: date,
        amount: Decimal,
        description: Optional[str] = None,
    ) -> int:
        """Create an unpaid rent payment. Returns rent payment ID."""
        pass

    @abstractmethod
    def list_open_rent_payments(self, user_id: str, tenant_id: int) -> list[RentPayment]:
        """List a tenant's unpaid and partially paid rent payments, oldest due date first."""
        pass

    @abstractmethod
    def create_income_entry(
        self, user_id: str, amount: Decimal, entry_date: date, description: Optional[str] = None
    ) -> int:
        """Create an open income entry. Returns income entry ID."""
        pass

    @abstractmethod
    def create_expense(
        self, user_id: str, amount: Decimal, entry_date: date, description: Optional[str] = None
    ) -> int:
        """Create an open expense. Returns expense ID."""
        pass

    # Tenant operations
    @abstractmethod
    def create_tenant(
        self,
        user_id: str,
        first_name: str,
        last_name: str,
        name: Optional[str] = None,
        iban: Optional[str] = None,
        property_id: Optional[int] = None,
        is_active: bool = True,
    ) -> int:
        """Create a tenant. Returns tenant ID."""
        pass

    @abstractmethod
    def get_tenant(self, user_id: str, tenant_id: int) -> Optional[Tenant]:
        """Get tenant by ID."""
        pass

    @abstractmethod
    def list_active_tenants(self, user_id: str) -> list[Tenant]:
        """List active tenants in creation order."""
        pass

    # CSV mapping operations
    @abstractmethod
    def create_csv_mapping(self, user_id: str, name: str, mapping: dict) -> int:
        """Store a named CSV mapping. Returns mapping ID.

        Raises:
            ConflictError: If the user already has a mapping with this name
        """
        pass

    @abstractmethod
    def get_csv_mapping(self, user_id: str, name: str) -> Optional[CsvImportMapping]:
        """Get saved CSV mapping by name."""
        pass

    @abstractmethod
    def list_csv_mappings(self, user_id: str) -> list[CsvImportMapping]:
        """List saved CSV mappings ordered by name."""
        pass

    @abstractmethod
    def delete_csv_mapping(self, user_id: str, name: str) -> bool:
        """Delete a saved CSV mapping. Returns False if it did not exist."""
        pass
