"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so ORM rows never leave the
database package and enum-valued columns are typed again on the way out.
"""

from decimal import Decimal

from rentrecon.domain import entities as domain
from rentrecon.database.models import (
    BankImportFile as ORMBankImportFile,
    BankTransaction as ORMBankTransaction,
    BankTransactionAllocation as ORMAllocation,
    CsvImportMapping as ORMCsvImportMapping,
    Expense as ORMExpense,
    IncomeEntry as ORMIncomeEntry,
    RentPayment as ORMRentPayment,
    Tenant as ORMTenant,
)


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def import_file_to_domain(orm_file: ORMBankImportFile) -> domain.BankImportFile:
    """Convert SQLAlchemy BankImportFile model to domain BankImportFile entity."""
    return domain.BankImportFile(
        id=orm_file.id,
        user_id=orm_file.user_id,
        filename=orm_file.filename,
        source_type=domain.SourceType(orm_file.source_type),
        file_size_bytes=orm_file.file_size_bytes,
        status=domain.ImportFileStatus(orm_file.status),
        total_rows=orm_file.total_rows or 0,
        imported_rows=orm_file.imported_rows or 0,
        duplicate_rows=orm_file.duplicate_rows or 0,
        skipped_rows=orm_file.skipped_rows or 0,
        error_message=orm_file.error_message,
        raw_meta=dict(orm_file.raw_meta or {}),
        storage_path=orm_file.storage_path,
        rollback_available=bool(orm_file.rollback_available),
        deleted_at=orm_file.deleted_at,
        summary=dict(orm_file.summary or {}),
        uploaded_at=orm_file.uploaded_at,
        processed_at=orm_file.processed_at,
    )


def bank_transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        import_file_id=orm_transaction.import_file_id,
        transaction_date=orm_transaction.transaction_date,
        value_date=orm_transaction.value_date,
        amount=_decimal(orm_transaction.amount),
        currency=orm_transaction.currency,
        direction=domain.Direction(orm_transaction.direction),
        counterparty_name=orm_transaction.counterparty_name,
        counterparty_iban=orm_transaction.counterparty_iban,
        usage_text=orm_transaction.usage_text,
        end_to_end_id=orm_transaction.end_to_end_id,
        mandate_id=orm_transaction.mandate_id,
        bank_reference=orm_transaction.bank_reference,
        fingerprint=orm_transaction.fingerprint,
        status=domain.BankTransactionStatus(orm_transaction.status),
        matched_by=orm_transaction.matched_by,
        confidence=orm_transaction.confidence,
        raw_data=dict(orm_transaction.raw_data or {}),
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def allocation_to_domain(orm_allocation: ORMAllocation) -> domain.BankTransactionAllocation:
    """Convert SQLAlchemy allocation model to domain BankTransactionAllocation entity."""
    return domain.BankTransactionAllocation(
        id=orm_allocation.id,
        user_id=orm_allocation.user_id,
        bank_transaction_id=orm_allocation.bank_transaction_id,
        target_type=domain.AllocationTargetType(orm_allocation.target_type),
        target_id=orm_allocation.target_id,
        amount_allocated=_decimal(orm_allocation.amount_allocated),
        created_by=domain.CreatedBy(orm_allocation.created_by),
        notes=orm_allocation.notes,
        created_at=orm_allocation.created_at,
        deleted_at=orm_allocation.deleted_at,
    )


def rent_payment_to_domain(orm_payment: ORMRentPayment) -> domain.RentPayment:
    """Convert SQLAlchemy RentPayment model to domain RentPayment entity."""
    return domain.RentPayment(
        id=orm_payment.id,
        user_id=orm_payment.user_id,
        tenant_id=orm_payment.tenant_id,
        due_date=orm_payment.due_date,
        amount=_decimal(orm_payment.amount),
        paid_amount=_decimal(orm_payment.paid_amount),
        payment_status=domain.RentPaymentStatus(orm_payment.payment_status),
        paid=bool(orm_payment.paid),
        paid_date=orm_payment.paid_date,
        description=orm_payment.description,
    )


def income_entry_to_domain(orm_entry: ORMIncomeEntry) -> domain.IncomeEntry:
    """Convert SQLAlchemy IncomeEntry model to domain IncomeEntry entity."""
    return domain.IncomeEntry(
        id=orm_entry.id,
        user_id=orm_entry.user_id,
        amount=_decimal(orm_entry.amount),
        description=orm_entry.description,
        entry_date=orm_entry.entry_date,
        status=domain.EntryStatus(orm_entry.status),
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        user_id=orm_expense.user_id,
        amount=_decimal(orm_expense.amount),
        description=orm_expense.description,
        entry_date=orm_expense.entry_date,
        status=domain.EntryStatus(orm_expense.status),
    )


def tenant_to_domain(orm_tenant: ORMTenant) -> domain.Tenant:
    """Convert SQLAlchemy Tenant model to domain Tenant entity."""
    return domain.Tenant(
        id=orm_tenant.id,
        user_id=orm_tenant.user_id,
        first_name=orm_tenant.first_name or "",
        last_name=orm_tenant.last_name or "",
        name=orm_tenant.name,
        iban=orm_tenant.iban,
        property_id=orm_tenant.property_id,
        is_active=bool(orm_tenant.is_active),
    )


def csv_mapping_to_domain(orm_mapping: ORMCsvImportMapping) -> domain.CsvImportMapping:
    """Convert SQLAlchemy CsvImportMapping model to domain CsvImportMapping entity."""
    return domain.CsvImportMapping(
        id=orm_mapping.id,
        user_id=orm_mapping.user_id,
        name=orm_mapping.name,
        mapping=dict(orm_mapping.mapping or {}),
        created_at=orm_mapping.created_at,
    )
