"""SQLAlchemy models for rentrecon database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BankImportFile(Base):
    """Uploaded bank export file model."""

    __tablename__ = "bank_import_files"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)
    source_type = Column(String, nullable=False)
    file_size_bytes = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default="pending")
    total_rows = Column(Integer, default=0, nullable=False)
    imported_rows = Column(Integer, default=0, nullable=False)
    duplicate_rows = Column(Integer, default=0, nullable=False)
    skipped_rows = Column(Integer, default=0, nullable=False)
    error_message = Column(String, nullable=True)
    raw_meta = Column(JSON, nullable=True)
    storage_path = Column(String, nullable=True)
    rollback_available = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    summary = Column(JSON, nullable=True)
    uploaded_at = Column(DateTime, default=_utcnow, nullable=False)
    processed_at = Column(DateTime, nullable=True)

    # Relationships
    transactions = relationship("BankTransaction", back_populates="import_file")


class BankTransaction(Base):
    """Normalized bank transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    import_file_id = Column(Integer, ForeignKey("bank_import_files.id"), nullable=True)
    transaction_date = Column(Date, nullable=False)
    value_date = Column(Date, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    direction = Column(String, nullable=False)
    counterparty_name = Column(String, nullable=True)
    counterparty_iban = Column(String, nullable=True)
    usage_text = Column(String, nullable=True)
    end_to_end_id = Column(String, nullable=True)
    mandate_id = Column(String, nullable=True)
    bank_reference = Column(String, nullable=True)
    fingerprint = Column(String(64), nullable=False)
    status = Column(String, nullable=False, default="UNMATCHED")
    matched_by = Column(String, nullable=True)
    confidence = Column(Float, nullable=True)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # The fingerprint is the authoritative duplicate guard across imports
    __table_args__ = (UniqueConstraint("user_id", "fingerprint", name="uq_bank_transactions_user_fingerprint"),)

    # Relationships
    import_file = relationship("BankImportFile", back_populates="transactions")


class BankTransactionAllocation(Base):
    """Allocation of a bank transaction amount to one obligation.

    bank_transaction_id carries no foreign key: soft-deleted allocations
    outlive their transactions when a rollback hard-deletes them.
    """

    __tablename__ = "bank_transaction_allocations"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    bank_transaction_id = Column(Integer, nullable=False, index=True)
    target_type = Column(String, nullable=False)
    target_id = Column(Integer, nullable=False)
    amount_allocated = Column(Numeric(12, 2), nullable=False)
    created_by = Column(String, nullable=False, default="manual")
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class Tenant(Base):
    """Tenant model."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    name = Column(String, nullable=True)
    iban = Column(String, nullable=True)
    property_id = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    rent_payments = relationship("RentPayment", back_populates="tenant", cascade="all, delete-orphan")


class RentPayment(Base):
    """Rent due model."""

    __tablename__ = "rent_payments"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    due_date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    payment_status = Column(String, nullable=False, default="unpaid")
    paid = Column(Boolean, default=False, nullable=False)
    paid_date = Column(Date, nullable=True)
    description = Column(String, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="rent_payments")


class IncomeEntry(Base):
    """Manual income entry model."""

    __tablename__ = "income_entries"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    entry_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="open")


class Expense(Base):
    """Manual expense entry model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    entry_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="open")


class CsvImportMapping(Base):
    """Saved CSV column mapping model."""

    __tablename__ = "csv_import_mappings"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    mapping = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_csv_import_mappings_user_name"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every connection sees an empty database
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
