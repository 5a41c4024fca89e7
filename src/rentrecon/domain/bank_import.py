"""Bank import domain service.

Runs bank export files through a parser, deduplicates the resulting
transactions against everything the user imported before and keeps the
import history (statistics, rollback, artifact retention).
"""

import logging
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Optional, Union

from rentrecon.database.base import Ledger
from rentrecon.domain.entities import (
    BankImportFile,
    ImportFileStatus,
    ImportResult,
    RollbackResult,
    RollbackStatus,
    SourceType,
)
from rentrecon.domain.errors import (
    DuplicateFingerprintError,
    FormatError,
    LedgerError,
    NotFoundError,
    import_file_not_found,
)
from rentrecon.domain.fingerprint import fingerprint_for
from rentrecon.parsers.base import BankParser
from rentrecon.parsers.camt053 import Camt053Parser
from rentrecon.parsers.csv_parser import CsvColumnMapping, CsvParser

logger = logging.getLogger(__name__)

# Files older than this lose their stored artifact and rollback option
DEFAULT_RETENTION_DAYS = 14

SUFFIX_SOURCE_TYPES = {
    ".csv": SourceType.CSV,
    ".txt": SourceType.CSV,
    ".xml": SourceType.CAMT053,
    ".sta": SourceType.MT940,
    ".mt940": SourceType.MT940,
}


def source_type_for_path(path: Union[str, Path]) -> SourceType:
    """Guess the source type of a bank export from its file extension.

    Raises:
        FormatError: If the extension is not a known bank export format
    """
    suffix = Path(path).suffix.lower()
    if suffix not in SUFFIX_SOURCE_TYPES:
        raise FormatError(f"Cannot tell the format of '{Path(path).name}' from its extension")
    return SUFFIX_SOURCE_TYPES[suffix]


class BankImportService:
    """Service for importing bank export files."""

    def __init__(self, db: Ledger):
        """Initialize bank import service.

        Args:
            db: Ledger instance
        """
        self.db = db

    def import_csv(
        self,
        user_id: str,
        content: Union[str, bytes],
        filename: str,
        mapping: CsvColumnMapping,
        storage_path: Optional[str] = None,
    ) -> ImportResult:
        """Import a delimited CSV bank export.

        Args:
            user_id: Owner of the import
            content: Raw file content
            filename: Original file name
            mapping: Column mapping describing the export layout
            storage_path: Optional location of the stored upload

        Returns:
            ImportResult with the statistics of this run

        Raises:
            FormatError: If the file cannot be parsed (the import file is marked failed)
        """
        return self._run(user_id, content, filename, SourceType.CSV, CsvParser(mapping), storage_path)

    def import_camt053(
        self,
        user_id: str,
        content: Union[str, bytes],
        filename: str,
        storage_path: Optional[str] = None,
    ) -> ImportResult:
        """Import a CAMT.053 XML statement.

        Raises:
            FormatError: If the document cannot be parsed (the import file is marked failed)
        """
        return self._run(user_id, content, filename, SourceType.CAMT053, Camt053Parser(), storage_path)

    def import_path(
        self,
        user_id: str,
        path: Union[str, Path],
        source_type: Optional[SourceType] = None,
        mapping: Optional[CsvColumnMapping] = None,
    ) -> ImportResult:
        """Import a bank export from disk.

        Args:
            user_id: Owner of the import
            path: Path to the export file
            source_type: Format of the file; guessed from the extension if None
            mapping: Column mapping, required for CSV files

        Raises:
            FileNotFoundError: If the file does not exist
            FormatError: If the format is unsupported or the file cannot be parsed
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Bank export not found: {path}")

        if source_type is None:
            source_type = source_type_for_path(file_path)
        source_type = SourceType(source_type)
        content = file_path.read_bytes()

        if source_type is SourceType.CSV:
            if mapping is None:
                raise FormatError("A column mapping is required to import CSV files")
            return self.import_csv(user_id, content, file_path.name, mapping, storage_path=str(file_path))
        if source_type is SourceType.CAMT053:
            return self.import_camt053(user_id, content, file_path.name, storage_path=str(file_path))
        return self._run(user_id, content, file_path.name, source_type, None, str(file_path))

    def _run(
        self,
        user_id: str,
        content: Union[str, bytes],
        filename: str,
        source_type: SourceType,
        parser: Optional[BankParser],
        storage_path: Optional[str],
    ) -> ImportResult:
        size = len(content.encode("utf-8") if isinstance(content, str) else content)
        import_file_id = self.db.create_import_file(
            user_id, filename, source_type, file_size_bytes=size, storage_path=storage_path
        )
        self.db.update_import_file_status(import_file_id, ImportFileStatus.PROCESSING)

        try:
            if parser is None:
                raise FormatError(f"No parser available for {source_type.value} files")
            raw_transactions = parser.parse(content)
        except Exception as e:
            self.db.update_import_file_status(import_file_id, ImportFileStatus.FAILED, error_message=str(e))
            logger.error("Import of %s (file %d) failed: %s", filename, import_file_id, e)
            raise

        imported = 0
        duplicates = 0
        errors: list[str] = []

        for row_number, raw in enumerate(raw_transactions, start=1):
            fingerprint = fingerprint_for(user_id, raw)
            if self.db.get_bank_transaction_by_fingerprint(user_id, fingerprint) is not None:
                duplicates += 1
                continue
            try:
                self.db.create_bank_transaction(user_id, import_file_id, raw, fingerprint)
                imported += 1
            except DuplicateFingerprintError:
                # Lost a race against a concurrent import of the same line
                duplicates += 1
            except LedgerError as e:
                errors.append(f"Row {row_number}: {e}")

        self.db.complete_import_file(
            import_file_id,
            total_rows=len(raw_transactions),
            imported_rows=imported,
            duplicate_rows=duplicates,
            skipped_rows=parser.skipped_count,
            errors=errors,
            rollback_available=imported > 0,
        )
        logger.info(
            "Imported %s (file %d): %d rows, %d new, %d duplicates, %d skipped, %d errors",
            filename,
            import_file_id,
            len(raw_transactions),
            imported,
            duplicates,
            parser.skipped_count,
            len(errors),
        )

        return ImportResult(
            import_file_id=import_file_id,
            total_rows=len(raw_transactions),
            imported_rows=imported,
            duplicate_rows=duplicates,
            skipped_rows=parser.skipped_count,
            errors=errors,
        )

    def get_import_file(self, user_id: str, import_file_id: int) -> BankImportFile:
        """Get an import file.

        Raises:
            NotFoundError: If the import file does not exist
        """
        import_file = self.db.get_import_file(user_id, import_file_id)
        if import_file is None:
            raise NotFoundError(import_file_not_found(import_file_id))
        return import_file

    def list_import_files(self, user_id: str) -> list[BankImportFile]:
        """List all import files, newest first."""
        return self.db.list_import_files(user_id)

    def list_recent_import_files(self, user_id: str, days: int = DEFAULT_RETENTION_DAYS) -> list[BankImportFile]:
        """List import files uploaded within the last `days` days, newest first."""
        since = datetime.now(UTC) - timedelta(days=days)
        return self.db.list_import_files(user_id, since=since)

    def rollback_availability(self, user_id: str, import_file_id: int) -> tuple[bool, Optional[str]]:
        """Tell whether an import can be rolled back.

        Returns:
            Tuple of (available, reason why not)

        Raises:
            NotFoundError: If the import file does not exist
        """
        import_file = self.get_import_file(user_id, import_file_id)
        if import_file.is_finalized:
            return False, f"Import file {import_file_id} has already been rolled back"
        if import_file.status is not ImportFileStatus.COMPLETED:
            return False, f"Import file {import_file_id} is {import_file.status.value}, only completed imports can be rolled back"
        if not import_file.rollback_available:
            if import_file.imported_rows > 0:
                return False, f"Import file {import_file_id} has expired, rollback is no longer offered"
            return False, f"Import file {import_file_id} imported no transactions"
        if self.db.count_import_transactions(user_id, import_file_id) == 0:
            return False, f"Import file {import_file_id} has no remaining transactions"
        return True, None

    def rollback_import(self, user_id: str, import_file_id: int) -> RollbackResult:
        """Undo an import: drop its transactions and the allocations made on them.

        Returns:
            RollbackResult; ALREADY_DELETED and NOT_AVAILABLE are informational
            outcomes, not errors

        Raises:
            NotFoundError: If the import file does not exist
            LedgerError: If the atomic rollback fails (nothing is changed)
        """
        import_file = self.get_import_file(user_id, import_file_id)
        if import_file.is_finalized:
            return RollbackResult(
                status=RollbackStatus.ALREADY_DELETED,
                message=f"Import file {import_file_id} has already been rolled back",
            )

        available, reason = self.rollback_availability(user_id, import_file_id)
        if not available:
            return RollbackResult(status=RollbackStatus.NOT_AVAILABLE, message=reason)

        before = self.db.count_import_transactions(user_id, import_file_id)
        result = self.db.rollback_import(user_id, import_file_id)
        after = self.db.count_import_transactions(user_id, import_file_id)
        logger.info(
            "Rolled back import file %d: transactions %d -> %d, %d allocations removed, %d obligations recalculated",
            import_file_id,
            before,
            after,
            result.deleted_allocations,
            result.recalced_obligations,
        )
        return result

    def expire_artifacts(
        self, user_id: str, retention_days: int = DEFAULT_RETENTION_DAYS, now: Optional[datetime] = None
    ) -> int:
        """Expire stored uploads older than the retention window.

        Expired files keep their statistics but lose their storage path and
        the rollback option.

        Returns:
            Number of import files expired
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(days=retention_days)
        expired = self.db.expire_import_artifacts(user_id, uploaded_before=cutoff)
        if expired:
            logger.info("Expired %d import files uploaded before %s", expired, cutoff.isoformat())
        return expired
