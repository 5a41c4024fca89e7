"""Saved CSV mapping domain service."""

from rentrecon.database.base import Ledger
from rentrecon.domain.entities import CsvImportMapping
from rentrecon.domain.errors import ConflictError, NotFoundError, ValidationError, mapping_not_found
from rentrecon.parsers.csv_parser import CsvColumnMapping


class CsvMappingService:
    """Service for storing reusable CSV column mappings per bank."""

    def __init__(self, db: Ledger):
        """Initialize CSV mapping service.

        Args:
            db: Ledger instance
        """
        self.db = db

    def save_mapping(self, user_id: str, name: str, mapping: CsvColumnMapping) -> int:
        """Save a column mapping under a name.

        Args:
            user_id: Owner of the mapping
            name: Mapping name, unique per user (e.g. the bank's name)
            mapping: Column mapping to store

        Returns:
            Mapping ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a mapping with this name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Mapping name cannot be empty")
        if self.db.get_csv_mapping(user_id, name) is not None:
            raise ConflictError(f"CSV mapping '{name}' already exists")
        return self.db.create_csv_mapping(user_id, name, mapping.to_dict())

    def get_mapping(self, user_id: str, name: str) -> CsvColumnMapping:
        """Load a saved column mapping.

        Raises:
            NotFoundError: If no mapping with this name exists
        """
        saved = self.db.get_csv_mapping(user_id, name)
        if saved is None:
            raise NotFoundError(mapping_not_found(name))
        return CsvColumnMapping.from_dict(saved.mapping)

    def list_mappings(self, user_id: str) -> list[CsvImportMapping]:
        """List saved mappings ordered by name."""
        return self.db.list_csv_mappings(user_id)

    def delete_mapping(self, user_id: str, name: str) -> None:
        """Delete a saved mapping.

        Raises:
            NotFoundError: If no mapping with this name exists
        """
        if not self.db.delete_csv_mapping(user_id, name):
            raise NotFoundError(mapping_not_found(name))
