"""Domain layer for rentrecon application."""

__all__ = [
    "AllocationService",
    "BankImportService",
    "CsvMappingService",
    "InboxService",
    "SuggestionService",
]


# Import services lazily: database.base imports domain.entities, and every
# service imports database.base
def __getattr__(name):
    if name == "AllocationService":
        from rentrecon.domain.allocation import AllocationService
        return AllocationService
    if name == "BankImportService":
        from rentrecon.domain.bank_import import BankImportService
        return BankImportService
    if name == "CsvMappingService":
        from rentrecon.domain.csv_mapping import CsvMappingService
        return CsvMappingService
    if name == "InboxService":
        from rentrecon.domain.inbox import InboxService
        return InboxService
    if name == "SuggestionService":
        from rentrecon.domain.suggestion import SuggestionService
        return SuggestionService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
