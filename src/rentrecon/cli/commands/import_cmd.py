"""Bank export import and CSV detection commands."""

from pathlib import Path

import click
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.bank_import import BankImportService, source_type_for_path
from rentrecon.domain.csv_mapping import CsvMappingService
from rentrecon.domain.entities import SourceType
from rentrecon.domain.errors import DomainError
from rentrecon.parsers.csv_parser import CsvMappingSuggestion, detect_csv_mapping


def _echo_suggestion(suggestion: CsvMappingSuggestion) -> None:
    click.echo(f"  Delimiter: {suggestion.delimiter!r}")
    click.echo(f"  Header line: {suggestion.skip_rows + 1}")
    click.echo(f"  Decimal separator: {suggestion.decimal_separator or '(unknown)'}")
    click.echo(f"  Date format: {suggestion.date_format or '(auto)'}")
    for field_name, column in suggestion.columns().items():
        click.echo(f"  {field_name:<24} <- {column or '-'}")


@click.command("detect")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--encoding", default="utf-8-sig", show_default=True, help="File encoding")
@click.pass_context
def detect(ctx, csv_file: str, encoding: str):
    """Suggest a column mapping for a CSV bank export.

    Nothing is saved; use 'mapping save --from-file' to keep the result.
    """
    try:
        suggestion = detect_csv_mapping(Path(csv_file).read_bytes(), encoding=encoding)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Detected mapping for {Path(csv_file).name}:")
    _echo_suggestion(suggestion)
    if not suggestion.is_complete:
        click.echo("Booking date or amount column not recognised; map them manually.", err=True)


@click.command("import")
@click.argument("bank_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--type",
    "source_type",
    type=click.Choice([t.value for t in SourceType]),
    help="File format (guessed from the extension if omitted)",
)
@click.option("--mapping", "mapping_name", help="Saved CSV mapping to use")
@click.option("--detect", "use_detection", is_flag=True, help="Detect the CSV mapping from the file")
@click.option("--yes", is_flag=True, help="Accept a detected mapping without asking")
@click.pass_context
def import_file(ctx, bank_file: str, source_type: str | None, mapping_name: str | None, use_detection: bool, yes: bool):
    """Import transactions from a CSV or CAMT.053 bank export.

    Transactions already imported before (from this or any other file) are
    counted as duplicates and not stored again.

    Examples:
        rentrecon import statement.xml
        rentrecon import export.csv --mapping sparkasse
        rentrecon import export.csv --detect
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = BankImportService(db)

    try:
        kind = SourceType(source_type) if source_type else source_type_for_path(bank_file)
        mapping = None
        if kind is SourceType.CSV:
            if mapping_name:
                mapping = CsvMappingService(db).get_mapping(user, mapping_name)
            elif use_detection:
                suggestion = detect_csv_mapping(Path(bank_file).read_bytes())
                click.echo("Detected mapping:")
                _echo_suggestion(suggestion)
                mapping = suggestion.to_mapping()
                if not yes and not click.confirm("Import with this mapping?"):
                    click.echo("Import cancelled.")
                    return
            else:
                click.echo("Error: CSV files need --mapping NAME or --detect", err=True)
                ctx.exit(1)

        result = service.import_path(user, bank_file, source_type=kind, mapping=mapping)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nImport complete (file ID {result.import_file_id}):")
    click.echo(f"  Rows: {result.total_rows}")
    click.echo(f"  Imported: {result.imported_rows} transactions")
    click.echo(f"  Duplicates: {result.duplicate_rows}")
    if result.skipped_rows:
        click.echo(f"  Skipped: {result.skipped_rows} unreadable rows")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_file)
    cli.add_command(detect)
