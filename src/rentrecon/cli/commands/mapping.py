"""Saved CSV mapping commands."""

from pathlib import Path

import click
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.csv_mapping import CsvMappingService
from rentrecon.domain.errors import DomainError
from rentrecon.parsers.csv_parser import CsvColumnMapping, detect_csv_mapping
from rentrecon.utils.date_parser import BANK_DATE_FORMATS


@click.group()
def mapping_group():
    """Manage saved CSV column mappings."""
    pass


@mapping_group.command("save")
@click.argument("name")
@click.option("--from-file", type=click.Path(exists=True, dir_okay=False), help="Detect the mapping from a sample export")
@click.option("--booking-date", help="Booking date column")
@click.option("--amount", help="Amount column")
@click.option("--value-date", help="Value date column")
@click.option("--counterparty-name", help="Payer/payee name column")
@click.option("--counterparty-iban", help="Payer/payee IBAN column")
@click.option("--usage-text", help="Remittance text column")
@click.option("--indicator", "credit_debit_indicator", help="Credit/debit (Soll/Haben) indicator column")
@click.option("--currency", help="Currency column")
@click.option("--delimiter", help="Field delimiter (detected if omitted)")
@click.option("--decimal-separator", type=click.Choice([",", "."]), help="Decimal separator")
@click.option("--date-format", type=click.Choice(BANK_DATE_FORMATS), help="Date format (detected if omitted)")
@click.option("--skip-rows", type=int, help="Lines before the header row")
@click.option("--encoding", help="File encoding")
@click.pass_context
def save_mapping(ctx, name: str, from_file: str | None, **columns):
    """Save a CSV column mapping under NAME.

    Columns can be given explicitly or detected from a sample file with
    --from-file; explicit options override what was detected.

    Examples:
        rentrecon mapping save sparkasse --booking-date Buchungstag --amount Betrag
        rentrecon mapping save dkb --from-file export.csv --usage-text Verwendungszweck
    """
    db = ctx.obj["db"]
    service = CsvMappingService(db)

    if not from_file and not (columns["booking_date"] and columns["amount"]):
        click.echo("Error: --booking-date and --amount are required without --from-file", err=True)
        ctx.exit(1)

    try:
        if from_file:
            encoding = columns.get("encoding") or "utf-8-sig"
            mapping = detect_csv_mapping(Path(from_file).read_bytes(), encoding=encoding).to_mapping(**columns)
        else:
            mapping = CsvColumnMapping(**{k: v for k, v in columns.items() if v is not None})
        mapping_id = service.save_mapping(ctx.obj["user"], name, mapping)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Saved CSV mapping '{name}' (ID: {mapping_id})")
    click.echo(f"  Booking date: {mapping.booking_date}")
    click.echo(f"  Amount: {mapping.amount}")


@mapping_group.command("list")
@click.pass_context
def list_mappings(ctx):
    """List saved CSV mappings."""
    db = ctx.obj["db"]
    service = CsvMappingService(db)

    mappings = service.list_mappings(ctx.obj["user"])
    if not mappings:
        click.echo("No CSV mappings found.")
        return

    click.echo(f"\n{'Name':<24} {'Booking date':<20} {'Amount':<20} {'Delimiter':<10}")
    click.echo("-" * 76)
    for saved in mappings:
        columns = saved.mapping
        delimiter = repr(columns.get("delimiter")) if columns.get("delimiter") else "auto"
        click.echo(
            f"{saved.name:<24} {columns.get('booking_date', ''):<20} {columns.get('amount', ''):<20} {delimiter:<10}"
        )


@mapping_group.command("delete")
@click.argument("name")
@click.pass_context
def delete_mapping(ctx, name: str):
    """Delete a saved CSV mapping."""
    db = ctx.obj["db"]
    service = CsvMappingService(db)

    try:
        service.delete_mapping(ctx.obj["user"], name)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted CSV mapping '{name}'")


def register_commands(cli: click.Group) -> None:
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
