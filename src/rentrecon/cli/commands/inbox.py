"""Transaction inbox commands."""

import click
from rentrecon.cli.date_filters import resolve_inbox_date_range
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.entities import OPEN_STATUSES, BankTransaction, BankTransactionStatus, Direction
from rentrecon.domain.errors import DomainError
from rentrecon.domain.inbox import ALL_OPEN, DEFAULT_PAGE_SIZE, InboxService


def format_amount(transaction: BankTransaction) -> str:
    return f"{transaction.amount:,.2f} {transaction.currency}"


@click.group()
def inbox_group():
    """Browse imported bank transactions."""
    pass


@inbox_group.command("list")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([s.value for s in BankTransactionStatus] + [ALL_OPEN], case_sensitive=False),
    help="Status filter (repeatable); ALL_OPEN selects UNMATCHED and SUGGESTED",
)
@click.option("--direction", type=click.Choice([d.value for d in Direction]), help="Only credits or debits")
@click.option("--import-file", "import_file_id", type=int, help="Only transactions of this import")
@click.option("--from", "date_from", help="First date (DD.MM.YYYY, YYYY-MM-DD or MM/DD/YYYY)")
@click.option("--to", "date_to", help="Last date (DD.MM.YYYY, YYYY-MM-DD or MM/DD/YYYY)")
@click.option("--month", help="Rent month, e.g. 2025-03 or 03.2025")
@click.option("--value-date", "by_value_date", is_flag=True, help="Filter on value dates instead of booking dates")
@click.option("--limit", type=int, default=DEFAULT_PAGE_SIZE, show_default=True, help="Page size")
@click.option("--offset", type=int, default=0, help="Number of transactions to skip")
@click.pass_context
def list_transactions(
    ctx,
    statuses: tuple[str, ...],
    direction: str | None,
    import_file_id: int | None,
    date_from: str | None,
    date_to: str | None,
    month: str | None,
    by_value_date: bool,
    limit: int,
    offset: int,
):
    """List bank transactions, newest first."""
    db = ctx.obj["db"]
    service = InboxService(db)

    start, end = resolve_inbox_date_range(ctx, date_from=date_from, date_to=date_to, month=month)

    status_filter = None
    if statuses:
        status_filter = []
        for value in statuses:
            if value.upper() == ALL_OPEN:
                status_filter.extend(OPEN_STATUSES)
            else:
                status_filter.append(BankTransactionStatus(value.upper()))

    page = service.list_transactions(
        ctx.obj["user"],
        status=status_filter,
        date_from=start,
        date_to=end,
        direction=Direction(direction) if direction else None,
        import_file_id=import_file_id,
        limit=limit,
        offset=offset,
        by_value_date=by_value_date,
    )

    if not page.items:
        click.echo("No transactions found.")
        return

    click.echo(f"\nShowing {offset + 1}-{offset + len(page.items)} of {page.total} transaction(s):")
    click.echo("-" * 110)
    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>16} {'Status':<15} {'Counterparty':<25} {'Usage':<30}")
    click.echo("-" * 110)
    for txn in page.items:
        click.echo(
            f"{txn.id:<6} {str(txn.transaction_date):<12} {format_amount(txn):>16} {txn.status.value:<15} "
            f"{(txn.counterparty_name or '')[:25]:<25} {(txn.usage_text or '')[:30]:<30}"
        )


@inbox_group.command("counts")
@click.pass_context
def status_counts(ctx):
    """Show how many transactions are in each status."""
    db = ctx.obj["db"]
    service = InboxService(db)

    counts = service.status_counts(ctx.obj["user"])
    for status in BankTransactionStatus:
        click.echo(f"{status.value:<15} {counts.get(status, 0):>6}")
    open_count = counts.get(BankTransactionStatus.UNMATCHED, 0) + counts.get(BankTransactionStatus.SUGGESTED, 0)
    click.echo(f"{'OPEN':<15} {open_count:>6}")


@inbox_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction and its allocations."""
    db = ctx.obj["db"]
    service = InboxService(db)
    user = ctx.obj["user"]

    try:
        txn = service.get_transaction(user, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Date: {txn.transaction_date}")
    if txn.value_date:
        click.echo(f"  Value date: {txn.value_date}")
    click.echo(f"  Amount: {format_amount(txn)} ({txn.direction.value})")
    click.echo(f"  Status: {txn.status.value}")
    if txn.matched_by:
        click.echo(f"  Matched by: {txn.matched_by}")
    if txn.confidence is not None:
        click.echo(f"  Confidence: {txn.confidence:.2f}")
    if txn.counterparty_name:
        click.echo(f"  Counterparty: {txn.counterparty_name}")
    if txn.counterparty_iban:
        click.echo(f"  IBAN: {txn.counterparty_iban}")
    if txn.usage_text:
        click.echo(f"  Usage: {txn.usage_text}")
    if txn.end_to_end_id:
        click.echo(f"  End-to-end ID: {txn.end_to_end_id}")
    if txn.mandate_id:
        click.echo(f"  Mandate: {txn.mandate_id}")
    if txn.bank_reference:
        click.echo(f"  Bank reference: {txn.bank_reference}")
    click.echo(f"  Import file: {txn.import_file_id}")

    allocations = service.get_allocations(user, transaction_id)
    if allocations:
        click.echo("  Allocations:")
        for a in allocations:
            notes = f" ({a.notes})" if a.notes else ""
            click.echo(
                f"    {a.target_type.value} {a.target_id}: {a.amount_allocated:,.2f} [{a.created_by.value}]{notes}"
            )


def register_commands(cli: click.Group) -> None:
    """Register inbox commands with main CLI."""
    cli.add_command(inbox_group, name="inbox")
