"""Allocation commands."""

from decimal import Decimal

import click
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.allocation import AllocationService
from rentrecon.domain.entities import AllocationRequest, AllocationTargetType
from rentrecon.domain.errors import DomainError, NothingToUndoError
from rentrecon.utils.amount_parser import parse_amount


def parse_target(ctx, param, values: tuple[str, ...]) -> list[tuple[int, Decimal]]:
    """Parse repeated ID:AMOUNT option values."""
    targets = []
    for value in values:
        target_id, sep, amount = value.partition(":")
        if not sep:
            raise click.BadParameter(f"'{value}' is not in ID:AMOUNT form", ctx=ctx, param=param)
        try:
            targets.append((int(target_id), parse_amount(amount)))
        except ValueError as e:
            raise click.BadParameter(f"'{value}': {e}", ctx=ctx, param=param)
    return targets


@click.command("allocate")
@click.argument("transaction_id", type=int)
@click.option("--rent", multiple=True, callback=parse_target, help="Rent payment as ID:AMOUNT (repeatable)")
@click.option("--income", multiple=True, callback=parse_target, help="Income entry as ID:AMOUNT (repeatable)")
@click.option("--expense", multiple=True, callback=parse_target, help="Expense as ID:AMOUNT (repeatable)")
@click.option("--tenant", type=int, help="Spread the payment over this tenant's open rent, oldest first")
@click.option("--notes", help="Notes stored with each allocation")
@click.pass_context
def allocate(ctx, transaction_id: int, rent, income, expense, tenant: int | None, notes: str | None):
    """Allocate a bank transaction to rent payments, income entries or expenses.

    Examples:
        rentrecon allocate 12 --rent 3:950
        rentrecon allocate 12 --rent 3:800 --income 7:150
        rentrecon allocate 12 --tenant 4
    """
    db = ctx.obj["db"]
    service = AllocationService(db)
    user = ctx.obj["user"]

    requests = [
        AllocationRequest(target_type, target_id, amount, notes)
        for target_type, targets in (
            (AllocationTargetType.RENT_PAYMENT, rent),
            (AllocationTargetType.INCOME_ENTRY, income),
            (AllocationTargetType.EXPENSE, expense),
        )
        for target_id, amount in targets
    ]

    try:
        if tenant is not None:
            if requests:
                click.echo("Error: --tenant cannot be combined with explicit targets", err=True)
                ctx.exit(1)
            requests = service.plan_rent_distribution(user, transaction_id, tenant)
            if not requests:
                click.echo(f"Tenant {tenant} has no open rent payments.")
                return
        live = service.allocate(user, transaction_id, requests)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Allocated transaction {transaction_id}:")
    for a in live:
        click.echo(f"  {a.target_type.value} {a.target_id}: {a.amount_allocated:,.2f}")


@click.command("undo")
@click.argument("transaction_id", type=int)
@click.pass_context
def undo(ctx, transaction_id: int):
    """Remove all allocations of a transaction and reset it to UNMATCHED."""
    db = ctx.obj["db"]
    service = AllocationService(db)
    user = ctx.obj["user"]

    try:
        removed = service.undo_allocation(user, transaction_id)
    except NothingToUndoError as e:
        # Nothing to undo is not a failure
        click.echo(f"{e}, nothing to undo.")
        return
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Removed {len(removed)} allocation(s) from transaction {transaction_id}")


@click.command("ignore")
@click.argument("transaction_id", type=int)
@click.pass_context
def ignore(ctx, transaction_id: int):
    """Mark a transaction as not needing reconciliation."""
    db = ctx.obj["db"]
    service = AllocationService(db)

    try:
        txn = service.ignore(ctx.obj["user"], transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Transaction {transaction_id} is now {txn.status.value}")


@click.command("unignore")
@click.argument("transaction_id", type=int)
@click.pass_context
def unignore(ctx, transaction_id: int):
    """Return an ignored transaction to the inbox."""
    db = ctx.obj["db"]
    service = AllocationService(db)

    try:
        txn = service.unignore(ctx.obj["user"], transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Transaction {transaction_id} is now {txn.status.value}")


def register_commands(cli):
    """Register allocation commands with main CLI."""
    cli.add_command(allocate)
    cli.add_command(undo)
    cli.add_command(ignore)
    cli.add_command(unignore)
