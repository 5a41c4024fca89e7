"""Tenant suggestion commands."""

import click
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.allocation import AllocationService
from rentrecon.domain.errors import DomainError
from rentrecon.domain.inbox import InboxService
from rentrecon.domain.suggestion import SuggestionService


@click.group()
def suggest_group():
    """Suggest and confirm tenant matches for incoming payments."""
    pass


@suggest_group.command("run")
@click.pass_context
def run_suggestions(ctx):
    """Mark unmatched incoming payments with a likely tenant as SUGGESTED.

    Nothing is allocated until a suggestion is confirmed.
    """
    db = ctx.obj["db"]
    service = SuggestionService(db)

    promoted = service.run_suggestions(ctx.obj["user"])
    click.echo(f"Suggested tenants for {promoted} transaction(s)")


@suggest_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_suggestion(ctx, transaction_id: int):
    """Show the best tenant match for a transaction."""
    db = ctx.obj["db"]
    service = SuggestionService(db)
    user = ctx.obj["user"]

    try:
        txn = InboxService(db).get_transaction(user, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    suggestion = service.suggest_tenant(user, txn)
    if suggestion is None:
        click.echo(f"No tenant match for transaction {transaction_id}.")
        return
    click.echo(f"Tenant: {suggestion.tenant_name} (ID: {suggestion.tenant_id})")
    if suggestion.property_id is not None:
        click.echo(f"Property: {suggestion.property_id}")
    click.echo(f"Confidence: {suggestion.confidence:.2f}")
    click.echo(f"Reason: {suggestion.reason}")


@suggest_group.command("plan")
@click.argument("transaction_id", type=int)
@click.option("--tenant", type=int, required=True, help="Tenant whose open rent to settle")
@click.pass_context
def plan_distribution(ctx, transaction_id: int, tenant: int):
    """Preview how a payment would be spread over a tenant's open rent."""
    db = ctx.obj["db"]
    service = AllocationService(db)

    try:
        plan = service.plan_rent_distribution(ctx.obj["user"], transaction_id, tenant)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not plan:
        click.echo(f"Tenant {tenant} has no open rent payments.")
        return
    for request in plan:
        click.echo(f"  rent_payment {request.target_id}: {request.amount_allocated:,.2f}")


@suggest_group.command("confirm")
@click.argument("transaction_id", type=int)
@click.pass_context
def confirm_suggestion(ctx, transaction_id: int):
    """Accept a suggestion and allocate the payment to the tenant's open rent."""
    db = ctx.obj["db"]
    service = SuggestionService(db)

    try:
        live = service.confirm_suggestion(ctx.obj["user"], transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Confirmed suggestion for transaction {transaction_id}:")
    for a in live:
        click.echo(f"  {a.target_type.value} {a.target_id}: {a.amount_allocated:,.2f}")


def register_commands(cli: click.Group) -> None:
    """Register suggestion commands with main CLI."""
    cli.add_command(suggest_group, name="suggest")
