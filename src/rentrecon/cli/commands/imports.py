"""Import history commands."""

import click
from rentrecon.cli.error_handling import handle_domain_error
from rentrecon.domain.bank_import import DEFAULT_RETENTION_DAYS, BankImportService
from rentrecon.domain.entities import RollbackStatus
from rentrecon.domain.errors import DomainError


@click.group()
def imports_group():
    """Review and roll back past imports."""
    pass


@imports_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Show all imports, not only recent ones")
@click.option("--days", type=int, default=DEFAULT_RETENTION_DAYS, show_default=True, help="Window for recent imports")
@click.pass_context
def list_imports(ctx, show_all: bool, days: int):
    """List imported bank files, newest first."""
    db = ctx.obj["db"]
    service = BankImportService(db)
    user = ctx.obj["user"]

    files = service.list_import_files(user) if show_all else service.list_recent_import_files(user, days=days)
    if not files:
        click.echo("No imports found.")
        return

    click.echo(
        f"\n{'ID':<6} {'Uploaded':<20} {'File':<30} {'Type':<8} {'Status':<12} "
        f"{'Rows':>5} {'New':>5} {'Dup':>5} {'Skip':>5}  Rollback"
    )
    click.echo("-" * 120)
    for f in files:
        available, reason = service.rollback_availability(user, f.id)
        rollback = "available" if available else reason or "-"
        click.echo(
            f"{f.id:<6} {f.uploaded_at:%Y-%m-%d %H:%M}     {f.filename[:30]:<30} {f.source_type.value:<8} "
            f"{f.status.value:<12} {f.total_rows:>5} {f.imported_rows:>5} {f.duplicate_rows:>5} "
            f"{f.skipped_rows:>5}  {rollback}"
        )
        if f.error_message:
            click.echo(f"       Error: {f.error_message}")


@imports_group.command("rollback")
@click.argument("import_file_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def rollback_import(ctx, import_file_id: int, yes: bool):
    """Undo an import.

    Deletes every transaction of the import and removes the allocations made
    on them; rent payments, income entries and expenses are recalculated.
    """
    db = ctx.obj["db"]
    service = BankImportService(db)
    user = ctx.obj["user"]

    try:
        import_file = service.get_import_file(user, import_file_id)
        if not yes and not click.confirm(
            f"Roll back import {import_file_id} ({import_file.filename}, "
            f"{import_file.imported_rows} transactions)? This cannot be undone"
        ):
            click.echo("Rollback cancelled.")
            return
        result = service.rollback_import(user, import_file_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if result.status is not RollbackStatus.SUCCESS:
        # Informational outcomes, not failures
        click.echo(result.message)
        return

    click.echo(f"Rolled back import {import_file_id}:")
    click.echo(f"  Deleted transactions: {result.deleted_transactions}")
    click.echo(f"  Removed allocations: {result.deleted_allocations}")
    click.echo(f"  Recalculated obligations: {result.recalced_obligations}")


@imports_group.command("expire")
@click.option(
    "--retention-days",
    type=int,
    default=DEFAULT_RETENTION_DAYS,
    show_default=True,
    help="Keep uploads younger than this many days",
)
@click.pass_context
def expire_imports(ctx, retention_days: int):
    """Drop stored uploads past the retention window."""
    db = ctx.obj["db"]
    service = BankImportService(db)

    expired = service.expire_artifacts(ctx.obj["user"], retention_days=retention_days)
    click.echo(f"Expired {expired} import(s)")


def register_commands(cli: click.Group) -> None:
    """Register import history commands with main CLI."""
    cli.add_command(imports_group, name="imports")
