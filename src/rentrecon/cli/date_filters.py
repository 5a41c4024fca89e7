"""Date range options for the inbox commands."""

from datetime import date

import click

from rentrecon.utils.date_parser import parse_filter_date, parse_month


def resolve_inbox_date_range(
    ctx,
    *,
    date_from: str | None,
    date_to: str | None,
    month: str | None,
) -> tuple[date | None, date | None]:
    """Turn --from/--to or --month into an inclusive date range.

    Either bound may be left open. Problems are reported on stderr and end
    the command with exit code 1.
    """
    if month and (date_from or date_to):
        click.echo("Error: --month cannot be combined with --from or --to.", err=True)
        ctx.exit(1)

    if month:
        try:
            return parse_month(month)
        except ValueError as e:
            click.echo(f"Error: Invalid month: {e}", err=True)
            ctx.exit(1)

    bounds = []
    for label, value in (("--from", date_from), ("--to", date_to)):
        if not value:
            bounds.append(None)
            continue
        try:
            bounds.append(parse_filter_date(value))
        except ValueError as e:
            click.echo(f"Error: Invalid {label} date: {e}", err=True)
            ctx.exit(1)

    start, end = bounds
    if start and end and start > end:
        click.echo(f"Error: --from date {start} is after --to date {end}.", err=True)
        ctx.exit(1)
    return start, end
