"""Tests for the inbox date range options."""

from datetime import date

import click
import pytest

from rentrecon.cli.date_filters import resolve_inbox_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_open_range_without_options():
    assert resolve_inbox_date_range(_ctx(), date_from=None, date_to=None, month=None) == (None, None)


def test_from_and_to_accept_statement_formats():
    start, end = resolve_inbox_date_range(_ctx(), date_from="01.03.2025", date_to="2025-03-15", month=None)

    assert start == date(2025, 3, 1)
    assert end == date(2025, 3, 15)


def test_single_bound():
    assert resolve_inbox_date_range(_ctx(), date_from=None, date_to="15.03.2025", month=None) == (
        None,
        date(2025, 3, 15),
    )


def test_month_covers_whole_month():
    assert resolve_inbox_date_range(_ctx(), date_from=None, date_to=None, month="02.2025") == (
        date(2025, 2, 1),
        date(2025, 2, 28),
    )


@pytest.mark.parametrize(
    "options, message",
    [
        ({"date_from": "01.03.2025", "date_to": None, "month": "2025-03"}, "--month cannot be combined"),
        ({"date_from": "yesterday", "date_to": None, "month": None}, "Invalid --from date"),
        ({"date_from": None, "date_to": "32.03.2025", "month": None}, "Invalid --to date"),
        ({"date_from": None, "date_to": None, "month": "2025-13"}, "Invalid month"),
        ({"date_from": "31.03.2025", "date_to": "01.03.2025", "month": None}, "is after --to date"),
    ],
)
def test_invalid_options_exit(capsys, options, message):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_inbox_date_range(_ctx(), **options)

    assert excinfo.value.exit_code == 1
    assert message in capsys.readouterr().err
