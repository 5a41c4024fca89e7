"""Tests for the CAMT.053 statement parser."""

import pytest
from datetime import date
from decimal import Decimal

from rentrecon.domain.entities import Direction
from rentrecon.domain.errors import FormatError
from rentrecon.parsers.camt053 import Camt053Parser


@pytest.fixture
def statement(fixtures_dir):
    parser = Camt053Parser()
    transactions = parser.parse((fixtures_dir / "camt053_statement.xml").read_bytes())
    return parser, transactions


def test_parses_all_entries_and_splits_batches(statement):
    parser, transactions = statement

    assert len(transactions) == 4
    assert parser.skipped_count == 1


def test_single_credit_entry(statement):
    _, transactions = statement
    rent = transactions[0]

    assert rent.booking_date == date(2025, 3, 1)
    assert rent.value_date == date(2025, 3, 1)
    assert rent.amount == Decimal("950.00")
    assert rent.direction == Direction.CREDIT
    assert rent.currency == "EUR"
    assert rent.counterparty_name == "Max Mustermann"
    assert rent.counterparty_iban == "DE12500105170648489890"
    assert rent.usage_text == "Miete Maerz 2025 Whg 3"
    assert rent.end_to_end_id == "E2E-MIETE-0325"
    assert rent.bank_reference == "REF-0001"
    assert rent.raw_data == {"entry_index": 0, "detail_index": 0}


def test_batch_debit_uses_detail_amounts_and_creditors(statement):
    _, transactions = statement
    caretaker, insurance = transactions[1], transactions[2]

    assert caretaker.amount == Decimal("-200.00")
    assert caretaker.direction == Direction.DEBIT
    assert caretaker.counterparty_name == "Hausmeister GmbH"
    assert caretaker.counterparty_iban == "DE44500105175407324931"
    assert caretaker.bank_reference == "REF-0002-A"
    assert caretaker.end_to_end_id == "E2E-HM-0325"

    assert insurance.amount == Decimal("-100.00")
    assert insurance.counterparty_name == "Versicherung AG"
    assert insurance.end_to_end_id is None
    assert insurance.mandate_id == "MANDATE-77"
    # Falls back to the entry reference
    assert insurance.bank_reference == "REF-0002"


def test_entry_without_details_or_indicator(statement):
    _, transactions = statement
    credit = transactions[3]

    assert credit.direction == Direction.CREDIT
    assert credit.amount == Decimal("50.00")
    assert credit.booking_date == date(2025, 3, 5)
    assert credit.usage_text == "Gutschrift Nebenkosten"
    assert credit.raw_data == {"entry_index": 2}


def test_accepts_text_input_and_other_namespace_versions():
    content = """<?xml version="1.0" encoding="UTF-8"?>
<Document xmlns="urn:iso:std:iso:20022:tech:xsd:camt.053.001.08">
  <BkToCstmrStmt><Stmt><Ntry>
    <Amt Ccy="CHF">12.5</Amt><CdtDbtInd>DBIT</CdtDbtInd>
    <BookgDt><Dt>2025-01-31</Dt></BookgDt>
  </Ntry></Stmt></BkToCstmrStmt>
</Document>"""

    transactions = Camt053Parser().parse(content)

    assert len(transactions) == 1
    assert transactions[0].amount == Decimal("-12.5")
    assert transactions[0].currency == "CHF"


def test_malformed_xml_raises_format_error():
    with pytest.raises(FormatError) as excinfo:
        Camt053Parser().parse(b"<Document><BkToCstmrStmt>")

    assert "Invalid XML" in str(excinfo.value)


def test_rejects_non_statement_document():
    with pytest.raises(FormatError):
        Camt053Parser().parse(b"<Document><CstmrCdtTrfInitn/></Document>")


def test_rejects_statement_without_entries():
    with pytest.raises(FormatError) as excinfo:
        Camt053Parser().parse(b"<Document><BkToCstmrStmt><Stmt/></BkToCstmrStmt></Document>")

    assert "no Ntry" in str(excinfo.value)
