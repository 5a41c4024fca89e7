"""CAMT.053 (ISO 20022 bank-to-customer statement) parser.

Handles:
- Any camt.053.001.xx namespace (namespaces are stripped before lookup)
- Single entries (one Ntry, no TxDtls)
- Batch entries (one Ntry with several TxDtls, split into one transaction each)
"""

import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from rentrecon.domain.entities import Direction
from rentrecon.domain.errors import FormatError
from rentrecon.parsers.base import DEFAULT_CURRENCY, BankParser, RawTransaction, clean_iban
from rentrecon.utils.date_parser import parse_bank_date

NOT_PROVIDED = "NOTPROVIDED"


def _strip_namespaces(root: ET.Element) -> None:
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


def _text(parent: Optional[ET.Element], path: str) -> Optional[str]:
    if parent is None:
        return None
    el = parent.find(path)
    if el is not None and el.text and el.text.strip():
        return el.text.strip()
    return None


def _amount(el: Optional[ET.Element]) -> Optional[Decimal]:
    if el is None or not el.text:
        return None
    try:
        return abs(Decimal(el.text.strip()))
    except InvalidOperation:
        return None


def _signed(magnitude: Decimal, direction: Direction) -> Decimal:
    return -magnitude if direction is Direction.DEBIT else magnitude


class Camt053Parser(BankParser):
    """Parse CAMT.053 XML statements."""

    def parse(self, content: Union[str, bytes]) -> list[RawTransaction]:
        """Parse a CAMT.053 document.

        Raises:
            FormatError: If the XML is malformed or not a CAMT.053 statement
        """
        self.skipped_count = 0
        root = self._load(content)

        transactions: list[RawTransaction] = []
        for entry_index, entry in enumerate(root.iter("Ntry")):
            parsed = self._parse_entry(entry, entry_index)
            if parsed is None:
                self.skipped_count += 1
                continue
            transactions.extend(parsed)
        return transactions

    def _load(self, content: Union[str, bytes]) -> ET.Element:
        if isinstance(content, str):
            # ET rejects str input that still carries an encoding declaration
            content = content.lstrip("\ufeff").encode("utf-8")
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise FormatError(f"Invalid XML: {e}") from e

        _strip_namespaces(root)
        if root.tag != "Document" or root.find("BkToCstmrStmt") is None:
            raise FormatError("Not a CAMT.053 statement: expected Document/BkToCstmrStmt")
        if root.find(".//Ntry") is None:
            raise FormatError("Not a CAMT.053 statement: no Ntry elements found")
        return root

    def _parse_entry(self, entry: ET.Element, entry_index: int) -> Optional[list[RawTransaction]]:
        """Turn one Ntry into one or more RawTransactions, or None to skip it."""
        indicator = _text(entry, "CdtDbtInd")
        direction = Direction.DEBIT if indicator == "DBIT" else Direction.CREDIT

        amount_el = entry.find("Amt")
        magnitude = _amount(amount_el)
        if magnitude is None:
            return None
        currency = (amount_el.get("Ccy") if amount_el is not None else None) or DEFAULT_CURRENCY

        booking_date = self._entry_date(entry, "BookgDt")
        if booking_date is None:
            return None
        value_date = self._entry_date(entry, "ValDt")
        entry_ref = _text(entry, "AcctSvcrRef")

        details = entry.findall("NtryDtls/TxDtls")
        if not details:
            return [
                RawTransaction(
                    booking_date=booking_date,
                    value_date=value_date,
                    amount=_signed(magnitude, direction),
                    currency=currency,
                    direction=direction,
                    usage_text=self._usage_text(entry.find("NtryDtls")) or _text(entry, "AddtlNtryInf"),
                    bank_reference=entry_ref,
                    raw_data={"entry_index": entry_index},
                )
            ]

        transactions = []
        for detail_index, detail in enumerate(details):
            detail_magnitude = self._detail_amount(detail)
            if detail_magnitude is None:
                detail_magnitude = magnitude

            name, iban = self._counterparty(detail, direction)
            end_to_end_id = _text(detail, "Refs/EndToEndId")
            if end_to_end_id == NOT_PROVIDED:
                end_to_end_id = None

            transactions.append(
                RawTransaction(
                    booking_date=booking_date,
                    value_date=value_date,
                    amount=_signed(detail_magnitude, direction),
                    currency=currency,
                    direction=direction,
                    counterparty_name=name,
                    counterparty_iban=iban,
                    usage_text=self._usage_text(detail),
                    end_to_end_id=end_to_end_id,
                    mandate_id=_text(detail, ".//MndtId"),
                    bank_reference=_text(detail, "Refs/AcctSvcrRef") or entry_ref,
                    raw_data={"entry_index": entry_index, "detail_index": detail_index},
                )
            )
        return transactions

    @staticmethod
    def _entry_date(entry: ET.Element, tag: str):
        text = _text(entry, f"{tag}/Dt") or _text(entry, f"{tag}/DtTm") or _text(entry, tag)
        if text is None:
            return None
        # DtTm carries a time part: 2025-03-01T10:15:00+01:00
        return parse_bank_date(text[:10], "YYYY-MM-DD")

    @staticmethod
    def _detail_amount(detail: ET.Element) -> Optional[Decimal]:
        for path in ("Amt", "AmtDtls/TxAmt/Amt", "AmtDtls/InstdAmt/Amt"):
            magnitude = _amount(detail.find(path))
            if magnitude is not None:
                return magnitude
        return None

    @staticmethod
    def _counterparty(detail: ET.Element, direction: Direction) -> tuple[Optional[str], Optional[str]]:
        """Return (name, IBAN) of the party on the other side of the booking."""
        parties = detail.find("RltdPties")
        if parties is None:
            return None, None
        # Money came in from the debtor, or went out to the creditor
        party_tag, account_tag = ("Dbtr", "DbtrAcct") if direction is Direction.CREDIT else ("Cdtr", "CdtrAcct")
        name = _text(parties, f"{party_tag}/Nm") or _text(parties, f"{party_tag}//Nm")
        iban = clean_iban(_text(parties, f"{account_tag}//IBAN"))
        return name, iban

    @staticmethod
    def _usage_text(parent: Optional[ET.Element]) -> Optional[str]:
        if parent is None:
            return None
        parts = [el.text.strip() for el in parent.findall(".//RmtInf/Ustrd") if el.text and el.text.strip()]
        return " ".join(parts) or None
