"""Importer for Revolute CSV exports.

Revolute reports one signed ``Amount`` per row, which is split into a debit
(negative, stored as its absolute value) or a credit (kept as exported). The
completion date is the transaction date; the start date is kept in
``description3``.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..dates import normalize_date
from ..models import NormalizedTransaction
from .base import CsvImporter, first_present, split_signed_amount

# All four must be present for a header to count as Revolute's.
_HEADER_COLUMNS = ("Type", "Product", "Started Date", "Completed Date")


class RevoluteImporter(CsvImporter):
    name = "Revolute"
    code = "revolute-importer"
    description = "Imports transactions from Revolute CSV exports"
    header_fingerprints = _HEADER_COLUMNS
    file_name_markers = ("revolute",)

    def matches_header(self, header_text: str) -> bool:
        # "Type" alone is far too common to identify the bank.
        return all(col in header_text for col in self.header_fingerprints)

    def is_valid(self, tx: NormalizedTransaction) -> bool:
        # The account number falls back to a constant, so it proves nothing.
        return bool(tx.description1 or tx.transaction_date)

    def map_row(self, row: Mapping[str, str]) -> NormalizedTransaction:
        amount = first_present(row, ("Amount",)) or ""
        transaction_type = first_present(row, ("Type",)) or ""
        state = first_present(row, ("State",)) or ""
        debit, credit = split_signed_amount(amount)
        return NormalizedTransaction(
            account_number=first_present(row, ("Product",)) or "Revolute",
            transaction_date=normalize_date(first_present(row, ("Completed Date",)) or ""),
            description1=first_present(row, ("Description",)) or "",
            description2=f"{transaction_type} - {state}",
            description3=normalize_date(first_present(row, ("Started Date",)) or ""),
            debit_amount=debit,
            credit_amount=credit,
            balance=first_present(row, ("Balance",)) or "",
            currency=first_present(row, ("Currency",)) or "EUR",
            transaction_type=transaction_type,
            local_currency_amount=amount or None,
            local_currency=first_present(row, ("Currency",)),
        )


__all__ = ["RevoluteImporter"]
