"""Importer for Allied Irish Banks (AIB) CSV exports.

AIB exports carry separate debit and credit columns; header spellings vary
between export tool versions (``Posted Account`` vs ``PostedAccount`` and so
on), so every column is looked up through an ordered list of spellings.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..dates import normalize_date
from ..models import NormalizedTransaction
from .base import CsvImporter, first_present

ACCOUNT = ("Posted Account", "PostedAccount", "Account")
DATE = ("Posted Transactions Date", "PostedTransactionsDate", "Date")
DESCRIPTION1 = ("Description1", "Description 1", "Desc1")
DESCRIPTION2 = ("Description2", "Description 2", "Desc2")
DESCRIPTION3 = ("Description3", "Description 3", "Desc3")
DEBIT = ("Debit Amount", "DebitAmount")
CREDIT = ("Credit Amount", "CreditAmount")
BALANCE = ("Balance",)
CURRENCY = ("Posted Currency", "PostedCurrency", "Currency")
TRANSACTION_TYPE = ("Transaction Type", "TransactionType", "Type")
LOCAL_AMOUNT = ("Local Currency Amount", "LocalCurrencyAmount")
LOCAL_CURRENCY = ("Local Currency", "LocalCurrency")


class AIBImporter(CsvImporter):
    name = "AIB Bank"
    code = "aib-importer"
    description = "Imports transactions from Allied Irish Bank CSV exports"
    header_fingerprints = ("Posted Account", "Posted Transactions Date", "Description1")
    file_name_markers = ("aib", "allied_irish_bank")

    def map_row(self, row: Mapping[str, str]) -> NormalizedTransaction:
        return NormalizedTransaction(
            account_number=first_present(row, ACCOUNT) or "",
            transaction_date=normalize_date(first_present(row, DATE) or ""),
            description1=first_present(row, DESCRIPTION1) or "",
            description2=first_present(row, DESCRIPTION2) or "",
            description3=first_present(row, DESCRIPTION3) or "",
            debit_amount=first_present(row, DEBIT),
            credit_amount=first_present(row, CREDIT),
            balance=first_present(row, BALANCE) or "",
            currency=first_present(row, CURRENCY) or "",
            transaction_type=first_present(row, TRANSACTION_TYPE) or "",
            local_currency_amount=first_present(row, LOCAL_AMOUNT),
            local_currency=first_present(row, LOCAL_CURRENCY),
        )


__all__ = ["AIBImporter"]
