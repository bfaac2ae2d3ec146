"""Importer capability and the shared CSV importer base class.

An importer turns the raw bytes of one bank export into
:class:`~finance_tracker.models.NormalizedTransaction` records, independent
of storage. The required capability is :class:`TransactionImporter`;
``can_handle_file(header_text, file_name)`` is optional and only consulted by
registry auto-detection.

:class:`CsvImporter` implements the contract shared by the CSV variants:

- header names and values are trimmed; a UTF-8 BOM is tolerated;
- column lookup tries an ordered list of accepted header spellings and takes
  the first key present (:func:`first_present`);
- rows lacking account number, primary description and transaction date are
  dropped with a warning;
- rows whose primary description carries a synthetic test marker are dropped;
- the whole file is read before any row is mapped, so framing errors raise
  :class:`~finance_tracker.errors.ImportParseError` and no partial list is
  ever returned.
"""

from __future__ import annotations

import csv
import io
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Protocol, runtime_checkable

from ..errors import ImportParseError
from ..logging_setup import get_logger
from ..models import NormalizedTransaction

logger = get_logger("finance_tracker.importers")

# Literal markers of synthetic rows. Deliberately narrow: a payee that merely
# mentions "test" must still import.
TEST_MARKERS: tuple[str, ...] = ("DUMMY", "TEST TRANSACTION")


@runtime_checkable
class TransactionImporter(Protocol):
    """Required capability of every importer variant."""

    name: str
    code: str
    description: str
    supported_file_types: Sequence[str]

    def parse_file(self, data: bytes) -> list[NormalizedTransaction]: ...


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def first_present(row: Mapping[str, str], names: Sequence[str]) -> str | None:
    """Return the value of the first header in ``names`` present in ``row``.

    An empty value under the first present header yields ``None``; later
    spellings are not consulted once one is found.
    """

    for name in names:
        if name in row:
            return row[name] or None
    return None


def is_test_marker(description: str | None) -> bool:
    if not description:
        return False
    upper = description.upper()
    return any(marker in upper for marker in TEST_MARKERS)


def split_signed_amount(amount: str | None) -> tuple[str | None, str | None]:
    """Split one signed amount into ``(debit_amount, credit_amount)``.

    Negative values become a debit holding the absolute value; anything else
    numeric is a credit carrying the original text. Non-numeric input sets
    neither side.
    """

    if not amount:
        return None, None
    try:
        value = Decimal(amount.replace(",", ""))
    except InvalidOperation:
        return None, None
    if not value.is_finite():
        return None, None
    if value < 0:
        return format(abs(value), "f"), None
    return None, amount


def read_csv_rows(data: bytes, *, source: str = "CSV") -> list[dict[str, str]]:
    """Decode ``data`` and return every row as a trimmed ``dict``.

    Raises :class:`ImportParseError` when the bytes are not UTF-8 or the CSV
    framing is broken (e.g., stray quotes). An empty file yields ``[]``.
    """

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportParseError(f"{source}: file is not valid UTF-8 text") from exc

    reader = csv.DictReader(io.StringIO(text, newline=""), strict=True)
    rows: list[dict[str, str]] = []
    try:
        if reader.fieldnames is None:
            return rows
        reader.fieldnames = [h.strip() for h in reader.fieldnames]
        for raw in reader:
            # DictReader collects surplus cells under a None key; drop them.
            rows.append(
                {k: (v.strip() if v is not None else "") for k, v in raw.items() if k is not None}
            )
    except csv.Error as exc:
        raise ImportParseError(f"{source}: malformed CSV at line {reader.line_num}: {exc}") from exc
    return rows


# ---------------------------------------------------------------------------
# CSV importer base
# ---------------------------------------------------------------------------


class CsvImporter(ABC):
    """Template for CSV bank exports; subclasses map one row at a time."""

    name: str = ""
    code: str = ""
    description: str = ""
    supported_file_types: Sequence[str] = (".csv",)

    # Auto-detection signals. Either one matching is sufficient.
    header_fingerprints: Sequence[str] = ()
    file_name_markers: Sequence[str] = ()

    @abstractmethod
    def map_row(self, row: Mapping[str, str]) -> NormalizedTransaction:
        """Map one trimmed CSV row to a normalized transaction."""

    def is_valid(self, tx: NormalizedTransaction) -> bool:
        return bool(tx.account_number or tx.description1 or tx.transaction_date)

    def parse_rows(self, rows: Iterable[Mapping[str, str]]) -> list[NormalizedTransaction]:
        transactions: list[NormalizedTransaction] = []
        for row in rows:
            tx = self.map_row(row)
            if not self.is_valid(tx):
                logger.warning("%s: skipping invalid transaction row: %s", self.name, dict(row))
                continue
            if is_test_marker(tx.description1):
                logger.warning(
                    "%s: skipping dummy/test transaction: %s", self.name, tx.description1
                )
                continue
            transactions.append(tx)
        return transactions

    def parse_file(self, data: bytes) -> list[NormalizedTransaction]:
        rows = read_csv_rows(data, source=self.name)
        transactions = self.parse_rows(rows)
        logger.info("%s: parsed %d transactions", self.name, len(transactions))
        return transactions

    def matches_header(self, header_text: str) -> bool:
        return any(fp in header_text for fp in self.header_fingerprints)

    def can_handle_file(self, header_text: str, file_name: str) -> bool:
        lowered = (file_name or "").lower()
        by_name = any(marker in lowered for marker in self.file_name_markers)
        return self.matches_header(header_text or "") or by_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r})"


__all__ = [
    "CsvImporter",
    "TEST_MARKERS",
    "TransactionImporter",
    "first_present",
    "is_test_marker",
    "read_csv_rows",
    "split_signed_amount",
]
