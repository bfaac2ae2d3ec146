"""Duplicate detection against the persisted store.

A stored transaction is a duplicate of an incoming one when account number,
transaction date and primary description are all equal (exact,
case-sensitive string comparison as stored). Amounts are not part of the key.

The check is a point lookup per incoming row rather than a batch diff, so a
batch sees its own earlier inserts and can report added/duplicate per row.
"""

from __future__ import annotations

from db.models.finance import Transaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import NormalizedTransaction


def find_duplicate(session: Session, tx: NormalizedTransaction) -> Transaction | None:
    """Return an already stored transaction with the same key, if any."""

    stmt = (
        select(Transaction)
        .where(
            Transaction.account_number == tx.account_number,
            Transaction.transaction_date == tx.transaction_date,
            Transaction.description1 == tx.description1,
        )
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def is_duplicate(session: Session, tx: NormalizedTransaction) -> bool:
    return find_duplicate(session, tx) is not None


__all__ = ["find_duplicate", "is_duplicate"]
