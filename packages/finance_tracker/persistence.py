"""Write and query helpers for stored transactions.

Functions here take a live SQLAlchemy ``Session`` and never commit; the
caller owns the transaction scope (see ``db.client.session_scope``).
"""

from __future__ import annotations

from typing import Any

from db.models.finance import Transaction
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .models import NormalizedTransaction


def transaction_row(tx: NormalizedTransaction) -> dict[str, Any]:
    """Column values for a new ``transactions`` row.

    Empty secondary descriptions are stored as ``NULL``; grouping status is
    left unset until a category is assigned.
    """

    return {
        "account_number": tx.account_number,
        "transaction_date": tx.transaction_date,
        "description1": tx.description1,
        "description2": tx.description2 or None,
        "description3": tx.description3 or None,
        "debit_amount": tx.debit_amount,
        "credit_amount": tx.credit_amount,
        "balance": tx.balance,
        "currency": tx.currency,
        "transaction_type": tx.transaction_type,
        "local_currency_amount": tx.local_currency_amount,
        "local_currency": tx.local_currency,
        "grouping_status": None,
    }


def insert_transaction(session: Session, tx: NormalizedTransaction) -> int:
    """Insert ``tx`` and return the generated id (flushes, does not commit)."""

    row = Transaction(**transaction_row(tx))
    session.add(row)
    session.flush()
    return row.id


def search_transactions(
    session: Session,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    search_text: str | None = None,
    transaction_type: str | None = None,
) -> list[Transaction]:
    """Filter stored transactions, newest first.

    Dates compare as ``YYYY-MM-DD`` strings (inclusive bounds). ``search_text``
    is matched with ``LIKE`` against all three description columns.
    """

    stmt = select(Transaction)
    if start_date:
        stmt = stmt.where(Transaction.transaction_date >= start_date)
    if end_date:
        stmt = stmt.where(Transaction.transaction_date <= end_date)
    if search_text:
        like = f"%{search_text}%"
        stmt = stmt.where(
            or_(
                Transaction.description1.like(like),
                Transaction.description2.like(like),
                Transaction.description3.like(like),
            )
        )
    if transaction_type:
        stmt = stmt.where(Transaction.transaction_type == transaction_type)
    stmt = stmt.order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
    return list(session.execute(stmt).scalars())


__all__ = ["insert_transaction", "search_transactions", "transaction_row"]
