"""Housekeeping operations over stored transactions.

Each function takes a live session, flushes its changes, and returns the
number of affected rows. Nothing here commits.
"""

from __future__ import annotations

from db.models.finance import Transaction, TransactionCategory
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from .dates import normalize_date
from .importers.base import TEST_MARKERS
from .logging_setup import get_logger

logger = get_logger("finance_tracker.maintenance")


def standardize_stored_dates(session: Session) -> int:
    """Re-normalize every stored ``transaction_date``; return rows changed."""

    rows = session.execute(select(Transaction.id, Transaction.transaction_date)).all()
    updated = 0
    for transaction_id, stored in rows:
        normalized = normalize_date(stored)
        if normalized and normalized != stored:
            session.execute(
                update(Transaction)
                .where(Transaction.id == transaction_id)
                .values(transaction_date=normalized)
            )
            updated += 1
    session.flush()
    logger.info("Standardized %d of %d transaction dates", updated, len(rows))
    return updated


def _delete_where(session: Session, *criteria) -> int:
    stmt = delete(Transaction).where(*criteria).execution_options(synchronize_session=False)
    result = session.execute(stmt)
    # Deleted rows may still sit in the identity map.
    session.expire_all()
    return result.rowcount or 0


def delete_dummy_transactions(session: Session) -> int:
    """Delete rows whose descriptions carry a synthetic test marker."""

    columns = (Transaction.description1, Transaction.description2, Transaction.description3)
    conditions = [
        func.upper(column).like(f"%{marker}%") for column in columns for marker in TEST_MARKERS
    ]
    deleted = _delete_where(session, or_(*conditions))
    logger.info("Deleted %d dummy/test transactions", deleted)
    return deleted


def delete_transactions_without_description(session: Session) -> int:
    deleted = _delete_where(
        session,
        or_(Transaction.description1.is_(None), func.trim(Transaction.description1) == ""),
    )
    logger.info("Deleted %d transactions without a description", deleted)
    return deleted


def delete_uncategorized_transactions(session: Session) -> int:
    assigned = select(TransactionCategory.transaction_id)
    deleted = _delete_where(session, Transaction.id.not_in(assigned))
    logger.info("Deleted %d uncategorized transactions", deleted)
    return deleted


__all__ = [
    "delete_dummy_transactions",
    "delete_transactions_without_description",
    "delete_uncategorized_transactions",
    "standardize_stored_dates",
]
