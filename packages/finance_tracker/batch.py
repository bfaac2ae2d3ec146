"""Batch import orchestration and bulk auto-categorization.

Rows are persisted strictly in arrival order so a later row's duplicate check
sees every earlier insert of the same batch. Each row runs inside its own
SAVEPOINT: a storage error on one row rolls back that row only, is logged,
and the row counts as neither added nor duplicate. Categorization of a new
row runs in a nested SAVEPOINT of its own, so a failed assignment leaves the
inserted transaction in place (still counted as added) and uncategorized.

The session is supplied by the caller and is never committed here.
"""

from __future__ import annotations

from collections.abc import Iterable

from db.models.finance import Transaction, TransactionCategory
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .duplicates import find_duplicate
from .logging_setup import get_logger
from .models import AutoCategorizeResult, ImportResult, NormalizedTransaction
from .patterns import apply_auto_category, load_patterns
from .persistence import insert_transaction

logger = get_logger("finance_tracker.batch")


def _categorize_new_row(session: Session, transaction_id: int, description: str, patterns) -> None:
    try:
        with session.begin_nested():
            apply_auto_category(session, transaction_id, description, patterns)
    except (SQLAlchemyError, ValueError):
        logger.exception("Failed to auto-categorize transaction %s", transaction_id)


def import_transactions(
    session: Session,
    transactions: Iterable[NormalizedTransaction],
    *,
    auto_apply_categories: bool = True,
) -> ImportResult:
    """Persist ``transactions`` in order and report added/duplicate counts.

    ``added + duplicates`` is less than the number of rows when some rows
    failed to persist; that gap is reported as is.
    """

    patterns = load_patterns(session) if auto_apply_categories else []
    added = 0
    duplicates = 0
    failed = 0

    for position, tx in enumerate(transactions):
        try:
            with session.begin_nested():
                if find_duplicate(session, tx) is not None:
                    duplicates += 1
                    continue
                transaction_id = insert_transaction(session, tx)
        except SQLAlchemyError:
            failed += 1
            logger.exception(
                "Failed to import row %d (%s, %s, %r)",
                position,
                tx.account_number,
                tx.transaction_date,
                tx.description1,
            )
            continue

        if auto_apply_categories and patterns:
            _categorize_new_row(session, transaction_id, tx.description1, patterns)
        added += 1

    logger.info(
        "Import finished: %d added, %d duplicates, %d failed", added, duplicates, failed
    )
    return ImportResult(added=added, duplicates=duplicates)


def auto_categorize_uncategorized(session: Session) -> AutoCategorizeResult:
    """Run the pattern matcher over every stored transaction without a category.

    Only patterns that carry a category id take part. Transactions are visited
    newest first; failures are logged per transaction and skipped.
    """

    patterns = load_patterns(session, with_category_only=True)
    assigned = select(TransactionCategory.transaction_id)
    stmt = (
        select(Transaction.id, Transaction.description1)
        .where(Transaction.id.not_in(assigned))
        .where(Transaction.description1.is_not(None))
        .where(Transaction.description1 != "")
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
    )
    candidates = session.execute(stmt).all()

    categorized = 0
    for transaction_id, description in candidates:
        try:
            with session.begin_nested():
                if apply_auto_category(session, transaction_id, description, patterns):
                    categorized += 1
        except (SQLAlchemyError, ValueError):
            logger.exception("Failed to auto-categorize transaction %s", transaction_id)

    logger.info(
        "Auto-categorization finished: %d of %d transactions categorized",
        categorized,
        len(candidates),
    )
    return AutoCategorizeResult(categorized=categorized, total=len(candidates))


__all__ = ["auto_categorize_uncategorized", "import_transactions"]
