"""Category taxonomy: seeding, lookup and assignment to transactions.

The taxonomy is two levels deep by convention (parents without a parent of
their own, children pointing at one parent). A transaction carries at most
one assignment in ``transaction_categories``; the assignment also records
the parent of the assigned category so reports can group without a join.
"""

from __future__ import annotations

from db.client import get_engine, session_scope
from db.models.finance import Base, Category, Transaction, TransactionCategory
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import GROUPING_MANUAL, GROUPING_STATUSES

logger = get_logger("finance_tracker.categories")

# (name, description, children); children are (name, description).
DEFAULT_TAXONOMY: tuple[tuple[str, str, tuple[tuple[str, str], ...]], ...] = (
    ("Earnings", "Income from salary, business and other sources", ()),
    (
        "Expenditures",
        "Money spent on goods and services",
        (
            ("Grocery", "Food and household supplies"),
            ("Entertainment", "Movies, events, dining out and leisure"),
            ("Travel", "Transport, flights and accommodation"),
            ("Utilities", "Electricity, water, internet and phone bills"),
        ),
    ),
    (
        "Savings",
        "Money set aside or invested",
        (
            ("Fixed Deposits", "Term deposits with a fixed maturity"),
            ("Recurring Deposits", "Regular monthly deposits"),
            ("eToro", "Investments held with eToro"),
            ("Trading 121", "Investments held with Trading 121"),
        ),
    ),
)


def seed_initial_categories(session: Session) -> int:
    """Insert :data:`DEFAULT_TAXONOMY` when ``categories`` is empty.

    Returns the number of categories inserted (0 when already populated).
    """

    existing = session.execute(select(func.count()).select_from(Category)).scalar_one()
    if existing:
        return 0

    inserted = 0
    for parent_name, parent_desc, children in DEFAULT_TAXONOMY:
        parent = Category(name=parent_name, description=parent_desc)
        session.add(parent)
        session.flush()
        inserted += 1
        for child_name, child_desc in children:
            session.add(Category(name=child_name, description=child_desc, parent_id=parent.id))
            inserted += 1
    session.flush()
    logger.info("Seeded %d default categories", inserted)
    return inserted


def initialize_database(*, database_url: str | None = None) -> int:
    """Create missing tables and seed the default taxonomy on an empty store."""

    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(engine)
    with session_scope(database_url=database_url) as session:
        return seed_initial_categories(session)


def list_categories(session: Session) -> list[Category]:
    """Parents first, then children, each group by name."""

    stmt = select(Category).order_by(
        Category.parent_id.is_not(None), Category.parent_id, Category.name
    )
    return list(session.execute(stmt).scalars())


def get_category_by_name(session: Session, name: str) -> Category | None:
    stmt = select(Category).where(func.lower(Category.name) == name.strip().lower())
    return session.execute(stmt).scalars().first()


def assign_category(
    session: Session,
    transaction_id: int,
    category_id: int,
    *,
    grouping_status: str = GROUPING_MANUAL,
    parent_category_id: int | None = None,
    replace: bool = True,
) -> TransactionCategory:
    """Link a transaction to a category and record how it was chosen.

    With ``replace`` the previous assignment (if any) is removed first; without
    it an existing assignment makes the flush fail with ``IntegrityError``.
    ``parent_category_id`` defaults to the category's own parent. Raises
    ``ValueError`` for unknown ids or grouping status. Flushes, never commits.
    """

    if grouping_status not in GROUPING_STATUSES:
        raise ValueError(f"unknown grouping status: {grouping_status!r}")
    tx = session.get(Transaction, transaction_id)
    if tx is None:
        raise ValueError(f"transaction {transaction_id} does not exist")
    category = session.get(Category, category_id)
    if category is None:
        raise ValueError(f"category {category_id} does not exist")

    if replace:
        session.execute(
            delete(TransactionCategory).where(TransactionCategory.transaction_id == transaction_id)
        )

    link = TransactionCategory(
        transaction_id=transaction_id,
        category_id=category_id,
        parent_category_id=(
            parent_category_id if parent_category_id is not None else category.parent_id
        ),
    )
    session.add(link)
    tx.grouping_status = grouping_status
    tx.category_id = category_id
    session.flush()
    return link


__all__ = [
    "DEFAULT_TAXONOMY",
    "assign_category",
    "get_category_by_name",
    "initialize_database",
    "list_categories",
    "seed_initial_categories",
]
