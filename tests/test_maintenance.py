# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import select

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from db.models.finance import Transaction, TransactionCategory  # noqa: E402

from finance_tracker.batch import import_transactions  # noqa: E402
from finance_tracker.categories import assign_category  # noqa: E402
from finance_tracker.maintenance import (  # noqa: E402
    delete_dummy_transactions,
    delete_transactions_without_description,
    delete_uncategorized_transactions,
    standardize_stored_dates,
)
from finance_tracker.persistence import search_transactions  # noqa: E402
from tests.helpers.db import category_id, make_tx  # noqa: E402


def _descriptions(session) -> list[str | None]:
    stmt = select(Transaction.description1).order_by(Transaction.id)
    return list(session.execute(stmt).scalars())


def test_standardize_stored_dates_rewrites_legacy_values(session) -> None:
    import_transactions(
        session,
        [
            make_tx("A", transaction_date="25/12/2023"),
            make_tx("B", transaction_date="2024-01-05"),
            make_tx("C", transaction_date="31-01-2024"),
            make_tx("D", transaction_date="not a date"),
        ],
        auto_apply_categories=False,
    )

    assert standardize_stored_dates(session) == 2

    dates = session.execute(select(Transaction.transaction_date).order_by(Transaction.id)).scalars()
    assert list(dates) == ["2023-12-25", "2024-01-05", "2024-01-31", "not a date"]


def test_delete_dummy_transactions_checks_all_descriptions(session) -> None:
    import_transactions(
        session,
        [
            make_tx("Dummy row"),
            make_tx("Card payment", description3="test transaction"),
            make_tx("AUTO_CATEGORIZE_TEST payment"),
            make_tx("Groceries"),
        ],
        auto_apply_categories=False,
    )

    assert delete_dummy_transactions(session) == 2
    assert _descriptions(session) == ["AUTO_CATEGORIZE_TEST payment", "Groceries"]


def test_delete_transactions_without_description(session) -> None:
    import_transactions(
        session,
        [make_tx(""), make_tx("   ", transaction_date="2024-03-02"), make_tx("Kept")],
        auto_apply_categories=False,
    )

    assert delete_transactions_without_description(session) == 2
    assert _descriptions(session) == ["Kept"]


def test_delete_uncategorized_transactions_keeps_assigned(session) -> None:
    import_transactions(
        session, [make_tx("Assigned"), make_tx("Loose")], auto_apply_categories=False
    )
    assigned = session.execute(
        select(Transaction).where(Transaction.description1 == "Assigned")
    ).scalar_one()
    assign_category(session, assigned.id, category_id(session, "Grocery"))

    assert delete_uncategorized_transactions(session) == 1
    assert _descriptions(session) == ["Assigned"]
    assert session.execute(select(TransactionCategory)).scalars().all()


def test_search_transactions_filters_and_orders(session) -> None:
    import_transactions(
        session,
        [
            make_tx("Coffee", transaction_date="2024-01-10", transaction_type="Debit"),
            make_tx("Salary", transaction_date="2024-01-31", transaction_type="Credit"),
            make_tx("Coffee beans", transaction_date="2024-02-03", transaction_type="Debit"),
        ],
        auto_apply_categories=False,
    )

    assert [t.description1 for t in search_transactions(session)] == [
        "Coffee beans",
        "Salary",
        "Coffee",
    ]
    found = search_transactions(session, search_text="coffee", end_date="2024-01-31")
    assert [t.description1 for t in found] == ["Coffee"]
    credits = search_transactions(session, transaction_type="Credit", start_date="2024-01-01")
    assert [t.description1 for t in credits] == ["Salary"]
