# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from db.models.finance import SimilarityPattern, Transaction, TransactionCategory  # noqa: E402
from pydantic import ValidationError  # noqa: E402
from sqlalchemy import select  # noqa: E402

from finance_tracker.models import PatternSpec  # noqa: E402
from finance_tracker.patterns import (  # noqa: E402
    apply_auto_category,
    create_pattern,
    list_patterns,
    pattern_matches,
    select_best_pattern,
)
from finance_tracker.persistence import insert_transaction  # noqa: E402
from tests.helpers.db import add_pattern, category_id, make_tx  # noqa: E402


@pytest.mark.parametrize(
    "pattern_type, value, description, expected",
    [
        ("exact", "tesco", "TESCO", True),
        ("exact", "tesco", "TESCO STORES", False),
        ("contains", "store", "Tesco Stores 123", True),
        ("contains", "aldi", "Tesco Stores", False),
        ("starts_with", "TESCO", "tesco stores", True),
        ("starts_with", "stores", "tesco stores", False),
        ("regex", r"^uber\s*\*?trip", "UBER *TRIP HELP", True),
        ("regex", r"\d{4}$", "CARD 12", False),
        ("merchant", "netflix", "NETFLIX.COM", True),
        ("description", "gym", "CITY GYM MEMBERSHIP", True),
        ("fuzzy", "tesco", "TESCO", False),
    ],
)
def test_pattern_type_semantics(pattern_type: str, value: str, description: str, expected: bool) -> None:
    assert pattern_matches(pattern_type, value, description) is expected


def test_invalid_regex_never_matches() -> None:
    assert pattern_matches("regex", "([unclosed", "([unclosed") is False


def test_empty_description_never_matches() -> None:
    assert pattern_matches("contains", "x", "") is False


def _pattern(pid: int, value: str, category: int | None, score: float | None) -> SimilarityPattern:
    return SimilarityPattern(
        id=pid, pattern_type="contains", pattern_value=value, category_id=category, confidence_score=score
    )


def test_highest_confidence_wins_not_first_registered() -> None:
    patterns = [_pattern(1, "GROCERY", 1, 0.5), _pattern(2, "GROCERY STORE", 2, 0.9)]

    best = select_best_pattern("GROCERY STORE PURCHASE", patterns)

    assert best.category_id == 2


def test_equal_confidence_keeps_first_in_load_order() -> None:
    patterns = [_pattern(1, "SHOP", 1, 0.7), _pattern(2, "SHOP", 2, 0.7)]
    assert select_best_pattern("SHOP", patterns).id == 1


def test_missing_confidence_counts_as_full_confidence() -> None:
    patterns = [_pattern(1, "SHOP", 1, 0.99), _pattern(2, "SHOP", 2, None)]
    assert select_best_pattern("SHOP", patterns).id == 2


def test_no_match_returns_none() -> None:
    assert select_best_pattern("RENT", [_pattern(1, "SHOP", 1, 1.0)]) is None


# ---- DB-backed ---------------------------------------------------------------


def test_apply_auto_category_links_and_counts_usage(session) -> None:
    pattern = add_pattern(session, "GROCERY", "Grocery", confidence=0.8)
    tx_id = insert_transaction(session, make_tx("GROCERY STORE"))

    winner = apply_auto_category(session, tx_id, "GROCERY STORE")

    assert winner.id == pattern.id
    link = session.execute(
        select(TransactionCategory).where(TransactionCategory.transaction_id == tx_id)
    ).scalar_one()
    assert link.category_id == category_id(session, "Grocery")
    assert link.parent_category_id == category_id(session, "Expenditures")
    tx = session.get(Transaction, tx_id)
    assert tx.grouping_status == "auto"
    assert tx.category_id == link.category_id
    session.refresh(pattern)
    assert pattern.usage_count == 1


def test_winner_without_category_leaves_transaction_untouched(session) -> None:
    add_pattern(session, "GROCERY", None, confidence=1.0)
    add_pattern(session, "GROCERY", "Grocery", confidence=0.4)
    tx_id = insert_transaction(session, make_tx("GROCERY STORE"))

    assert apply_auto_category(session, tx_id, "GROCERY STORE") is None
    assert session.get(Transaction, tx_id).grouping_status is None


def test_create_pattern_validates_and_derives_parent(session) -> None:
    grocery = category_id(session, "Grocery")

    pattern = create_pattern(
        session, {"pattern_type": "Contains", "pattern_value": "  LIDL ", "category_id": grocery}
    )

    assert pattern.pattern_type == "contains"
    assert pattern.pattern_value == "LIDL"
    assert pattern.parent_category_id == category_id(session, "Expenditures")
    assert pattern.confidence_score == 1.0
    assert pattern.usage_count == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"pattern_type": "fuzzy", "pattern_value": "x", "category_id": 1},
        {"pattern_type": "contains", "pattern_value": "   ", "category_id": 1},
        {"pattern_type": "contains", "pattern_value": "x", "category_id": 1, "confidence_score": 1.5},
        {"pattern_type": "contains", "pattern_value": "x"},
    ],
)
def test_pattern_spec_rejects_bad_input(payload) -> None:
    with pytest.raises(ValidationError):
        PatternSpec.model_validate(payload)


def test_create_pattern_rejects_unknown_category(session) -> None:
    spec = PatternSpec(pattern_type="contains", pattern_value="x", category_id=9999)
    with pytest.raises(ValueError, match="does not exist"):
        create_pattern(session, spec)


def test_list_patterns_orders_by_confidence_then_usage(session) -> None:
    low = add_pattern(session, "A", "Grocery", confidence=0.2)
    high = add_pattern(session, "B", "Travel", confidence=0.9)
    mid_used = add_pattern(session, "C", "Travel", confidence=0.5)
    mid_unused = add_pattern(session, "D", "Travel", confidence=0.5)
    mid_used.usage_count = 3
    session.flush()

    assert [p.id for p in list_patterns(session)] == [high.id, mid_used.id, mid_unused.id, low.id]
