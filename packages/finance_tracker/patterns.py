"""Similarity patterns: matching, ranking and automatic categorization.

A similarity pattern maps a text criterion over a transaction's primary
description to a category. Supported types:

- ``exact``: case-insensitive equality with the whole description;
- ``contains``: case-insensitive substring;
- ``starts_with``: case-insensitive prefix;
- ``regex``: case-insensitive ``re.search``; invalid syntax never matches.

Older data uses ``merchant`` and ``description`` as types; both mean
``contains``. Any other type never matches.

When several patterns match, the highest ``confidence_score`` wins. Patterns
are loaded ordered by id and the ranking sort is stable, so equal scores
resolve to the lowest pattern id.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from db.models.finance import Category, SimilarityPattern
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .categories import assign_category
from .logging_setup import get_logger
from .models import GROUPING_AUTO, PatternSpec

logger = get_logger("finance_tracker.patterns")

PATTERN_TYPE_ALIASES: dict[str, str] = {"merchant": "contains", "description": "contains"}


def _canonical_type(pattern_type: str | None) -> str:
    kind = (pattern_type or "").strip().lower()
    return PATTERN_TYPE_ALIASES.get(kind, kind)


def pattern_matches(pattern_type: str | None, pattern_value: str | None, description: str) -> bool:
    if not description or not pattern_value:
        return False
    kind = _canonical_type(pattern_type)
    if kind == "regex":
        try:
            return re.search(pattern_value, description, re.IGNORECASE) is not None
        except re.error as exc:
            logger.error("Invalid regex pattern %r: %s", pattern_value, exc)
            return False

    text = description.lower()
    value = pattern_value.lower()
    if kind == "exact":
        return text == value
    if kind == "contains":
        return value in text
    if kind == "starts_with":
        return text.startswith(value)
    return False


def find_matching_patterns(
    description: str, patterns: Iterable[SimilarityPattern]
) -> list[SimilarityPattern]:
    """Patterns matching ``description``, in the order given."""

    return [p for p in patterns if pattern_matches(p.pattern_type, p.pattern_value, description)]


def _score(pattern: SimilarityPattern) -> float:
    return pattern.confidence_score if pattern.confidence_score is not None else 1.0


def rank_patterns(patterns: Iterable[SimilarityPattern]) -> list[SimilarityPattern]:
    return sorted(patterns, key=lambda p: -_score(p))


def select_best_pattern(
    description: str, patterns: Iterable[SimilarityPattern]
) -> SimilarityPattern | None:
    ranked = rank_patterns(find_matching_patterns(description, patterns))
    return ranked[0] if ranked else None


def load_patterns(session: Session, *, with_category_only: bool = False) -> list[SimilarityPattern]:
    stmt = select(SimilarityPattern).order_by(SimilarityPattern.id)
    if with_category_only:
        stmt = stmt.where(SimilarityPattern.category_id.is_not(None))
    return list(session.execute(stmt).scalars())


def apply_auto_category(
    session: Session,
    transaction_id: int,
    description: str | None,
    patterns: Iterable[SimilarityPattern] | None = None,
) -> SimilarityPattern | None:
    """Assign the best matching pattern's category to a transaction.

    Returns the winning pattern, or ``None`` when nothing matched or the
    winner carries no category id (the transaction is left untouched). On
    success the transaction is tagged ``auto`` and the pattern's usage count
    is incremented. An existing assignment is never replaced; the flush
    raises ``IntegrityError`` instead.
    """

    if not description:
        return None
    if patterns is None:
        patterns = load_patterns(session)
    best = select_best_pattern(description, patterns)
    if best is None or best.category_id is None:
        return None

    assign_category(
        session,
        transaction_id,
        best.category_id,
        grouping_status=GROUPING_AUTO,
        parent_category_id=best.parent_category_id,
        replace=False,
    )
    best.usage_count = (best.usage_count or 0) + 1
    best.updated_at = func.current_timestamp()
    session.flush()
    logger.debug(
        "Transaction %s auto-categorized as %s via pattern %s",
        transaction_id,
        best.category_id,
        best.id,
    )
    return best


def create_pattern(session: Session, spec: PatternSpec | Mapping[str, Any]) -> SimilarityPattern:
    """Validate and store a new pattern.

    When only ``category_id`` is given, the parent shortcut is taken from the
    category. Raises ``pydantic.ValidationError`` for malformed input and
    ``ValueError`` for unknown category ids.
    """

    if not isinstance(spec, PatternSpec):
        spec = PatternSpec.model_validate(spec)

    parent_id = spec.parent_category_id
    if spec.category_id is not None:
        category = session.get(Category, spec.category_id)
        if category is None:
            raise ValueError(f"category {spec.category_id} does not exist")
        if parent_id is None:
            parent_id = category.parent_id
    if parent_id is not None and session.get(Category, parent_id) is None:
        raise ValueError(f"category {parent_id} does not exist")

    pattern = SimilarityPattern(
        pattern_type=spec.pattern_type,
        pattern_value=spec.pattern_value,
        category_id=spec.category_id,
        parent_category_id=parent_id,
        confidence_score=spec.confidence_score,
        usage_count=0,
    )
    session.add(pattern)
    session.flush()
    logger.info(
        "Created %s pattern %r -> category %s",
        pattern.pattern_type,
        pattern.pattern_value,
        pattern.category_id,
    )
    return pattern


def list_patterns(session: Session) -> list[SimilarityPattern]:
    stmt = select(SimilarityPattern).order_by(
        SimilarityPattern.confidence_score.desc(),
        SimilarityPattern.usage_count.desc(),
        SimilarityPattern.id,
    )
    return list(session.execute(stmt).scalars())


__all__ = [
    "PATTERN_TYPE_ALIASES",
    "apply_auto_category",
    "create_pattern",
    "find_matching_patterns",
    "list_patterns",
    "load_patterns",
    "pattern_matches",
    "rank_patterns",
    "select_best_pattern",
]
