"""Data models and type aliases for ``finance_tracker``.

``NormalizedTransaction`` is the bank-agnostic record every importer emits.
It is transient: it has no identity and is produced fresh per parse. The
persisted shape lives in ``db.models.finance.Transaction``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ---------------------------------------------------------------------------
# Importer output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedTransaction:
    """A single transaction as produced by an importer, prior to persistence.

    All values are strings so amounts keep the exact text of the export.
    ``debit_amount`` and ``credit_amount`` are mutually exclusive; optional
    fields are ``None`` when the export has no value for them.
    """

    account_number: str
    transaction_date: str
    description1: str
    description2: str = ""
    description3: str = ""
    debit_amount: str | None = None
    credit_amount: str | None = None
    balance: str = ""
    currency: str = ""
    transaction_type: str = ""
    local_currency_amount: str | None = None
    local_currency: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Grouping status
# ---------------------------------------------------------------------------

# How a stored transaction acquired its category. ``None`` (absent) is the
# default for freshly imported rows.
GROUPING_MANUAL = "manual"
GROUPING_AUTO = "auto"
GROUPING_NONE = "none"
GROUPING_STATUSES: frozenset[str] = frozenset({GROUPING_MANUAL, GROUPING_AUTO, GROUPING_NONE})


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


class ImportResult(NamedTuple):
    """Counts reported by a batch import.

    ``added + duplicates`` may be less than the number of rows handed in:
    rows that fail to persist are logged and counted in neither.
    """

    added: int
    duplicates: int


class AutoCategorizeResult(NamedTuple):
    categorized: int
    total: int


# ---------------------------------------------------------------------------
# Similarity patterns
# ---------------------------------------------------------------------------

PATTERN_TYPES: tuple[str, ...] = ("exact", "contains", "starts_with", "regex")


class PatternSpec(BaseModel):
    """Validated input for creating a similarity pattern."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    pattern_type: str
    pattern_value: str
    category_id: int | None = None
    parent_category_id: int | None = None
    confidence_score: float = 1.0

    @field_validator("pattern_type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        v = v.lower()
        if v not in PATTERN_TYPES:
            raise ValueError(f"pattern_type must be one of {', '.join(PATTERN_TYPES)}")
        return v

    @field_validator("pattern_value")
    @classmethod
    def _value_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("pattern_value must be non-empty")
        return v

    @field_validator("confidence_score")
    @classmethod
    def _score_in_unit_interval(cls, v: float) -> float:
        if 0.0 <= v <= 1.0:
            return float(v)
        raise ValueError("confidence_score must be within [0,1]")

    @model_validator(mode="after")
    def _has_target(self) -> PatternSpec:
        if self.category_id is None and self.parent_category_id is None:
            raise ValueError("a pattern needs a category_id or a parent_category_id")
        return self


__all__ = [
    "AutoCategorizeResult",
    "GROUPING_AUTO",
    "GROUPING_MANUAL",
    "GROUPING_NONE",
    "GROUPING_STATUSES",
    "ImportResult",
    "NormalizedTransaction",
    "PATTERN_TYPES",
    "PatternSpec",
]
