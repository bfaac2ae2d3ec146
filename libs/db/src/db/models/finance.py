from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    # Two-level hierarchy by convention: a parent has no parent of its own.
    # Depth is not enforced beyond the self-referential foreign key.
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


# ---------------------------
# Core: transactions
# ---------------------------


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_number: Mapped[str] = mapped_column(String, nullable=False)
    # Canonical YYYY-MM-DD string as produced by the date normalizer. Kept as
    # text so values that failed normalization are stored exactly as exported.
    transaction_date: Mapped[str] = mapped_column(String, nullable=False)
    description1: Mapped[str | None] = mapped_column(Text, nullable=True)
    description2: Mapped[str | None] = mapped_column(Text, nullable=True)
    description3: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Amounts are decimal strings, preserved as exported for display fidelity.
    debit_amount: Mapped[str | None] = mapped_column(String, nullable=True)
    credit_amount: Mapped[str | None] = mapped_column(String, nullable=True)
    balance: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String, nullable=False)
    local_currency_amount: Mapped[str | None] = mapped_column(String, nullable=True)
    local_currency: Mapped[str | None] = mapped_column(String, nullable=True)
    grouping_status: Mapped[str | None] = mapped_column(String, nullable=True)
    # Mirror of the transaction_categories assignment for cheap reads.
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint(
            "grouping_status IN ('manual', 'auto', 'none') OR grouping_status IS NULL",
            name="ck_transactions_grouping_status",
        ),
        # Duplicate detection key
        Index("idx_transaction_lookup", "account_number", "transaction_date", "description1"),
        Index("idx_transaction_grouping", "grouping_status"),
    )


# ---------------------------
# Assignment: transaction_categories
# ---------------------------


class TransactionCategory(Base):
    __tablename__ = "transaction_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # At most one assignment per transaction.
    transaction_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


# ---------------------------
# Rules: transaction_similarity_patterns
# ---------------------------


class SimilarityPattern(Base):
    __tablename__ = "transaction_similarity_patterns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pattern_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    pattern_value: Mapped[str] = mapped_column(Text, nullable=False)
    parent_category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True, index=True
    )
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True, index=True
    )
    confidence_score: Mapped[float] = mapped_column(
        Float, nullable=False, default=1.0, server_default=text("1.0")
    )
    # Advisory only; ranking uses confidence_score.
    usage_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


__all__ = [
    "Base",
    "Category",
    "SimilarityPattern",
    "Transaction",
    "TransactionCategory",
]
