"""Transactions, categories, assignments and similarity patterns.

Revision ID: 0001_tracker_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_tracker_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_NOW = sa.text("CURRENT_TIMESTAMP")

_PARENTS = (
    ("Earnings", "Income from salary, business and other sources"),
    ("Expenditures", "Money spent on goods and services"),
    ("Savings", "Money set aside or invested"),
)
_CHILDREN = (
    ("Expenditures", "Grocery", "Food and household supplies"),
    ("Expenditures", "Entertainment", "Movies, events, dining out and leisure"),
    ("Expenditures", "Travel", "Transport, flights and accommodation"),
    ("Expenditures", "Utilities", "Electricity, water, internet and phone bills"),
    ("Savings", "Fixed Deposits", "Term deposits with a fixed maturity"),
    ("Savings", "Recurring Deposits", "Regular monthly deposits"),
    ("Savings", "eToro", "Investments held with eToro"),
    ("Savings", "Trading 121", "Investments held with Trading 121"),
)


def upgrade() -> None:
    categories = op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_number", sa.String(), nullable=False),
        sa.Column("transaction_date", sa.String(), nullable=False),
        sa.Column("description1", sa.Text(), nullable=True),
        sa.Column("description2", sa.Text(), nullable=True),
        sa.Column("description3", sa.Text(), nullable=True),
        sa.Column("debit_amount", sa.String(), nullable=True),
        sa.Column("credit_amount", sa.String(), nullable=True),
        sa.Column("balance", sa.String(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("transaction_type", sa.String(), nullable=False),
        sa.Column("local_currency_amount", sa.String(), nullable=True),
        sa.Column("local_currency", sa.String(), nullable=True),
        sa.Column("grouping_status", sa.String(), nullable=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.CheckConstraint(
            "grouping_status IN ('manual', 'auto', 'none') OR grouping_status IS NULL",
            name="ck_transactions_grouping_status",
        ),
    )
    op.create_index(
        "idx_transaction_lookup",
        "transactions",
        ["account_number", "transaction_date", "description1"],
    )
    op.create_index("idx_transaction_grouping", "transactions", ["grouping_status"])

    op.create_table(
        "transaction_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "parent_category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
    )
    op.create_index(
        "ix_transaction_categories_category_id", "transaction_categories", ["category_id"]
    )
    op.create_index(
        "ix_transaction_categories_parent_category_id",
        "transaction_categories",
        ["parent_category_id"],
    )

    op.create_table(
        "transaction_similarity_patterns",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pattern_type", sa.String(), nullable=False),
        sa.Column("pattern_value", sa.Text(), nullable=False),
        sa.Column(
            "parent_category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("confidence_score", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=_NOW),
    )
    for column in ("pattern_type", "parent_category_id", "category_id"):
        op.create_index(
            f"ix_transaction_similarity_patterns_{column}",
            "transaction_similarity_patterns",
            [column],
        )

    # Default taxonomy, mirrored from finance_tracker.categories.DEFAULT_TAXONOMY
    op.bulk_insert(
        categories,
        [{"name": name, "parent_id": None, "description": desc} for name, desc in _PARENTS],
    )
    for parent, name, desc in _CHILDREN:
        op.execute(
            sa.text(
                "INSERT INTO categories (name, parent_id, description) "
                "SELECT :name, id, :description FROM categories WHERE name = :parent"
            ).bindparams(name=name, description=desc, parent=parent)
        )


def downgrade() -> None:
    op.drop_table("transaction_similarity_patterns")
    op.drop_table("transaction_categories")
    op.drop_table("transactions")
    op.drop_table("categories")
