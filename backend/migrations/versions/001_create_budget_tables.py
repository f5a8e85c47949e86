"""Create budgets, categories, income_settings, accounts, transactions tables.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # ── Budgets ───────────────────────────────────────
    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(7), server_default="#6366f1", nullable=False),
        sa.Column("amount_type", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("period_type", sa.String(20), server_default="monthly", nullable=False),
        sa.Column("custom_start_date", sa.Date(), nullable=True),
        sa.Column("custom_end_date", sa.Date(), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount_type IN ('fixed', 'percentage')", name="ck_budgets_amount_type"),
        sa.CheckConstraint("period_type IN ('weekly', 'monthly', 'custom')", name="ck_budgets_period_type"),
        sa.CheckConstraint(
            "period_type <> 'custom' OR (custom_start_date IS NOT NULL "
            "AND custom_end_date IS NOT NULL AND custom_end_date > custom_start_date)",
            name="ck_budgets_custom_range",
        ),
    )

    # ── Categories ────────────────────────────────────
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("category_name", sa.String(100), nullable=False),
        sa.Column(
            "budget_id",
            sa.Integer(),
            sa.ForeignKey("budgets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("budget_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("budget_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category_name", name="uq_categories_category_name"),
    )
    op.create_index("ix_categories_budget_id", "categories", ["budget_id"])

    # ── Income settings (single row) ──────────────────
    op.create_table(
        "income_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("use_dynamic_income", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("manual_income", sa.Numeric(12, 2), server_default="0.00", nullable=False),
        sa.Column("monthly_savings_target", sa.Numeric(12, 2), server_default="0.00", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Accounts ──────────────────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), server_default="0.00", nullable=False),
        sa.Column("monthly_savings_goal", sa.Numeric(12, 2), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_accounts_name"),
    )

    # ── Transactions ──────────────────────────────────
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "account_id",
            sa.Integer(),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category_name", sa.String(100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_transactions_category_occurred", "transactions", ["category_name", "occurred_at"]
    )
    op.create_index(
        "idx_transactions_account_occurred", "transactions", ["account_id", "occurred_at"]
    )

    # ── Seed default categories ───────────────────────
    op.execute("""
        INSERT INTO categories (category_name, sort_order) VALUES
        ('Income', 0),
        ('Transfer', 1),
        ('Groceries', 2),
        ('Rent', 3),
        ('Dining', 4),
        ('Utilities', 5),
        ('Travel', 6),
        ('Subscriptions', 7),
        ('Other', 8);
    """)


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("accounts")
    op.drop_table("income_settings")
    op.drop_table("categories")
    op.drop_table("budgets")
