"""create practice, transaction and categorization tables

Revision ID: 3c9e2a7f41b0
Revises:
Create Date: 2026-09-08 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3c9e2a7f41b0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "practices",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("industry", sa.String(length=80), server_default=sa.text("'dental'"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("practice_id", sa.String(length=36), nullable=False),
        sa.Column("remote_txn_id", sa.String(length=64), nullable=False),
        sa.Column(
            "remote_entity_type",
            sa.Enum("Purchase", "Deposit", "Transfer", name="remoteentitytype", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("vendor_name", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("account_ref", sa.String(length=200), nullable=True),
        sa.Column("raw_json", sa.JSON(), nullable=True),
        sa.Column("synced_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("practice_id", "remote_txn_id", name="uq_txn_practice_remote_id"),
    )
    op.create_index("ix_txn_practice_date", "transactions", ["practice_id", "date"], unique=False)

    op.create_table(
        "categorizations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("transaction_id", sa.String(length=36), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("confidence", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("rule_id", sa.String(length=36), nullable=True),
        sa.Column("reasoning", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_cat_transaction_created", "categorizations", ["transaction_id", "created_at"], unique=False
    )
    op.create_index("ix_cat_confidence", "categorizations", ["confidence"], unique=False)
    op.create_index("ix_categorizations_rule_id", "categorizations", ["rule_id"], unique=False)

    op.create_table(
        "user_rules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("practice_id", sa.String(length=36), nullable=False),
        sa.Column("match_type", sa.String(length=20), nullable=False),
        sa.Column("match_value", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_rules_practice_priority", "user_rules", ["practice_id", "priority"], unique=False
    )

    op.create_table(
        "industry_configs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("practice_id", sa.String(length=36), nullable=True),
        sa.Column("industry_slug", sa.String(length=80), nullable=False),
        sa.Column("config_json", sa.JSON(), nullable=False),
        sa.Column("is_custom", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_industry_configs_practice_id", "industry_configs", ["practice_id"], unique=False)
    op.create_index("ix_industry_configs_slug", "industry_configs", ["industry_slug"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_industry_configs_slug", table_name="industry_configs")
    op.drop_index("ix_industry_configs_practice_id", table_name="industry_configs")
    op.drop_table("industry_configs")
    op.drop_index("ix_user_rules_practice_priority", table_name="user_rules")
    op.drop_table("user_rules")
    op.drop_index("ix_categorizations_rule_id", table_name="categorizations")
    op.drop_index("ix_cat_confidence", table_name="categorizations")
    op.drop_index("ix_cat_transaction_created", table_name="categorizations")
    op.drop_table("categorizations")
    op.drop_index("ix_txn_practice_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("practices")
