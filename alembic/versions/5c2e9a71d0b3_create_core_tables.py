"""Create accounts, actions, transactions and achievements tables

Revision ID: 5c2e9a71d0b3
Revises:
Create Date: 2026-10-19 10:30:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e9a71d0b3'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- accounts ---
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("coins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_japs", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ),
        sa.Column(
            "last_active_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
        ),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("level", sa.Integer, server_default="1"),
    )
    op.create_index("ix_accounts_coins_desc", "accounts", ["coins"])
    op.create_index("ix_accounts_last_active", "accounts", ["last_active_at"])

    # --- actions ---
    op.create_table(
        "actions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "account_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("coins_earned", sa.Integer, nullable=False, server_default="1"),
        sa.Column("confidence", sa.Float, nullable=False, server_default="0.9"),
        sa.Column(
            "timestamp", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )
    op.create_index("ix_actions_account_time", "actions", ["account_id", "timestamp"])

    # --- transactions ---
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "account_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "timestamp", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )
    op.create_index(
        "ix_transactions_account_time", "transactions", ["account_id", "timestamp"],
    )
    op.create_index(
        "ix_transactions_account_kind", "transactions", ["account_id", "kind"],
    )

    # --- achievements ---
    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "account_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("icon", sa.String(20), nullable=True),
        sa.Column(
            "unlocked_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.UniqueConstraint("account_id", "kind", name="uq_achievements_account_kind"),
    )
    op.create_index(
        "ix_achievements_account_time", "achievements", ["account_id", "unlocked_at"],
    )


def downgrade() -> None:
    op.drop_table("achievements")
    op.drop_table("transactions")
    op.drop_table("actions")
    op.drop_table("accounts")
