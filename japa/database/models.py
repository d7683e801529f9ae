"""
japa.database.models — SQLAlchemy 2.0 Data Models
===================================================

Tables:
- accounts      — Chanter profiles and running counters (coins, total japs)
- actions       — Append-only ledger of recorded chants
- transactions  — Append-only ledger of every balance-affecting event
- achievements  — One-time milestone unlocks, unique per (account, kind)

Only ``Account`` rows are ever updated; every other row is immutable once
written.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Japa ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TransactionKind(enum.StrEnum):
    """Every reason a balance can change."""
    JAP_REWARD = "jap_reward"
    ACHIEVEMENT = "achievement"
    DAILY_BONUS = "daily_bonus"
    WITHDRAWAL = "withdrawal"


class AchievementKind(enum.StrEnum):
    """The fixed set of unlockable milestones.

    The kind is the per-account dedup key.  Display titles, descriptions
    and icons are mapped in :data:`japa.constants.ACHIEVEMENT_CATALOGUE`.
    """
    FIRST_JAP = "first_jap"
    CENTURY = "century"
    COIN_MASTER = "coin_master"
    SEVEN_DAY_STREAK = "seven_day_streak"


# ---------------------------------------------------------------------------
# Account — one row per chanter
# ---------------------------------------------------------------------------
class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_japs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Profile
    avatar: Mapped[str | None] = mapped_column(String(500), default=None)
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    level: Mapped[int] = mapped_column(Integer, default=1)

    # Relationships
    actions: Mapped[list[Action]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )
    transactions: Mapped[list[Transaction]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )
    achievements: Mapped[list[Achievement]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_accounts_coins_desc", "coins"),
        Index("ix_accounts_last_active", "last_active_at"),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} name={self.name!r} coins={self.coins}>"


# ---------------------------------------------------------------------------
# Action — append-only chant ledger
# ---------------------------------------------------------------------------
class Action(Base):
    __tablename__ = "actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    coins_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.9)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    account: Mapped[Account] = relationship(back_populates="actions")

    __table_args__ = (
        Index("ix_actions_account_time", "account_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<Action id={self.id} account={self.account_id} ts={self.timestamp}>"


# ---------------------------------------------------------------------------
# Transaction — append-only balance ledger
# ---------------------------------------------------------------------------
class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    account: Mapped[Account] = relationship(back_populates="transactions")

    __table_args__ = (
        Index("ix_transactions_account_time", "account_id", "timestamp"),
        Index("ix_transactions_account_kind", "account_id", "kind"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction id={self.id} account={self.account_id} "
            f"kind={self.kind} amount={self.amount}>"
        )


# ---------------------------------------------------------------------------
# Achievement — one-time unlocks
# ---------------------------------------------------------------------------
class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    icon: Mapped[str | None] = mapped_column(String(20), default=None)
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    account: Mapped[Account] = relationship(back_populates="achievements")

    __table_args__ = (
        # An account holds each kind at most once
        UniqueConstraint("account_id", "kind", name="uq_achievements_account_kind"),
        Index("ix_achievements_account_time", "account_id", "unlocked_at"),
    )

    def __repr__(self) -> str:
        return f"<Achievement id={self.id} account={self.account_id} kind={self.kind}>"
