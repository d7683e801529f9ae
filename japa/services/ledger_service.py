"""
japa.services.ledger_service — Action, Transaction & Achievement Reads
========================================================================

Read-side queries over the append-only ledgers: windowed counts, daily
buckets, paginated history, and the stats surface.  Every function takes
an open :class:`Session`; none of them write.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from japa.constants import STREAK_DAYS
from japa.database.models import Achievement, Action, Transaction, TransactionKind
from japa.engine.streak import DailyBucket, group_by_day, start_of_day, start_of_month
from japa.errors import ValidationError

MAX_PAGE_SIZE = 100


@dataclass
class Page:
    """One page of a newest-first listing."""

    items: list[Any] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _check_paging(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")


# ---------------------------------------------------------------------------
# Action ledger
# ---------------------------------------------------------------------------
def list_actions_since(session: Session, account_id: int, since: datetime) -> list[Action]:
    """Actions at or after *since*, oldest first."""
    return list(session.scalars(
        select(Action)
        .where(Action.account_id == account_id, Action.timestamp >= since)
        .order_by(Action.timestamp, Action.id)
    ).all())


def list_action_timestamps_since(
    session: Session, account_id: int, since: datetime
) -> list[datetime]:
    return list(session.scalars(
        select(Action.timestamp)
        .where(Action.account_id == account_id, Action.timestamp >= since)
        .order_by(Action.timestamp)
    ).all())


def count_actions_since(
    session: Session, account_id: int, since: datetime | None = None
) -> int:
    query = select(func.count()).select_from(Action).where(Action.account_id == account_id)
    if since is not None:
        query = query.where(Action.timestamp >= since)
    return session.scalar(query) or 0


def daily_counts(
    session: Session, account_id: int, since: datetime, tz: tzinfo = UTC
) -> list[DailyBucket]:
    """Per-calendar-day jap count and coin sum since *since*, by day ascending."""
    rows = session.execute(
        select(Action.timestamp, Action.coins_earned)
        .where(Action.account_id == account_id, Action.timestamp >= since)
    ).all()
    return group_by_day(((row.timestamp, row.coins_earned) for row in rows), tz)


def recent_actions(session: Session, account_id: int, limit: int) -> list[Action]:
    return list(session.scalars(
        select(Action)
        .where(Action.account_id == account_id)
        .order_by(Action.timestamp.desc(), Action.id.desc())
        .limit(limit)
    ).all())


def list_actions(
    session: Session, account_id: int, *, page: int = 1, limit: int = 20
) -> Page:
    """Jap history, newest first."""
    _check_paging(page, limit)
    items = session.scalars(
        select(Action)
        .where(Action.account_id == account_id)
        .order_by(Action.timestamp.desc(), Action.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return Page(
        items=list(items),
        page=page,
        limit=limit,
        total=count_actions_since(session, account_id),
    )


def action_stats(
    session: Session, account_id: int, *, now: datetime | None = None, tz: tzinfo = UTC
) -> dict[str, Any]:
    """Today / trailing-week / this-month counts plus trailing-week buckets."""
    now = now or datetime.now(UTC)
    week_start = now - timedelta(days=STREAK_DAYS)
    return {
        "today_japs": count_actions_since(session, account_id, start_of_day(now, tz)),
        "week_japs": count_actions_since(session, account_id, week_start),
        "month_japs": count_actions_since(session, account_id, start_of_month(now, tz)),
        "daily_stats": [
            b.to_dict() for b in daily_counts(session, account_id, week_start, tz)
        ],
    }


# ---------------------------------------------------------------------------
# Transaction ledger
# ---------------------------------------------------------------------------
def list_transactions(
    session: Session,
    account_id: int,
    *,
    page: int = 1,
    limit: int = 20,
    kind: str | None = None,
) -> Page:
    """Transactions newest first, optionally restricted to one kind."""
    _check_paging(page, limit)
    conditions = [Transaction.account_id == account_id]
    if kind is not None:
        try:
            conditions.append(Transaction.kind == TransactionKind(kind).value)
        except ValueError:
            raise ValidationError(f"Unknown transaction kind: {kind!r}") from None

    items = session.scalars(
        select(Transaction)
        .where(*conditions)
        .order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    total = session.scalar(
        select(func.count()).select_from(Transaction).where(*conditions)
    ) or 0
    return Page(items=list(items), page=page, limit=limit, total=total)


def transaction_balance(
    session: Session, account_id: int, kind: TransactionKind | None = None
) -> int:
    """Sum of transaction amounts; equals the account balance."""
    query = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
        Transaction.account_id == account_id
    )
    if kind is not None:
        query = query.where(Transaction.kind == kind.value)
    return session.scalar(query) or 0


# ---------------------------------------------------------------------------
# Achievement store
# ---------------------------------------------------------------------------
def held_kinds(session: Session, account_id: int) -> set[str]:
    """Achievement kinds the account already holds."""
    return set(session.scalars(
        select(Achievement.kind).where(Achievement.account_id == account_id)
    ).all())


def has_achievement(session: Session, account_id: int, kind: str) -> bool:
    return session.scalar(
        select(func.count()).select_from(Achievement).where(
            Achievement.account_id == account_id, Achievement.kind == kind
        )
    ) > 0


def list_achievements(session: Session, account_id: int) -> list[Achievement]:
    """Unlocked achievements, most recent first."""
    return list(session.scalars(
        select(Achievement)
        .where(Achievement.account_id == account_id)
        .order_by(Achievement.unlocked_at.desc(), Achievement.id.desc())
    ).all())
