"""
japa.services.leaderboard_service — Ranked Leaderboard
========================================================

Point-in-time ranking of accounts by coin balance, optionally restricted
to recently active accounts.  Nothing is persisted; every call recomputes
from the ``accounts`` table.  No lock is taken — concurrent recordings
may or may not be visible, and that's fine.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from japa.database.models import Account
from japa.engine.streak import start_of_day
from japa.errors import ValidationError
from japa.services.account_service import get_account

MAX_LIMIT = 100
WEEK = timedelta(days=7)


class LeaderboardPeriod(enum.StrEnum):
    """Activity filters applied to ``last_active_at``."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    account_id: int
    name: str
    coins: int
    total_japs: int
    avatar: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": str(self.account_id),
            "name": self.name,
            "coins": self.coins,
            "total_japs": self.total_japs,
            "avatar": self.avatar,
        }


@dataclass
class LeaderboardResult:
    period: LeaderboardPeriod
    caller_rank: int
    entries: list[LeaderboardEntry] = field(default_factory=list)


def activity_cutoff(
    period: LeaderboardPeriod, now: datetime, tz: tzinfo = UTC
) -> datetime | None:
    """Earliest ``last_active_at`` that passes *period*'s filter."""
    if period is LeaderboardPeriod.TODAY:
        return start_of_day(now, tz)
    if period is LeaderboardPeriod.WEEK:
        return now - WEEK
    return None


def parse_period(period: str | LeaderboardPeriod) -> LeaderboardPeriod:
    try:
        return LeaderboardPeriod(period)
    except ValueError:
        raise ValidationError(
            f"Unknown period {period!r}; expected one of "
            + ", ".join(p.value for p in LeaderboardPeriod)
        ) from None


def rank(
    session: Session,
    account_id: int,
    period: str | LeaderboardPeriod = LeaderboardPeriod.ALL,
    limit: int = 50,
    *,
    tz: tzinfo = UTC,
    now: datetime | None = None,
) -> LeaderboardResult:
    """Top *limit* accounts by coins plus the caller's rank.

    ``caller_rank`` is 1 + the number of filtered accounts with strictly
    more coins than the caller, whether or not the caller made the page.
    Ties are ordered by account id so repeated calls agree.

    Raises
    ------
    ValidationError
        Unknown period or *limit* outside 1..100.
    NotFoundError
        The caller's account doesn't exist.
    """
    period = parse_period(period)
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")

    caller = get_account(session, account_id)

    conditions = []
    cutoff = activity_cutoff(period, now or datetime.now(UTC), tz)
    if cutoff is not None:
        conditions.append(Account.last_active_at >= cutoff)

    rows = session.execute(
        select(
            Account.id, Account.name, Account.coins, Account.total_japs, Account.avatar,
        )
        .where(*conditions)
        .order_by(Account.coins.desc(), Account.id)
        .limit(limit)
    ).all()

    above = session.scalar(
        select(func.count())
        .select_from(Account)
        .where(*conditions, Account.coins > caller.coins)
    ) or 0

    return LeaderboardResult(
        period=period,
        caller_rank=above + 1,
        entries=[
            LeaderboardEntry(
                account_id=row.id,
                name=row.name,
                coins=row.coins,
                total_japs=row.total_japs,
                avatar=row.avatar,
            )
            for row in rows
        ],
    )
