"""
tests/test_ledger_service.py — Ledger Reads, Stats & Pagination
================================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from conftest import make_account
from sqlalchemy.orm import Session

from japa.database.models import Achievement, Action, Transaction, TransactionKind
from japa.errors import ValidationError
from japa.services import ledger_service

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _seed_actions(engine, account_id, stamps, coins=1):
    with Session(engine) as session:
        for ts in stamps:
            session.add(Action(account_id=account_id, coins_earned=coins, timestamp=ts))
            session.add(Transaction(
                account_id=account_id,
                kind=TransactionKind.JAP_REWARD.value,
                amount=coins,
                timestamp=ts,
            ))
        session.commit()


@pytest.fixture
def account_id(db_engine) -> int:
    return make_account(db_engine)


class TestActionQueries:
    def test_history_newest_first_and_paginated(self, db_engine, account_id):
        _seed_actions(db_engine, account_id, [NOW + timedelta(minutes=i) for i in range(45)])

        with Session(db_engine) as session:
            page1 = ledger_service.list_actions(session, account_id, page=1, limit=20)
            page3 = ledger_service.list_actions(session, account_id, page=3, limit=20)

        assert page1.total == 45
        assert page1.total_pages == 3
        assert len(page1.items) == 20
        stamps = [a.timestamp for a in page1.items]
        assert stamps == sorted(stamps, reverse=True)
        assert len(page3.items) == 5

    def test_history_of_empty_account(self, db_engine, account_id):
        with Session(db_engine) as session:
            page = ledger_service.list_actions(session, account_id)
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0

    @pytest.mark.parametrize("page, limit", [(0, 20), (1, 0), (1, 101)])
    def test_bad_paging_rejected(self, db_engine, account_id, page, limit):
        with Session(db_engine) as session:
            with pytest.raises(ValidationError):
                ledger_service.list_actions(session, account_id, page=page, limit=limit)

    def test_list_since_oldest_first(self, db_engine, account_id):
        stamps = [NOW - timedelta(days=d) for d in (9, 2, 0, 1)]
        _seed_actions(db_engine, account_id, stamps)

        with Session(db_engine) as session:
            actions = ledger_service.list_actions_since(
                session, account_id, NOW - timedelta(days=7),
            )
            timestamps = ledger_service.list_action_timestamps_since(
                session, account_id, NOW - timedelta(days=7),
            )

        got = [a.timestamp.replace(tzinfo=UTC) for a in actions]
        assert got == [NOW - timedelta(days=d) for d in (2, 1, 0)]
        assert [t.replace(tzinfo=UTC) for t in timestamps] == got

    def test_count_since(self, db_engine, account_id):
        _seed_actions(db_engine, account_id, [NOW - timedelta(days=d) for d in range(10)])
        with Session(db_engine) as session:
            assert ledger_service.count_actions_since(session, account_id) == 10
            since = NOW - timedelta(days=3, hours=1)
            assert ledger_service.count_actions_since(session, account_id, since) == 4

    def test_recent_actions_limit(self, db_engine, account_id):
        _seed_actions(db_engine, account_id, [NOW + timedelta(seconds=i) for i in range(15)])
        with Session(db_engine) as session:
            recent = ledger_service.recent_actions(session, account_id, 10)
        assert len(recent) == 10

    def test_other_accounts_excluded(self, db_engine, account_id):
        other = make_account(db_engine, "Ravi")
        _seed_actions(db_engine, other, [NOW])
        with Session(db_engine) as session:
            assert ledger_service.count_actions_since(session, account_id) == 0


class TestStats:
    def test_windows_and_daily_buckets(self, db_engine, account_id):
        stamps = [
            NOW, NOW - timedelta(hours=2),                 # today ×2
            NOW - timedelta(days=1),                       # yesterday
            NOW - timedelta(days=5),                       # this week
            NOW - timedelta(days=12),                      # this month only
            NOW - timedelta(days=40),                      # previous month
        ]
        _seed_actions(db_engine, account_id, stamps)

        with Session(db_engine) as session:
            stats = ledger_service.action_stats(session, account_id, now=NOW)

        assert stats["today_japs"] == 2
        assert stats["week_japs"] == 4
        assert stats["month_japs"] == 5
        assert stats["daily_stats"] == [
            {"date": "2026-03-10", "count": 1, "coins": 1},
            {"date": "2026-03-14", "count": 1, "coins": 1},
            {"date": "2026-03-15", "count": 2, "coins": 2},
        ]

    def test_today_uses_configured_timezone(self, db_engine, account_id):
        # 17:00 UTC on the 15th is 22:30 IST; 19:00 UTC is already the 16th
        _seed_actions(db_engine, account_id, [
            datetime(2026, 3, 15, 17, 0, tzinfo=UTC),
            datetime(2026, 3, 15, 19, 0, tzinfo=UTC),
        ])
        now = datetime(2026, 3, 15, 20, 0, tzinfo=UTC)
        with Session(db_engine) as session:
            utc = ledger_service.action_stats(session, account_id, now=now)
            ist = ledger_service.action_stats(
                session, account_id, now=now, tz=ZoneInfo("Asia/Kolkata"),
            )
        assert utc["today_japs"] == 2
        assert ist["today_japs"] == 1

    def test_daily_counts_sum_coins(self, db_engine, account_id):
        _seed_actions(db_engine, account_id, [NOW, NOW - timedelta(minutes=5)], coins=3)
        with Session(db_engine) as session:
            buckets = ledger_service.daily_counts(
                session, account_id, NOW - timedelta(days=1),
            )
        assert [(b.count, b.coins) for b in buckets] == [(2, 6)]


class TestTransactions:
    def test_filter_by_kind(self, db_engine, account_id):
        _seed_actions(db_engine, account_id, [NOW, NOW + timedelta(seconds=1)])
        with Session(db_engine) as session:
            session.add(Transaction(
                account_id=account_id,
                kind=TransactionKind.DAILY_BONUS.value,
                amount=10,
                timestamp=NOW + timedelta(seconds=2),
            ))
            session.commit()

            everything = ledger_service.list_transactions(session, account_id)
            rewards = ledger_service.list_transactions(
                session, account_id, kind="jap_reward",
            )
            assert everything.total == 3
            assert everything.items[0].kind == "daily_bonus"
            assert rewards.total == 2
            assert ledger_service.transaction_balance(session, account_id) == 12
            assert ledger_service.transaction_balance(
                session, account_id, TransactionKind.JAP_REWARD,
            ) == 2

    def test_unknown_kind_rejected(self, db_engine, account_id):
        with Session(db_engine) as session:
            with pytest.raises(ValidationError):
                ledger_service.list_transactions(session, account_id, kind="refund")

    def test_balance_of_empty_ledger(self, db_engine, account_id):
        with Session(db_engine) as session:
            assert ledger_service.transaction_balance(session, account_id) == 0


class TestAchievementStore:
    def test_held_and_listed_newest_first(self, db_engine, account_id):
        with Session(db_engine) as session:
            session.add(Achievement(
                account_id=account_id, kind="first_jap", title="First Chant",
                unlocked_at=NOW - timedelta(days=3),
            ))
            session.add(Achievement(
                account_id=account_id, kind="century", title="100 Chants",
                unlocked_at=NOW,
            ))
            session.commit()

            assert ledger_service.held_kinds(session, account_id) == {"first_jap", "century"}
            assert ledger_service.has_achievement(session, account_id, "century")
            assert not ledger_service.has_achievement(session, account_id, "coin_master")
            listed = ledger_service.list_achievements(session, account_id)
            assert [a.kind for a in listed] == ["century", "first_jap"]
