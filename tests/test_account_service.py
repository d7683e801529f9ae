"""
tests/test_account_service.py — Account Store Tests
====================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from japa.database.models import Action
from japa.errors import ConflictError, NotFoundError, ValidationError
from japa.services import account_service

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


class TestCreateAccount:
    def test_counters_start_at_zero(self, db_session):
        account = account_service.create_account(
            db_session, name="  Asha  ", email="Asha@Example.com", now=NOW,
        )

        assert account.id is not None
        assert account.name == "Asha"
        assert account.email == "asha@example.com"
        assert account.coins == 0
        assert account.total_japs == 0
        assert account.joined_at == NOW
        assert account.last_active_at == NOW

    def test_duplicate_email_conflicts(self, db_session):
        account_service.create_account(db_session, name="Asha", email="asha@example.com")
        db_session.commit()
        with pytest.raises(ConflictError):
            account_service.create_account(
                db_session, name="Other", email="ASHA@example.com",
            )

    @pytest.mark.parametrize("name, email", [
        ("", "a@example.com"),
        ("   ", "a@example.com"),
        ("Asha", "not-an-email"),
        ("Asha", "@example.com"),
        ("Asha", "asha@"),
    ])
    def test_invalid_input_rejected(self, db_session, name, email):
        with pytest.raises(ValidationError):
            account_service.create_account(db_session, name=name, email=email)

    def test_get_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            account_service.get_account(db_session, 12345)


class TestUpdateProfile:
    @pytest.fixture
    def account_id(self, db_session) -> int:
        account = account_service.create_account(
            db_session, name="Asha", email="asha@example.com",
        )
        db_session.commit()
        return account.id

    def test_updates_given_fields(self, db_session, account_id):
        account = account_service.update_profile(
            db_session, account_id, name="Asha Devi", bio="Chanting daily", avatar="a.png",
        )
        assert account.name == "Asha Devi"
        assert account.bio == "Chanting daily"
        assert account.avatar == "a.png"

    def test_blank_fields_left_alone(self, db_session, account_id):
        account_service.update_profile(db_session, account_id, bio="Original")
        account = account_service.update_profile(
            db_session, account_id, name="   ", bio="", avatar=None,
        )
        assert account.name == "Asha"
        assert account.bio == "Original"
        assert account.avatar is None

    def test_counters_untouched(self, db_session, account_id):
        account = account_service.update_profile(db_session, account_id, name="New")
        assert account.coins == 0
        assert account.total_japs == 0

    def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            account_service.update_profile(db_session, 999, name="Ghost")


class TestProfile:
    def test_profile_numbers(self, db_session):
        account = account_service.create_account(
            db_session, name="Asha", email="asha@example.com",
            now=NOW - timedelta(days=12, hours=3),
        )
        for i in range(12):
            db_session.add(Action(
                account_id=account.id, timestamp=NOW - timedelta(minutes=i),
            ))
        db_session.commit()

        profile = account_service.get_profile(db_session, account.id, now=NOW)
        assert profile.jap_count == 12
        assert profile.days_active == 12
        assert len(profile.recent_japs) == 10
        assert profile.recent_japs[0].timestamp.replace(tzinfo=UTC) == NOW

    def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            account_service.get_profile(db_session, 404)
