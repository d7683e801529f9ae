"""
japa.services.account_service — Account Record Store
=======================================================

Account creation, lookup and profile edits.  Counter fields (coins,
total_japs, last_active_at) are written only by
:mod:`japa.services.recording_service`; nothing here touches them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from japa.constants import RECENT_JAPS_LIMIT
from japa.database.models import Account, Action
from japa.engine.streak import ensure_utc
from japa.errors import ConflictError, NotFoundError, ValidationError
from japa.services import ledger_service

logger = logging.getLogger(__name__)


@dataclass
class Profile:
    """Account plus the derived numbers shown on the profile screen."""

    account: Account
    jap_count: int = 0
    days_active: int = 0
    recent_japs: list[Action] = field(default_factory=list)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_account(session: Session, account_id: int) -> Account:
    account = session.get(Account, account_id)
    if account is None:
        raise NotFoundError(f"Account not found: {account_id}")
    return account


def create_account(
    session: Session,
    *,
    name: str,
    email: str,
    now: datetime | None = None,
) -> Account:
    """Insert a fresh account with zeroed counters.

    Raises
    ------
    ValidationError
        If the name is blank or the email is malformed.
    ConflictError
        If the email is already registered.
    """
    name = (name or "").strip()
    email = normalize_email(email or "")
    if not name:
        raise ValidationError("Name is required")
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError(f"Invalid email: {email!r}")

    existing = session.scalar(select(Account.id).where(Account.email == email))
    if existing is not None:
        raise ConflictError("Email already registered")

    now = now or datetime.now(UTC)
    account = Account(
        name=name,
        email=email,
        coins=0,
        total_japs=0,
        joined_at=now,
        last_active_at=now,
    )
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(account)
            session.flush()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        raise ConflictError("Email already registered") from None

    logger.info("Account created: id=%d", account.id)
    return account


def update_profile(
    session: Session,
    account_id: int,
    *,
    name: str | None = None,
    bio: str | None = None,
    avatar: str | None = None,
) -> Account:
    """Apply the non-empty profile fields; empty or missing ones are left alone."""
    account = get_account(session, account_id)
    if name and name.strip():
        account.name = name.strip()
    if bio:
        account.bio = bio
    if avatar:
        account.avatar = avatar
    session.flush()
    return account


def get_profile(
    session: Session, account_id: int, *, now: datetime | None = None
) -> Profile:
    account = get_account(session, account_id)
    now = now or datetime.now(UTC)
    joined = ensure_utc(account.joined_at) if account.joined_at else now
    return Profile(
        account=account,
        jap_count=ledger_service.count_actions_since(session, account_id),
        days_active=max(0, (now - joined).days),
        recent_japs=ledger_service.recent_actions(session, account_id, RECENT_JAPS_LIMIT),
    )
