"""
japa.services.recording_service — Jap Recording Pipeline
==========================================================

Turns one recorded chant into:

1. an ``actions`` row (reward + confidence),
2. updated account counters (coins, total_japs, last_active_at),
3. a ``jap_reward`` row in ``transactions``,
4. zero or more newly unlocked ``achievements``,
5. a ``balance_changed`` notification, plus ``achievements_unlocked``
   when step 4 produced anything.

Steps 1–4 run in a single store transaction while holding the account's
lock (:mod:`japa.engine.locks`) and a ``SELECT … FOR UPDATE`` on the
account row, so two japs for the same account can never double-increment
or double-unlock, and a store failure leaves nothing behind.
Notifications go out after commit and never fail the call.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from japa.config import JapaConfig
from japa.constants import (
    ACHIEVEMENT_CATALOGUE,
    DEFAULT_CONFIDENCE,
    JAP_REWARD_DESCRIPTION,
    STREAK_DAYS,
    coins_to_rupees,
)
from japa.database.models import (
    Account,
    Achievement,
    AchievementKind,
    Action,
    Transaction,
    TransactionKind,
)
from japa.engine.achievements import AchievementContext, evaluate
from japa.database.engine import run_db
from japa.engine.locks import (
    AsyncKeyedLock,
    KeyedLock,
    get_default_async_locks,
    get_default_locks,
)
from japa.engine.streak import count_active_days, ensure_utc
from japa.errors import NotFoundError, UnavailableError, ValidationError
from japa.services import ledger_service, notifier

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from japa.services.notifier import NotificationHub

logger = logging.getLogger(__name__)

# Attempts per achievement insert before giving up on it
ACHIEVEMENT_INSERT_ATTEMPTS = 2

# Store failures reported to callers as UnavailableError
STORE_UNAVAILABLE = (OperationalError, InterfaceError, PoolTimeoutError)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UnlockedAchievement:
    kind: AchievementKind
    title: str
    description: str
    icon: str
    unlocked_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "unlocked_at": self.unlocked_at.isoformat(),
        }


@dataclass
class RecordResult:
    """What one recorded jap changed."""

    coins: int = 0
    total_japs: int = 0
    timestamp: datetime | None = None
    achievements: list[UnlockedAchievement] = field(default_factory=list)

    @property
    def rupees(self) -> str:
        return coins_to_rupees(self.coins)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def validate_confidence(confidence: float | None) -> float:
    """Return the confidence to store, or raise :class:`ValidationError`.

    ``None`` means "not supplied" and maps to the default.  Out-of-range
    values are rejected, never clamped.
    """
    if confidence is None:
        return DEFAULT_CONFIDENCE
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ValidationError(f"confidence must be a number, got {confidence!r}")
    value = float(confidence)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ValidationError(f"confidence must be between 0 and 1, got {confidence!r}")
    return value


# ---------------------------------------------------------------------------
# Achievement store writes
# ---------------------------------------------------------------------------
def _insert_achievement(
    session: Session, account_id: int, kind: AchievementKind, now: datetime
) -> UnlockedAchievement | None:
    """Insert *kind* for the account unless it's already there.

    Uses a SAVEPOINT per attempt so a failed insert never poisons the
    outer transaction.  A duplicate (unique constraint) means the account
    already holds it.  A transient store error is retried once, then
    logged and skipped — the next jap re-evaluates and can unlock it then.
    """
    info = ACHIEVEMENT_CATALOGUE[kind]
    for attempt in range(1, ACHIEVEMENT_INSERT_ATTEMPTS + 1):
        row = Achievement(
            account_id=account_id,
            kind=kind.value,
            title=info.title,
            description=info.description,
            icon=info.icon,
            unlocked_at=now,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(row)
                session.flush()
        except IntegrityError:
            logger.info("Achievement %s already held by account %d", kind.value, account_id)
            return None
        except OperationalError:
            if attempt < ACHIEVEMENT_INSERT_ATTEMPTS:
                logger.warning(
                    "Achievement insert failed (%s, account %d) — retrying",
                    kind.value, account_id,
                )
                continue
            logger.exception(
                "Achievement insert failed twice (%s, account %d) — skipping",
                kind.value, account_id,
            )
            return None

        logger.info("Achievement unlocked: %s for account %d", kind.value, account_id)
        return UnlockedAchievement(
            kind=kind,
            title=info.title,
            description=info.description,
            icon=info.icon,
            unlocked_at=now,
        )
    return None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def _apply_jap(
    engine: Engine,
    account_id: int,
    confidence: float,
    cfg: JapaConfig,
    now: datetime,
) -> RecordResult:
    """Steps 1–4 in one transaction.  Caller holds the account lock."""
    with Session(engine, expire_on_commit=False) as session:
        account = session.scalar(
            select(Account).where(Account.id == account_id).with_for_update()
        )
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")

        reward = cfg.coins_per_jap

        # 1. Ledger entry
        session.add(Action(
            account_id=account_id,
            coins_earned=reward,
            confidence=confidence,
            timestamp=now,
        ))

        # 2. Counters
        account.coins += reward
        account.total_japs += 1
        account.last_active_at = now

        # 3. Balance ledger
        session.add(Transaction(
            account_id=account_id,
            kind=TransactionKind.JAP_REWARD.value,
            amount=reward,
            description=JAP_REWARD_DESCRIPTION,
            timestamp=now,
        ))
        session.flush()

        # 4. Achievements, evaluated against post-update state
        timestamps = ledger_service.list_action_timestamps_since(
            session, account_id, now - timedelta(days=STREAK_DAYS)
        )
        ctx = AchievementContext(
            coins=account.coins,
            total_japs=account.total_japs,
            reward=reward,
            active_days=count_active_days(timestamps, now=now, tz=cfg.tz),
        )
        candidates = evaluate(ctx, ledger_service.held_kinds(session, account_id))

        unlocked = [
            ua for ua in (
                _insert_achievement(session, account_id, kind, now)
                for kind in candidates
            )
            if ua is not None
        ]

        session.commit()
        return RecordResult(
            coins=account.coins,
            total_japs=account.total_japs,
            timestamp=now,
            achievements=unlocked,
        )


def _publish(hub: NotificationHub, account_id: int, result: RecordResult) -> None:
    hub.publish(
        account_id,
        notifier.balance_changed(result.coins, result.total_japs, result.timestamp),
    )
    if result.achievements:
        hub.publish(
            account_id,
            notifier.achievements_unlocked(a.to_dict() for a in result.achievements),
        )


def record_action(
    engine: Engine,
    hub: NotificationHub | None,
    account_id: int,
    confidence: float | None = None,
    *,
    cfg: JapaConfig | None = None,
    locks: KeyedLock | None = None,
    now: datetime | None = None,
) -> RecordResult:
    """Record one jap for *account_id* and return the resulting state.

    Raises
    ------
    ValidationError
        *confidence* is not a number in [0, 1].  Nothing is written.
    NotFoundError
        The account doesn't exist.  Nothing is written.
    UnavailableError
        The store failed mid-way; the transaction was rolled back.
    """
    cfg = cfg or JapaConfig()
    locks = locks or get_default_locks()
    value = validate_confidence(confidence)
    now = ensure_utc(now) if now is not None else datetime.now(UTC)

    with locks.hold(account_id):
        try:
            result = _apply_jap(engine, account_id, value, cfg, now)
        except STORE_UNAVAILABLE as exc:
            logger.exception("Store unavailable while recording jap for account %d", account_id)
            raise UnavailableError("Store temporarily unavailable") from exc

    if hub is not None:
        _publish(hub, account_id, result)
    return result


async def record_action_async(
    engine: Engine,
    hub: NotificationHub | None,
    account_id: int,
    confidence: float | None = None,
    *,
    cfg: JapaConfig | None = None,
    locks: KeyedLock | None = None,
    async_locks: AsyncKeyedLock | None = None,
    now: datetime | None = None,
) -> RecordResult:
    """Async front door for :func:`record_action`.

    Japs for the same account queue on the event loop, so a burst for one
    account never ties up worker threads that other accounts need.  Only
    the request at the head of an account's queue takes a thread.
    """
    async_locks = async_locks or get_default_async_locks()
    validate_confidence(confidence)

    async with async_locks.hold(account_id):
        return await run_db(
            record_action, engine, hub, account_id, confidence,
            cfg=cfg, locks=locks, now=now,
        )
