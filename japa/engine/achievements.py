"""
japa.engine.achievements — Achievement Evaluation
===================================================

Handler-registry implementation: each :class:`AchievementKind` maps to a
pure predicate that receives an :class:`AchievementContext` describing the
account *after* the current jap has been applied.

This module is pure calculation — no database I/O, no network I/O.  The
recording pipeline builds the context, calls :func:`evaluate`, and owns
the insert-if-absent step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from japa.constants import (
    CENTURY_COUNT,
    COIN_MASTER_BALANCE,
    FIRST_JAP_COUNT,
    STREAK_DAYS,
)
from japa.database.models import AchievementKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Achievement Context — passed to every handler
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AchievementContext:
    """Snapshot of account state passed to achievement handlers.

    Parameters
    ----------
    coins : Balance after this jap's reward.
    total_japs : Jap count after this jap.
    reward : Coins credited by this jap (so the previous balance is
        ``coins - reward``).
    active_days : Distinct calendar days with activity in the trailing
        streak window (see :func:`japa.engine.streak.count_active_days`).
    """

    coins: int = 0
    total_japs: int = 0
    reward: int = 0
    active_days: int = 0

    @property
    def previous_coins(self) -> int:
        return self.coins - self.reward


# ---------------------------------------------------------------------------
# Handlers — pure functions ctx → bool
# ---------------------------------------------------------------------------
def _check_first_jap(ctx: AchievementContext) -> bool:
    return ctx.total_japs == FIRST_JAP_COUNT


def _check_century(ctx: AchievementContext) -> bool:
    return ctx.total_japs == CENTURY_COUNT


def _check_coin_master(ctx: AchievementContext) -> bool:
    """Fires on the jap that takes the balance to the milestone.

    With a one-coin reward this is exactly ``coins == 1000``; larger
    rewards that jump over the milestone still count as reaching it.
    """
    return ctx.previous_coins < COIN_MASTER_BALANCE <= ctx.coins


def _check_seven_day_streak(ctx: AchievementContext) -> bool:
    return ctx.active_days == STREAK_DAYS


HANDLERS: dict[AchievementKind, Callable[[AchievementContext], bool]] = {
    AchievementKind.FIRST_JAP: _check_first_jap,
    AchievementKind.CENTURY: _check_century,
    AchievementKind.COIN_MASTER: _check_coin_master,
    AchievementKind.SEVEN_DAY_STREAK: _check_seven_day_streak,
}


# ---------------------------------------------------------------------------
# Main check function
# ---------------------------------------------------------------------------
def evaluate(
    ctx: AchievementContext,
    already_held: Iterable[str] = (),
) -> list[AchievementKind]:
    """Return the achievement kinds newly earned by this jap.

    Kinds in *already_held* are skipped.  Handlers are independent, so
    every qualifying kind is returned together, in registry order.
    """
    held = {AchievementKind(k) for k in already_held}
    newly_earned: list[AchievementKind] = []

    for kind, handler in HANDLERS.items():
        if kind in held:
            continue
        if handler(ctx):
            newly_earned.append(kind)
            logger.debug("Achievement qualifies: %s", kind.value)

    return newly_earned
