"""
japa.constants — Shared Constants & Helpers
=============================================

Single source of truth for milestone thresholds, achievement presentation
and currency display.  Import from here instead of duplicating in
services and routes.
"""

from __future__ import annotations

from typing import NamedTuple

from japa.database.models import AchievementKind

# ---------------------------------------------------------------------------
# Recording defaults
# ---------------------------------------------------------------------------
DEFAULT_CONFIDENCE = 0.9
JAP_REWARD_DESCRIPTION = "Narayan Chant Reward"

# ---------------------------------------------------------------------------
# Milestone thresholds
# ---------------------------------------------------------------------------
FIRST_JAP_COUNT = 1
CENTURY_COUNT = 100
COIN_MASTER_BALANCE = 1000
STREAK_DAYS = 7

RECENT_JAPS_LIMIT = 10


# ---------------------------------------------------------------------------
# Achievement presentation — kind → display strings
# ---------------------------------------------------------------------------
class AchievementInfo(NamedTuple):
    title: str
    description: str
    icon: str


ACHIEVEMENT_CATALOGUE: dict[AchievementKind, AchievementInfo] = {
    AchievementKind.FIRST_JAP: AchievementInfo(
        "First Chant", "Complete your first Narayan chant", "\U0001f31f",  # 🌟
    ),
    AchievementKind.CENTURY: AchievementInfo(
        "100 Chants", "Reach 100 total chants", "\U0001f525",  # 🔥
    ),
    AchievementKind.COIN_MASTER: AchievementInfo(
        "Coin Master", "Earn 1000 coins", "\U0001f48e",  # 💎
    ),
    AchievementKind.SEVEN_DAY_STREAK: AchievementInfo(
        "7 Day Streak", "Chant for 7 consecutive days", "\U0001f525",  # 🔥
    ),
}


# ---------------------------------------------------------------------------
# Currency display
# ---------------------------------------------------------------------------
COINS_PER_RUPEE = 100


def coins_to_rupees(coins: int) -> str:
    """Format a coin balance as rupees with two decimals (``"12.34"``)."""
    return f"{coins / COINS_PER_RUPEE:.2f}"
