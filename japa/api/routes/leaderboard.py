"""
japa.api.routes.leaderboard — Ranked leaderboard
==================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from japa.api.deps import get_config, get_current_account_id, get_session, http_error
from japa.config import JapaConfig
from japa.errors import JapaError
from japa.services import leaderboard_service

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard")
def get_leaderboard(
    period: str = Query("all"),
    limit: int | None = Query(None, ge=1, le=100),
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
    cfg: JapaConfig = Depends(get_config),
):
    """Top accounts by coins for ``all`` / ``today`` / ``week``, plus the caller's rank."""
    try:
        result = leaderboard_service.rank(
            session,
            account_id,
            period,
            limit or cfg.leaderboard_default_limit,
            tz=cfg.tz,
        )
    except JapaError as exc:
        raise http_error(exc)

    return {
        "leaderboard": [
            {**entry.to_dict(), "rank": i + 1}
            for i, entry in enumerate(result.entries)
        ],
        "user_rank": result.caller_rank,
        "period": result.period.value,
    }
