"""
japa.api.routes.japs — Record japs, history and statistics
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from japa.api.deps import (
    get_async_locks,
    get_config,
    get_current_account_id,
    get_engine,
    get_hub,
    get_locks,
    get_session,
    http_error,
)
from japa.config import JapaConfig
from japa.database.models import Action
from japa.engine.locks import AsyncKeyedLock, KeyedLock
from japa.errors import JapaError
from japa.services import ledger_service
from japa.services.notifier import NotificationHub
from japa.services.recording_service import record_action_async

router = APIRouter(prefix="/jap", tags=["japs"])


class RecordJap(BaseModel):
    audio_confidence: float | None = None


def action_dict(action: Action) -> dict:
    return {
        "id": str(action.id),
        "coins_earned": action.coins_earned,
        "confidence": action.confidence,
        "timestamp": action.timestamp.isoformat() if action.timestamp else None,
    }


# ---------------------------------------------------------------------------
# POST /jap/record
# ---------------------------------------------------------------------------
@router.post("/record")
async def record(
    body: RecordJap | None = None,
    account_id: int = Depends(get_current_account_id),
    engine: Engine = Depends(get_engine),
    hub: NotificationHub = Depends(get_hub),
    locks: KeyedLock = Depends(get_locks),
    async_locks: AsyncKeyedLock = Depends(get_async_locks),
    cfg: JapaConfig = Depends(get_config),
):
    """Record one chant for the caller.

    Same-account requests queue on the event loop; the store work runs on
    a worker thread.
    """
    confidence = body.audio_confidence if body is not None else None
    try:
        result = await record_action_async(
            engine, hub, account_id, confidence,
            cfg=cfg, locks=locks, async_locks=async_locks,
        )
    except JapaError as exc:
        raise http_error(exc)

    return {
        "message": "Jap recorded successfully",
        "coins": result.coins,
        "total_japs": result.total_japs,
        "rupees": result.rupees,
        "achievements": [a.to_dict() for a in result.achievements],
    }


# ---------------------------------------------------------------------------
# GET /jap/history
# ---------------------------------------------------------------------------
@router.get("/history")
def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    """Caller's japs, newest first."""
    result = ledger_service.list_actions(session, account_id, page=page, limit=limit)
    return {
        "japs": [action_dict(a) for a in result.items],
        "current_page": result.page,
        "total_pages": result.total_pages,
        "total_japs": result.total,
    }


# ---------------------------------------------------------------------------
# GET /jap/stats
# ---------------------------------------------------------------------------
@router.get("/stats")
def stats(
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
    cfg: JapaConfig = Depends(get_config),
):
    """Today / week / month counts and per-day buckets for the last week."""
    return ledger_service.action_stats(session, account_id, tz=cfg.tz)
