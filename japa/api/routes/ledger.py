"""
japa.api.routes.ledger — Transactions and unlocked achievements
=================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from japa.api.deps import get_current_account_id, get_session, http_error
from japa.database.models import Achievement, Transaction
from japa.errors import JapaError
from japa.services import ledger_service

router = APIRouter(tags=["ledger"])


def _transaction_dict(t: Transaction) -> dict:
    return {
        "id": str(t.id),
        "type": t.kind,
        "amount": t.amount,
        "description": t.description,
        "timestamp": t.timestamp.isoformat() if t.timestamp else None,
    }


def _achievement_dict(a: Achievement) -> dict:
    return {
        "id": str(a.id),
        "kind": a.kind,
        "title": a.title,
        "description": a.description,
        "icon": a.icon,
        "unlocked_at": a.unlocked_at.isoformat() if a.unlocked_at else None,
    }


# ---------------------------------------------------------------------------
# GET /transactions
# ---------------------------------------------------------------------------
@router.get("/transactions")
def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: str | None = Query(None),
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    """Caller's balance ledger, newest first, optionally filtered by type."""
    try:
        result = ledger_service.list_transactions(
            session, account_id, page=page, limit=limit, kind=type,
        )
    except JapaError as exc:
        raise http_error(exc)

    return {
        "transactions": [_transaction_dict(t) for t in result.items],
        "current_page": result.page,
        "total_pages": result.total_pages,
        "total_transactions": result.total,
    }


# ---------------------------------------------------------------------------
# GET /achievements
# ---------------------------------------------------------------------------
@router.get("/achievements")
def get_achievements(
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    rows = ledger_service.list_achievements(session, account_id)
    return {
        "achievements": [_achievement_dict(a) for a in rows],
        "total_achievements": len(rows),
    }
