"""
japa.api.routes.profile — Caller profile read & edit
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from japa.api.deps import get_current_account_id, get_session, http_error
from japa.api.routes.japs import action_dict
from japa.constants import coins_to_rupees
from japa.database.models import Account
from japa.errors import JapaError
from japa.services import account_service

router = APIRouter(prefix="/user", tags=["profile"])


class ProfileUpdate(BaseModel):
    name: str | None = None
    bio: str | None = None
    avatar: str | None = None


def _account_dict(a: Account) -> dict:
    return {
        "id": str(a.id),
        "name": a.name,
        "email": a.email,
        "coins": a.coins,
        "total_japs": a.total_japs,
        "joined_at": a.joined_at.isoformat() if a.joined_at else None,
        "last_active_at": a.last_active_at.isoformat() if a.last_active_at else None,
        "profile": {"avatar": a.avatar, "bio": a.bio, "level": a.level},
    }


@router.get("/profile")
def get_profile(
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    """Account, derived stats and the ten most recent japs."""
    try:
        profile = account_service.get_profile(session, account_id)
    except JapaError as exc:
        raise http_error(exc)

    return {
        "user": _account_dict(profile.account),
        "stats": {
            "jap_count": profile.jap_count,
            "rupees": coins_to_rupees(profile.account.coins),
            "days_active": profile.days_active,
        },
        "recent_japs": [action_dict(a) for a in profile.recent_japs],
    }


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    """Edit name, bio or avatar; blank fields are left unchanged."""
    try:
        account = account_service.update_profile(
            session, account_id, name=body.name, bio=body.bio, avatar=body.avatar,
        )
        session.commit()
    except JapaError as exc:
        raise http_error(exc)

    return {"message": "Profile updated successfully", "user": _account_dict(account)}
