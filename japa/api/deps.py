"""
japa.api.deps — FastAPI dependency injection
==============================================

Tokens are issued by the external identity service; this module only
verifies them and trusts the ``sub`` claim as the account id.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from japa.config import JapaConfig, load_config
from japa.database.engine import create_db_engine
from japa.engine.locks import (
    AsyncKeyedLock,
    KeyedLock,
    get_default_async_locks,
    get_default_locks,
)
from japa.errors import (
    ConflictError,
    JapaError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from japa.services.notifier import NotificationHub, get_default_hub

_WEAK_SECRETS = frozenset({
    "your-secret-key-change-in-production",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> JapaConfig:
    return load_config()


def get_hub() -> NotificationHub:
    return get_default_hub()


def get_locks() -> KeyedLock:
    return get_default_locks()


def get_async_locks() -> AsyncKeyedLock:
    return get_default_async_locks()


def get_session(engine: Annotated[Engine, Depends(get_engine)]):
    with Session(engine) as session:
        yield session


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
def decode_account_id(token: str) -> int:
    """Return the account id carried by *token*.

    Raises
    ------
    InvalidTokenError
        Bad signature, expired, or no integer ``sub`` claim.
    """
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError("Token has no account subject") from None


def get_current_account_id(
    authorization: Annotated[str | None, Header()] = None,
) -> int:
    """Validate the bearer JWT and return the account id. Raises 401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Access token required")
    token = authorization.split(" ", 1)[1]
    try:
        return decode_account_id(token)
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token")


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
_STATUS_BY_ERROR: dict[type[JapaError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: JapaError) -> HTTPException:
    """Translate a service error into the matching HTTP response."""
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(code, str(exc))
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
