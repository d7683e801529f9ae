"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of japa.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from japa.config import JapaConfig  # noqa: E402
from japa.database.engine import get_session  # noqa: E402
from japa.database.models import Account, Base  # noqa: E402
from japa.engine.locks import AsyncKeyedLock, KeyedLock  # noqa: E402
from japa.services.notifier import NotificationHub  # noqa: E402


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Japa tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` and the FastAPI threadpool).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def async_locks() -> AsyncKeyedLock:
    return AsyncKeyedLock()


@pytest.fixture
def cfg() -> JapaConfig:
    return JapaConfig()


def make_account(
    engine: Engine,
    name: str = "Asha",
    email: str | None = None,
    *,
    coins: int = 0,
    total_japs: int = 0,
    last_active_at: datetime | None = None,
) -> int:
    """Insert an account directly and return its id."""
    now = datetime.now(UTC)
    with get_session(engine) as session:
        account = Account(
            name=name,
            email=email or f"{name.lower()}@example.com",
            coins=coins,
            total_japs=total_japs,
            joined_at=now,
            last_active_at=last_active_at or now,
        )
        session.add(account)
        session.flush()
        return account.id


def make_token(account_id: int | str) -> str:
    """Create a JWT for *account_id* the way the identity service would."""
    import jwt

    from japa.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": str(account_id)}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth_header(account_id: int | str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(account_id)}"}


@pytest.fixture
def client(db_engine, hub, locks, async_locks, cfg):
    """FastAPI TestClient wired to the in-memory store and a private hub."""
    from fastapi.testclient import TestClient

    from japa.api import deps
    from japa.api.main import app

    app.dependency_overrides[deps.get_engine] = lambda: db_engine
    app.dependency_overrides[deps.get_hub] = lambda: hub
    app.dependency_overrides[deps.get_locks] = lambda: locks
    app.dependency_overrides[deps.get_async_locks] = lambda: async_locks
    app.dependency_overrides[deps.get_config] = lambda: cfg
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
