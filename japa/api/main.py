"""
japa.api.main — FastAPI application entry point
=================================================

Run with::

    uvicorn japa.api.main:app --reload --port 3000

or ``python -m japa``.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import Engine, text

load_dotenv()

from japa.api.deps import get_engine  # noqa: E402
from japa.api.routes.japs import router as japs_router  # noqa: E402
from japa.api.routes.leaderboard import router as leaderboard_router  # noqa: E402
from japa.api.routes.ledger import router as ledger_router  # noqa: E402
from japa.api.routes.profile import router as profile_router  # noqa: E402
from japa.api.routes.realtime import router as realtime_router  # noqa: E402
from japa.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    init_db(engine)
    logger.info("Japa API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Japa API shutting down")


app = FastAPI(
    title="Japa API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(japs_router, prefix="/api")
app.include_router(profile_router, prefix="/api")
app.include_router(ledger_router, prefix="/api")
app.include_router(leaderboard_router, prefix="/api")
app.include_router(realtime_router, prefix="/api")


@app.get("/api/health")
def health(engine: Engine = Depends(get_engine)):
    """Liveness plus a cheap store round-trip."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        database = "disconnected"
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - _STARTED_AT, 1),
        "database": database,
    }
