"""
japa.__main__ — Entry point for ``python -m japa``
====================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Serve the FastAPI app with Uvicorn (blocking).
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from japa.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("japa")


def main() -> None:
    """Bootstrap and run the Japa API server."""
    load_dotenv()

    cfg = load_config()
    logger.info("Config loaded — %s (tz=%s)", cfg.app_name, cfg.timezone)

    uvicorn.run("japa.api.main:app", host="0.0.0.0", port=cfg.port)


if __name__ == "__main__":
    main()
