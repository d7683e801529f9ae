"""
japa.config — YAML Configuration Loader
=========================================

Reads ``config.yaml`` for soft, non-secret settings (app identity, reward
policy, calendar timezone, leaderboard defaults).  Secrets and
infrastructure (``DATABASE_URL``, ``JWT_SECRET``) come from the
environment / ``.env``.

Usage::

    from japa.config import load_config

    cfg = load_config()          # reads ./config.yaml if present
    print(cfg.app_name)          # "Narayan Naam Jap"
    print(cfg.tz)                # zoneinfo.ZoneInfo(key='UTC')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class JapaConfig:
    """Immutable configuration loaded from ``config.yaml``.

    ``timezone`` decides where calendar days start and end for streaks,
    daily stats and the ``today`` leaderboard filter.
    """

    app_name: str = "Narayan Naam Jap"
    port: int = 3000
    timezone: str = "UTC"

    # Coins credited per recorded jap
    coins_per_jap: int = 1

    # Leaderboard
    leaderboard_default_limit: int = 50

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> JapaConfig:
    """Read *path* and return a :class:`JapaConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  When omitted,
        ``config.yaml`` in the working directory is used if it exists and
        built-in defaults otherwise.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* doesn't exist.
    ValueError
        If a value is out of range or the timezone is unknown.
    """
    if path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)
        if not config_path.exists():
            return JapaConfig()
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {config_path.resolve()}\n"
                "Hint: copy config.yaml.example → config.yaml and edit it."
            )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = JapaConfig()
    cfg = JapaConfig(
        app_name=raw.get("app_name", defaults.app_name),
        port=int(raw.get("port", defaults.port)),
        timezone=raw.get("timezone", defaults.timezone),
        coins_per_jap=int(raw.get("coins_per_jap", defaults.coins_per_jap)),
        leaderboard_default_limit=int(
            raw.get("leaderboard_default_limit", defaults.leaderboard_default_limit)
        ),
    )
    _validate(cfg)
    return cfg


def _validate(cfg: JapaConfig) -> None:
    if cfg.coins_per_jap < 1:
        raise ValueError(f"coins_per_jap must be >= 1, got {cfg.coins_per_jap}")
    if not 1 <= cfg.leaderboard_default_limit <= 100:
        raise ValueError(
            "leaderboard_default_limit must be between 1 and 100, "
            f"got {cfg.leaderboard_default_limit}"
        )
    try:
        ZoneInfo(cfg.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {cfg.timezone!r}") from exc
