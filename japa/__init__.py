"""
Japa — Chant Recording, Rewards & Leaderboard Backend
=======================================================
Records each chant (jap), credits a coin for it, keeps running totals and
daily aggregates, unlocks one-time achievements (first chant, 100 chants,
1000 coins, seven-day streak), ranks chanters by balance, and pushes
balance and achievement updates to the chanter's live sessions.

Package layout::

    japa/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Thresholds, achievement catalogue, rupee display
    ├── errors.py          # NotFound / Conflict / Validation / Unavailable
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # accounts, actions, transactions, achievements
    ├── engine/
    │   ├── achievements.py # Pure achievement evaluation
    │   ├── streak.py      # Calendar-day bucketing + streak counting
    │   └── locks.py       # Per-account mutual exclusion
    ├── services/
    │   ├── recording_service.py   # The jap recording pipeline
    │   ├── ledger_service.py      # Ledger reads, stats, pagination
    │   ├── account_service.py     # Account store + profile edits
    │   ├── leaderboard_service.py # Ranked leaderboard
    │   └── notifier.py            # Per-account real-time channel
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT verification, DI, error mapping
        └── routes/        # REST endpoints + WebSocket
"""

__version__ = "0.1.0"
