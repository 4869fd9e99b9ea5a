# cajaledger/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the working directory by default
    DATABASE_URL = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///cajaledger.sqlite3",  # default local location
    )
    SQL_ECHO = os.environ.get("SQL_ECHO", "false").lower() == "true"

    # Dashboard alerting: products at or below this stock count as "low"
    LOW_STOCK_THRESHOLD = _env_int("LOW_STOCK_THRESHOLD", 5)

    # Ledger listing cap (newest N movements)
    MOVEMENT_HISTORY_LIMIT = _env_int("MOVEMENT_HISTORY_LIMIT", 100)

    # Register analytics look-back window
    ANALYTICS_WINDOW_DAYS = _env_int("ANALYTICS_WINDOW_DAYS", 30)
