# backend/fixtrack/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///fixtrack.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Seconds a SQLite writer waits on BEGIN IMMEDIATE; engine options are built in create_app
    SQLITE_BUSY_TIMEOUT = float(os.environ.get("SQLITE_BUSY_TIMEOUT", "15"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Ledger tuning
    BALANCE_EPSILON = 0.001
    NUMBER_PAD = 3
    RETRY_ATTEMPTS = 3
    RETRY_BACKOFF_BASE = 0.1


def engine_options_for(database_uri: str, busy_timeout: float) -> dict:
    """Engine options for the final store URI; only SQLite drivers take a busy timeout."""
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": busy_timeout}}
    return {}
