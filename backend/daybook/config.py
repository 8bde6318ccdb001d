# backend/daybook/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/daybook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///daybook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Default window for GET /api/cash-drawer/history when no range is given
    CASH_DRAWER_HISTORY_DAYS = int(os.environ.get("CASH_DRAWER_HISTORY_DAYS", "30"))

    # Presentation only; amounts are stored in minor units
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "Rs.")
