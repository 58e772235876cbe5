# backend/shopledger/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Day boundaries for daily/monthly/yearly totals
    SHOP_TIMEZONE = os.environ.get("SHOP_TIMEZONE", "Asia/Dhaka")

    # Quick-entry banners auto-dismiss after this many seconds
    STATUS_BANNER_SECONDS = int(os.environ.get("STATUS_BANNER_SECONDS", "6"))

    # Device-local flags (local admin bypass), relative to the instance folder
    LOCAL_FLAGS_FILE = os.environ.get("LOCAL_FLAGS_FILE", "device_flags.json")

    # Credentials for POST /api/session/local-admin; the endpoint refuses while the
    # hash is unset (generate one with `flask session hash-password`)
    LOCAL_ADMIN_USERNAME = os.environ.get("LOCAL_ADMIN_USERNAME", "admin")
    LOCAL_ADMIN_PASSWORD_HASH = os.environ.get("LOCAL_ADMIN_PASSWORD_HASH")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }
