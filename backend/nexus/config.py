# backend/nexus/config.py
from __future__ import annotations
import os
from decimal import Decimal


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/nexus.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #hosted store (e.g. postgresql://...)
        "sqlite:///nexus.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Defaults for the in-memory AppSettings
    NEXUS_COMPANY_NAME = os.environ.get("NEXUS_COMPANY_NAME", "Nexus B2B")
    NEXUS_CURRENCY = os.environ.get("NEXUS_CURRENCY", "$")
    NEXUS_TAX_RATE = Decimal(os.environ.get("NEXUS_TAX_RATE", "0"))
    NEXUS_DEFAULT_MIN_STOCK = int(os.environ.get("NEXUS_DEFAULT_MIN_STOCK", "5"))

    # Snapshot read shapes
    NEXUS_ORDER_SNAPSHOT_LIMIT = int(os.environ.get("NEXUS_ORDER_SNAPSHOT_LIMIT", "100"))
    NEXUS_MOVEMENT_SNAPSHOT_LIMIT = int(os.environ.get("NEXUS_MOVEMENT_SNAPSHOT_LIMIT", "50"))

    # Checkout lets stock go negative unless this is turned off
    NEXUS_ALLOW_NEGATIVE_STOCK = _env_bool("NEXUS_ALLOW_NEGATIVE_STOCK", True)

    NEXUS_LOG_LEVEL = os.environ.get("NEXUS_LOG_LEVEL", "INFO")
