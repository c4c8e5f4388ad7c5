# backend/nexus/routes/system.py
"""System health endpoint."""

import time
from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..services.snapshot_service import get_snapshot

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    snapshot = get_snapshot()
    body = {
        "status": "ok" if database["status"] == "healthy" else "degraded",
        "checks": {
            "database": database,
            "snapshot": {
                "state": snapshot.state.value,
                "products": len(snapshot.products),
                "orders": len(snapshot.orders),
            },
        },
    }
    return body, 200 if database["status"] == "healthy" else 503
