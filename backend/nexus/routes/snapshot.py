# Overview: Flask API routes exposing the domain snapshot and dashboard summary.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services.snapshot_service import get_snapshot

snapshot_bp = Blueprint("snapshot", __name__, url_prefix="/api/snapshot")


@snapshot_bp.get("")
@require_auth
@require_capability(Capability.VIEW_CATALOG)
def full_snapshot():
    return jsonify(get_snapshot().to_dict()), 200


@snapshot_bp.post("/refresh")
@require_auth
@require_capability(Capability.VIEW_CATALOG)
def refresh_snapshot():
    """Refetch everything. Always safe; partial failures are reported, not raised."""
    report = get_snapshot().refresh()
    return jsonify(report.to_dict()), 200 if report.ok else 207


@snapshot_bp.get("/summary")
@require_auth
@require_capability(Capability.VIEW_DASHBOARD)
def dashboard_summary():
    return jsonify(get_snapshot().summary()), 200
