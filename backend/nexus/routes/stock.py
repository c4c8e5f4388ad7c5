# Overview: Flask API routes for the stock movement ledger and reconciliation reports.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import ledger_service, reconciliation_service
from ..services.snapshot_service import get_snapshot
from ..services.store_client import StoreError

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("/movements")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def list_movements():
    """
    Recent movements from the snapshot, or the full history of one product
    with ``?productId=`` (read from the store).
    """
    product_id = request.args.get("productId")
    if not product_id:
        return jsonify({"items": [m.to_dict() for m in get_snapshot().stock_movements]}), 200

    limit = request.args.get("limit", type=int)
    try:
        movements = ledger_service.list_movements(product_id, limit=limit)
        total = ledger_service.ledger_total(product_id)
    except StoreError as e:
        return jsonify({"error": "Movement lookup failed", "details": {"cause": str(e)}}), 503
    return jsonify({"items": [m.to_dict() for m in movements], "ledgerTotal": total}), 200


@stock_bp.get("/reconciliation")
@require_auth
@require_capability(Capability.RECONCILE)
def reconciliation():
    try:
        stock = reconciliation_service.stock_discrepancies()
        orders = reconciliation_service.incomplete_orders()
    except StoreError as e:
        return jsonify({"error": "Reconciliation failed", "details": {"cause": str(e)}}), 503
    return jsonify({
        "ok": not stock and not orders,
        "stock": stock,
        "orders": orders,
    }), 200
