# Overview: Flask API routes for checkout and order history.

# backend/nexus/routes/checkout.py
"""
Checkout routes.

The request cart is merged per product (repeated lines add up, first price
wins) before it reaches the checkout engine. The tax rate is the one in the
current settings at the time of the request.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..cart import Cart, CartError
from ..decorators import require_auth, require_capability
from ..domain import Order
from ..permissions import Capability
from ..services import checkout_service, store_client
from ..services.checkout_service import CheckoutError, CheckoutUnavailable, PartialCheckoutFailure
from ..services.settings_service import get_settings
from ..services.snapshot_service import get_snapshot
from ..services.store_client import StoreError
from ..validation import ValidationError, parse_cart_lines

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api")


@checkout_bp.post("/checkout")
@require_auth
@require_capability(Capability.CHECKOUT)
def checkout_route():
    """
    Body: {"clientId": "...", "items": [{"productId": "...", "quantity": 2, "price": 10.0}, ...]}

    200 with the order totals on success.
    400 when the request was rejected before anything was written.
    503 when the order could not be created (nothing written).
    502 when the order exists but a later step failed; the response names the
        order, the failed step and the steps that did complete.
    """
    payload = request.get_json(silent=True) or {}
    client_id = payload.get("clientId")
    if not client_id:
        return jsonify({"error": "clientId required"}), 400

    snapshot = get_snapshot()
    try:
        cart = Cart.from_lines(parse_cart_lines(payload.get("items")), snapshot)
    except (ValidationError, CartError) as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = checkout_service.checkout(
            snapshot=snapshot,
            client_id=client_id,
            cart_items=cart.items(),
            tax_rate=get_settings().tax_rate,
            staff_id=g.current_user.id,
        )
    except PartialCheckoutFailure as e:
        return jsonify({
            "error": str(e),
            "orderId": e.order_id,
            "failedStep": e.step,
            "completedSteps": e.completed_steps,
            "details": e.details,
        }), 502
    except CheckoutUnavailable as e:
        return jsonify({"error": str(e), "details": e.details}), 503
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Checkout failed unexpectedly")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result.to_dict()), 200


@checkout_bp.get("/orders")
@require_auth
@require_capability(Capability.CHECKOUT)
def list_orders():
    """Newest orders from the snapshot. ``?clientId=`` filters by client."""
    orders = get_snapshot().orders
    client_id = request.args.get("clientId")
    if client_id:
        orders = [o for o in orders if o.client_id == client_id]
    return jsonify({"items": [o.to_dict() for o in orders]}), 200


@checkout_bp.get("/orders/<order_id>")
@require_auth
@require_capability(Capability.CHECKOUT)
def get_order(order_id: str):
    """Read through to the store so orders older than the snapshot window resolve."""
    try:
        row = store_client.select_order(order_id)
    except StoreError as e:
        return jsonify({"error": "Order lookup failed", "details": {"cause": str(e)}}), 503
    if row is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": Order.from_row(row).to_dict()}), 200
