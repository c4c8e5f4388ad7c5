# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/nexus/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG
- Write operations require MANAGE_PRODUCTS

Writes go through catalog_service, which refreshes the snapshot; responses
carry the written product as the store returned it.
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import catalog_service
from ..services.catalog_service import CatalogError, ProductNotFound, StaleProductError
from ..services.settings_service import get_settings
from ..services.snapshot_service import get_snapshot
from ..services.store_client import StoreError
from ..validation import ValidationError, product_from_payload, require_int

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _catalog_error(e: CatalogError):
    if isinstance(e, ProductNotFound):
        status = 404
    elif isinstance(e, StaleProductError):
        status = 409
    else:
        status = 400
    return jsonify({"error": str(e), "details": e.details}), status


def _store_failure(e: StoreError):
    return jsonify({"error": "Product update failed", "details": {"cause": str(e)}}), 503


@products_bp.get("")
@require_auth
@require_capability(Capability.VIEW_CATALOG)
def list_products():
    """
    Products from the snapshot.

    Query params:
    - category: exact match (optional)
    - q: case-insensitive match on name or SKU (optional)
    - low_stock: "1" to return only products at or below their minimum
    """
    products = get_snapshot().products
    category = request.args.get("category")
    search = (request.args.get("q") or "").strip().lower()
    if category and category != "All":
        products = [p for p in products if p.category == category]
    if search:
        products = [p for p in products if search in p.name.lower() or search in p.sku.lower()]
    if request.args.get("low_stock") == "1":
        products = [p for p in products if p.is_low_stock]
    return jsonify({"items": [p.to_dict() for p in products]}), 200


@products_bp.post("")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def create_product_route():
    payload = request.get_json(silent=True)
    try:
        product = product_from_payload(payload, default_min_stock=get_settings().default_min_stock)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = catalog_service.add_product(snapshot=get_snapshot(), product=product)
    except CatalogError as e:
        return _catalog_error(e)
    except StoreError as e:
        return _store_failure(e)

    return jsonify(created.to_dict()), 201


@products_bp.put("/<product_id>")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def update_product_route(product_id: str):
    """Full or partial edit; fields not sent keep their snapshot values."""
    snapshot = get_snapshot()
    base = snapshot.find_product(product_id)
    if base is None:
        return jsonify({"error": "Product not found"}), 404

    try:
        product = product_from_payload(
            request.get_json(silent=True),
            default_min_stock=get_settings().default_min_stock,
            base=base,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = catalog_service.edit_product(snapshot=snapshot, product=product)
    except CatalogError as e:
        return _catalog_error(e)
    except StoreError as e:
        return _store_failure(e)

    return jsonify(updated.to_dict()), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def delete_product_route(product_id: str):
    try:
        catalog_service.delete_product(snapshot=get_snapshot(), product_id=product_id)
    except CatalogError as e:
        return _catalog_error(e)
    except StoreError as e:
        return _store_failure(e)

    return jsonify({"ok": True}), 200


@products_bp.put("/<product_id>/stock")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def set_stock_route(product_id: str):
    """Body: {"stock": <int>}. Setting the current value is a no-op."""
    payload = request.get_json(silent=True) or {}
    try:
        new_stock = require_int(payload.get("stock"), "stock")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = catalog_service.update_stock(snapshot=get_snapshot(), product_id=product_id, new_stock=new_stock)
    except CatalogError as e:
        return _catalog_error(e)
    except StoreError as e:
        return _store_failure(e)

    if updated is None:
        return jsonify({"ok": True, "changed": False}), 200
    return jsonify({"ok": True, "changed": True, "product": updated.to_dict()}), 200


@products_bp.post("/<product_id>/restock")
@require_auth
@require_capability(Capability.MANAGE_PRODUCTS)
def restock_route(product_id: str):
    """Body (optional): {"quantity": <int, default 1>}."""
    payload = request.get_json(silent=True) or {}
    try:
        quantity = require_int(payload.get("quantity", 1), "quantity")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if quantity <= 0:
        return jsonify({"error": "quantity must be > 0"}), 400

    try:
        updated = catalog_service.restock(snapshot=get_snapshot(), product_id=product_id, quantity=quantity)
    except CatalogError as e:
        return _catalog_error(e)
    except StoreError as e:
        current_app.logger.error("Restock of %s failed: %s", product_id, e)
        return _store_failure(e)

    return jsonify({"ok": True, "product": updated.to_dict()}), 200
