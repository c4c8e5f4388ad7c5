# Overview: Flask API routes for client accounts and payments.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import client_service
from ..services.client_service import ClientLedgerError, ClientNotFound
from ..services.snapshot_service import get_snapshot
from ..services.store_client import StoreError
from ..validation import ValidationError, client_from_payload, require_amount

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
@require_capability(Capability.MANAGE_CLIENTS)
def list_clients():
    clients = get_snapshot().clients
    if request.args.get("debt") == "1":
        clients = [c for c in clients if c.has_debt]
    return jsonify({"items": [c.to_dict() for c in clients]}), 200


@clients_bp.post("")
@require_auth
@require_capability(Capability.MANAGE_CLIENTS)
def create_client_route():
    try:
        client = client_from_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = client_service.add_client(snapshot=get_snapshot(), client=client)
    except StoreError as e:
        return jsonify({"error": "Client creation failed", "details": {"cause": str(e)}}), 503

    return jsonify(created.to_dict()), 201


@clients_bp.post("/<client_id>/payments")
@require_auth
@require_capability(Capability.MANAGE_CLIENTS)
def record_payment_route(client_id: str):
    """Body: {"amount": <number>}. Added to the balance (negative = debit)."""
    payload = request.get_json(silent=True) or {}
    try:
        amount = require_amount(payload.get("amount"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = client_service.record_payment(snapshot=get_snapshot(), client_id=client_id, amount=amount)
    except ClientNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ClientLedgerError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except StoreError as e:
        return jsonify({"error": "Payment failed", "details": {"cause": str(e)}}), 503

    return jsonify(updated.to_dict()), 200
