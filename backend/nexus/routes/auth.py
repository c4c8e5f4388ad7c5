# Overview: Flask API routes for sign-in and session lifecycle; login refreshes the shared snapshot.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import identity_service
from ..services.snapshot_service import get_snapshot
from ..services.store_client import StoreError
from ..validation import ValidationError, parse_telegram_user

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/telegram")
def telegram_login():
    """
    Sign in with a Telegram WebApp user payload.

    Body: {"id": 123, "first_name": "...", "last_name": "...", "username": "...", "photo_url": "..."}
    Unknown Telegram ids get a new GUEST account. A successful sign-in loads
    the snapshot.

    The payload is trusted as sent (Telegram's initDataUnsafe); no initData
    signature is checked. The returned user id is what X-User-Id carries, so
    this endpoint must only be reachable through the identity gateway.
    """
    try:
        telegram_user = parse_telegram_user(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        user, created = identity_service.find_or_create_telegram_user(telegram_user)
    except StoreError as e:
        return jsonify({"error": "Sign-in failed", "details": {"cause": str(e)}}), 503

    report = get_snapshot().refresh()
    current_app.logger.info("User %s signed in (role %s)", user.id, user.role)
    return jsonify({"user": user.to_dict(), "created": created, "refresh": report.to_dict()}), 201 if created else 200


@auth_bp.get("/me")
@require_auth
def me():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/logout")
@require_auth
def logout():
    """Ends the caller's session only; the shared snapshot stays loaded for other users."""
    current_app.logger.info("User %s signed out", g.current_user.id)
    return jsonify({"ok": True}), 200
