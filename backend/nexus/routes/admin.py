# Overview: Flask API routes for user administration (role assignment).

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_capability
from ..permissions import Capability, Role
from ..services import identity_service
from ..services.identity_service import IdentityError, UserNotFound
from ..services.store_client import StoreError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def list_users():
    try:
        users = identity_service.list_users()
    except StoreError as e:
        return jsonify({"error": "User lookup failed", "details": {"cause": str(e)}}), 503
    return jsonify({"items": [u.to_dict() for u in users], "roles": [r.value for r in Role]}), 200


@admin_bp.put("/users/<user_id>/role")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def set_user_role(user_id: str):
    """Body: {"role": "ADMIN" | "STAFF" | "GUEST" | "DEVELOPER"}"""
    payload = request.get_json(silent=True) or {}
    role = payload.get("role")
    if not role:
        return jsonify({"error": "role required"}), 400

    # Only developers may hand out the developer role
    if str(role).strip().upper() == Role.DEVELOPER.value and g.current_user.role != Role.DEVELOPER.value:
        return jsonify({"error": "Permission denied"}), 403

    try:
        user = identity_service.set_role(user_id, role, actor_id=g.current_user.id)
    except UserNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except IdentityError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except StoreError as e:
        return jsonify({"error": "Role update failed", "details": {"cause": str(e)}}), 503

    return jsonify({"user": user.to_dict()}), 200
