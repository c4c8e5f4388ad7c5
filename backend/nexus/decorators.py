# Overview: Request identity and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import has_capability
from .services import identity_service
from .services.store_client import StoreError

USER_HEADER = "X-User-Id"


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def require_auth(f):
    """
    Resolve the caller from the X-User-Id header.

    The header is set by the identity gateway in front of this service after
    it has verified the Telegram init data; this layer only looks the user up.
    Sets g.current_user (domain User). Returns 401 for a missing or unknown id.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_HEADER) or "").strip()
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        try:
            user = identity_service.get_user(user_id)
        except StoreError:
            return jsonify({"error": "Identity store unavailable"}), 503

        if user is None:
            return jsonify({"error": "Unknown user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability):
    """Require the authenticated user's role to grant ``capability``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            role = g.current_user.role
            if not has_capability(role, capability):
                return jsonify({
                    "error": "Permission denied",
                    "required_capability": capability.value,
                    "role": role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
