# Overview: Flask API routes for application settings.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import settings_service
from ..services.settings_service import SettingsValidationError
from ..validation import ValidationError, parse_settings_patch

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings_route():
    return jsonify(settings_service.get_settings().to_dict()), 200


@settings_bp.put("")
@require_auth
@require_capability(Capability.MANAGE_SETTINGS)
def update_settings_route():
    try:
        patch = parse_settings_patch(request.get_json(silent=True))
        settings = settings_service.update_settings(patch)
    except (ValidationError, SettingsValidationError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(settings.to_dict()), 200
