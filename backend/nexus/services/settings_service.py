from __future__ import annotations

from dataclasses import replace

from flask import current_app

from ..domain import AppSettings
from ..money import to_decimal

EXTENSION_KEY = "nexus.settings"

SETTINGS_KEYS = {"company_name", "currency", "tax_rate", "default_min_stock"}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


def defaults_from_config(config) -> AppSettings:
    return AppSettings(
        company_name=config["NEXUS_COMPANY_NAME"],
        currency=config["NEXUS_CURRENCY"],
        tax_rate=to_decimal(config["NEXUS_TAX_RATE"]),
        default_min_stock=int(config["NEXUS_DEFAULT_MIN_STOCK"]),
    )


def init_app(app) -> AppSettings:
    settings = defaults_from_config(app.config)
    app.extensions[EXTENSION_KEY] = settings
    return settings


def get_settings() -> AppSettings:
    return current_app.extensions[EXTENSION_KEY]


def _validate_text(key: str, value, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsValidationError(f"{key} must be a non-empty string")
    value = value.strip()
    if len(value) > max_length:
        raise SettingsValidationError(f"{key} exceeds max length {max_length}")
    return value


def _validate_patch(patch: dict) -> dict:
    unknown = set(patch) - SETTINGS_KEYS
    if unknown:
        raise SettingsValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

    cleaned = {}
    if "company_name" in patch:
        cleaned["company_name"] = _validate_text("companyName", patch["company_name"], 255)
    if "currency" in patch:
        cleaned["currency"] = _validate_text("currency", patch["currency"], 8)
    if "tax_rate" in patch:
        try:
            rate = to_decimal(patch["tax_rate"])
        except ValueError:
            raise SettingsValidationError("taxRate must be a number")
        if rate < 0 or rate > 100:
            raise SettingsValidationError("taxRate must be between 0 and 100")
        cleaned["tax_rate"] = rate
    if "default_min_stock" in patch:
        value = patch["default_min_stock"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SettingsValidationError("defaultMinStock must be a non-negative integer")
        cleaned["default_min_stock"] = value
    return cleaned


def update_settings(patch: dict) -> AppSettings:
    """
    Apply a partial update to the in-memory settings.

    Settings are process-local and not persisted; a restart goes back to the
    configured defaults. Orders already placed keep the tax they were charged.
    """
    cleaned = _validate_patch(patch)
    settings = replace(get_settings(), **cleaned)
    current_app.extensions[EXTENSION_KEY] = settings
    current_app.logger.info("Settings updated: %s", ", ".join(sorted(cleaned)) or "no changes")
    return settings
