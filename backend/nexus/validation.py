from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Integer, BigInteger, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .domain import Client, Product
from .money import round_money
from .models import Client as ClientModel, Product as ProductModel

# Maximum unit price: 9,999,999,999.99 fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")

CLIENT_STATUSES = {"active", "inactive"}


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class PayloadPolicy:
    """
    Central policy layer for camelCase JSON payloads:
    - fields: camelCase key -> snake_case store column (security boundary)
    - required_on_create: camelCase keys required for POST
    - ignored: keys the front-end sends back but that are never writable
    """
    fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()
    ignored: frozenset[str] = field(default_factory=lambda: frozenset({"id"}))


PRODUCT_POLICY = PayloadPolicy(
    fields={
        "sku": "sku",
        "name": "name",
        "category": "category",
        "price": "price",
        "cost": "cost",
        "stock": "stock",
        "minStock": "min_stock",
        "unit": "unit",
        "imageUrl": "image_url",
    },
    required_on_create=frozenset({"sku", "name", "price"}),
)

CLIENT_POLICY = PayloadPolicy(
    fields={
        "name": "name",
        "companyName": "company_name",
        "email": "email",
        "phone": "phone",
        "balance": "balance",
        "status": "status",
    },
    required_on_create=frozenset({"name"}),
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, key: str, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, (Integer, BigInteger)):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer")

    if isinstance(coltype, Numeric):
        try:
            return round_money(value)
        except ValueError:
            raise ValidationError(f"{key} must be a number")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: Any,
    policy: PayloadPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming camelCase JSON object against:
    - the policy allowlist (fields, ignored)
    - SQLAlchemy column metadata (nullable, type, String length)
    - required_on_create (if partial=False)
    Returns a snake_case patch dict keyed by store column.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(k for k in policy.required_on_create if payload.get(k) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for key, raw in payload.items():
        if key in policy.ignored:
            continue
        column_key = policy.fields.get(key)
        if column_key is None:
            raise ValidationError(f"Field not allowed: {key}")
        col = cols[column_key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[column_key] = None
            continue

        val = _coerce_value(col, key, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            if key in policy.required_on_create:
                raise ValidationError(f"{key} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{key} exceeds max length {col.type.length}")

        patch[column_key] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by column metadata alone."""
    for key in ("price", "cost"):
        value = patch.get(key)
        if value is None:
            continue
        if value < 0:
            raise ValidationError(f"{key} must be >= 0")
        if value > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")
    if patch.get("min_stock") is not None and patch["min_stock"] < 0:
        raise ValidationError("minStock must be >= 0")


def enforce_rules_client(patch: dict) -> None:
    status = patch.get("status")
    if status is not None and status not in CLIENT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(CLIENT_STATUSES))}")


def product_from_payload(
    payload: Any,
    *,
    default_min_stock: int,
    base: Optional[Product] = None,
) -> Product:
    """
    Build a Product from a camelCase payload.

    Without ``base`` this is create semantics (required fields enforced,
    ``minStock`` defaulting to the configured default). With ``base`` the
    payload is merged over the previously known product.
    """
    patch = validate_payload(model=ProductModel, payload=payload, policy=PRODUCT_POLICY, partial=base is not None)
    enforce_rules_product(patch)

    if base is not None:
        return replace(
            base,
            sku=patch.get("sku", base.sku),
            name=patch.get("name", base.name),
            category=patch.get("category", base.category),
            price=patch.get("price", base.price),
            cost=patch.get("cost", base.cost),
            stock=patch.get("stock", base.stock),
            min_stock=patch.get("min_stock", base.min_stock),
            unit=patch.get("unit", base.unit),
            image_url=patch.get("image_url", base.image_url),
        )

    return Product(
        id=None,
        sku=patch["sku"],
        name=patch["name"],
        category=patch.get("category") or "",
        price=patch["price"],
        cost=patch.get("cost") or round_money(0),
        stock=patch.get("stock") or 0,
        min_stock=patch["min_stock"] if patch.get("min_stock") is not None else default_min_stock,
        unit=patch.get("unit") or "pcs",
        image_url=patch.get("image_url"),
    )


def client_from_payload(payload: Any) -> Client:
    patch = validate_payload(model=ClientModel, payload=payload, policy=CLIENT_POLICY, partial=False)
    enforce_rules_client(patch)
    return Client(
        id=None,
        name=patch["name"],
        company_name=patch.get("company_name") or "",
        email=patch.get("email"),
        phone=patch.get("phone"),
        balance=patch.get("balance") or round_money(0),
        status=patch.get("status") or "active",
    )


def require_amount(value: Any, key: str = "amount") -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} required")
    try:
        return round_money(value)
    except ValueError:
        raise ValidationError(f"{key} must be a number")


def require_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{key} must be an integer")


def parse_cart_lines(items: Any) -> list[dict]:
    """
    Validate raw cart lines: ``[{"productId"|"id", "quantity", "price"}, ...]``.
    Duplicates are allowed here; merging them is the Cart's job.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("productId") or item.get("id")
        if not product_id or not isinstance(product_id, str):
            raise ValidationError(f"items[{index}].productId required")
        quantity = require_int(item.get("quantity"), f"items[{index}].quantity")
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        price = require_amount(item.get("price"), f"items[{index}].price")
        if price < 0:
            raise ValidationError(f"items[{index}].price must be >= 0")
        lines.append({"product_id": product_id, "quantity": quantity, "price": price})
    return lines


def parse_settings_patch(payload: Any) -> dict:
    """camelCase settings payload -> snake_case patch (values validated by settings_service)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    mapping = {
        "companyName": "company_name",
        "currency": "currency",
        "taxRate": "tax_rate",
        "defaultMinStock": "default_min_stock",
    }
    patch = {}
    for key, value in payload.items():
        if key not in mapping:
            raise ValidationError(f"Field not allowed: {key}")
        patch[mapping[key]] = value
    return patch


def parse_telegram_user(payload: Any) -> dict:
    """Subset of Telegram's WebAppUser that the identity adapter consumes."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    telegram_id = require_int(payload.get("id"), "id")
    return {
        "id": telegram_id,
        "first_name": (payload.get("first_name") or "").strip(),
        "last_name": (payload.get("last_name") or "").strip(),
        "username": payload.get("username"),
        "photo_url": payload.get("photo_url"),
    }

