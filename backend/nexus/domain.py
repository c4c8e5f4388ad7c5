# backend/nexus/domain.py
"""
Domain read model.

The store speaks snake_case row dicts; the front-end speaks camelCase JSON.
Both directions are mapped here explicitly:

    store row  --from_row-->  dataclass  --to_dict-->  JSON (camelCase)
    dataclass  --to_row---->  store row

Payload parsing (JSON -> dataclass) lives in validation.py so that input
errors are raised in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .money import ZERO, round_money, to_decimal
from .time_utils import to_utc_z

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_CLIENT = "Unknown Client"
UNKNOWN_MOVEMENT_PRODUCT = "Unknown"


class MovementType(str, Enum):
    RESTOCK = "restock"
    SALE = "sale"
    ADJUSTMENT = "adjustment"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ITEMS_WRITTEN = "items_written"
    BALANCE_APPLIED = "balance_applied"
    STOCK_APPLIED = "stock_applied"
    COMPLETED = "completed"


def _money(value) -> Decimal:
    return round_money(value) if value is not None else ZERO


def _to_float(value: Decimal) -> float:
    return float(value)


@dataclass(frozen=True)
class Product:
    id: Optional[str]
    sku: str
    name: str
    category: str
    price: Decimal
    cost: Decimal
    stock: int
    min_stock: int
    unit: str
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Product":
        return cls(
            id=row["id"],
            sku=row.get("sku") or "",
            name=row.get("name") or "",
            category=row.get("category") or "",
            price=_money(row.get("price")),
            cost=_money(row.get("cost")),
            stock=int(row.get("stock") or 0),
            min_stock=int(row.get("min_stock") or 0),
            unit=row.get("unit") or "pcs",
            image_url=row.get("image_url"),
        )

    def to_row(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "cost": self.cost,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "unit": self.unit,
            "image_url": self.image_url,
        }

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "price": _to_float(self.price),
            "cost": _to_float(self.cost),
            "stock": self.stock,
            "minStock": self.min_stock,
            "unit": self.unit,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class Client:
    id: Optional[str]
    name: str
    company_name: str
    email: Optional[str]
    phone: Optional[str]
    balance: Decimal
    status: str = "active"

    @classmethod
    def from_row(cls, row: dict) -> "Client":
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            company_name=row.get("company_name") or "",
            email=row.get("email"),
            phone=row.get("phone"),
            balance=_money(row.get("balance")),
            status=row.get("status") or "active",
        )

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "company_name": self.company_name,
            "email": self.email,
            "phone": self.phone,
            "balance": self.balance,
            "status": self.status,
        }

    @property
    def has_debt(self) -> bool:
        return self.balance < 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "companyName": self.company_name,
            "email": self.email,
            "phone": self.phone,
            "balance": _to_float(self.balance),
            "status": self.status,
        }


@dataclass(frozen=True)
class OrderLine:
    """What was sold, at the price it was sold for."""
    product_id: str
    quantity: int
    price_at_sale: Decimal
    name: str = UNKNOWN_PRODUCT
    sku: str = ""
    unit: str = "pcs"
    image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "OrderLine":
        product = row.get("products") or {}
        return cls(
            product_id=row["product_id"],
            quantity=int(row["quantity"]),
            price_at_sale=_money(row.get("price_at_sale")),
            name=product.get("name") or UNKNOWN_PRODUCT,
            sku=product.get("sku") or "",
            unit=product.get("unit") or "pcs",
            image_url=product.get("image_url"),
        )

    @property
    def line_total(self) -> Decimal:
        return round_money(self.price_at_sale * self.quantity)

    def to_dict(self) -> dict:
        return {
            "id": self.product_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": _to_float(self.price_at_sale),
            "priceAtSale": _to_float(self.price_at_sale),
            "lineTotal": _to_float(self.line_total),
            "name": self.name,
            "sku": self.sku,
            "unit": self.unit,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class Order:
    id: str
    client_id: str
    staff_id: Optional[str]
    total_amount: Decimal
    date: Optional[datetime]
    status: str
    client_name: str = UNKNOWN_CLIENT
    items: tuple[OrderLine, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: dict) -> "Order":
        client = row.get("clients") or {}
        return cls(
            id=row["id"],
            client_id=row["client_id"],
            staff_id=row.get("staff_id"),
            total_amount=_money(row.get("total_amount")),
            date=row.get("date"),
            status=row.get("status") or "",
            client_name=client.get("company_name") or UNKNOWN_CLIENT,
            items=tuple(OrderLine.from_row(item) for item in row.get("order_items") or ()),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED.value

    @property
    def is_missing_items(self) -> bool:
        """Order total was recorded but no line items landed."""
        return not self.items and self.total_amount > 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "staffId": self.staff_id,
            "items": [item.to_dict() for item in self.items],
            "totalAmount": _to_float(self.total_amount),
            "date": to_utc_z(self.date),
            "status": self.status,
        }


@dataclass(frozen=True)
class StockMovement:
    id: int
    product_id: str
    type: str
    quantity: int
    date: Optional[datetime]
    note: Optional[str] = None
    product_name: str = UNKNOWN_MOVEMENT_PRODUCT

    @classmethod
    def from_row(cls, row: dict) -> "StockMovement":
        product = row.get("products") or {}
        return cls(
            id=row["id"],
            product_id=row["product_id"],
            type=row["type"],
            quantity=int(row["quantity"]),
            date=row.get("date") or row.get("created_at"),
            note=row.get("note"),
            product_name=product.get("name") or UNKNOWN_MOVEMENT_PRODUCT,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "date": to_utc_z(self.date),
            "note": self.note,
        }


@dataclass(frozen=True)
class CartItem:
    """A cart entry; price is the catalog price captured when it was added."""
    product_id: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class AppSettings:
    company_name: str
    currency: str
    tax_rate: Decimal
    default_min_stock: int

    def to_dict(self) -> dict:
        return {
            "companyName": self.company_name,
            "currency": self.currency,
            "taxRate": _to_float(to_decimal(self.tax_rate)),
            "defaultMinStock": self.default_min_stock,
        }


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str
    telegram_id: Optional[int] = None
    avatar_url: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "User":
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            role=row.get("role") or "GUEST",
            telegram_id=row.get("telegram_id"),
            avatar_url=row.get("avatar_url"),
            username=row.get("username"),
            phone=row.get("phone"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "telegramId": self.telegram_id,
            "name": self.name,
            "role": self.role,
            "avatarUrl": self.avatar_url,
            "username": self.username,
            "phone": self.phone,
        }
