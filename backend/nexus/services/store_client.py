# backend/nexus/services/store_client.py
"""
Persistent Store Client.

Row-level CRUD and join queries over products, clients, orders,
order_items, stock_movements and users.

Nexus Store Invariants (authoritative)

- Every public call is one unit of work: it commits on success and rolls
  back on failure. There are NO multi-call transactions; callers that chain
  calls (checkout) own the consequences of a failure in the middle.
- Rows cross this boundary as snake_case dicts. Nothing above this module
  touches ORM instances.
- Relative writes (stock, balance) are single UPDATE statements computed
  in SQL (SET stock = stock + :delta), so concurrent writers cannot lose
  each other's updates.
- Absolute stock writes are compare-and-set (WHERE stock = :expected); a
  mismatch raises StaleReadError instead of overwriting a concurrent change.
- Any SQLAlchemy failure surfaces as StoreUnavailable.
"""

from __future__ import annotations

from functools import wraps
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Client, Order, OrderItem, Product, StockMovement, User
from ..time_utils import utcnow


class StoreError(Exception):
    """Base class for store-level failures."""


class StoreUnavailable(StoreError):
    """A store call failed outright (connectivity, constraint, auth rejection)."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        message = f"Store call '{operation}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class RowNotFound(StoreError):
    def __init__(self, table: str, row_id):
        super().__init__(f"{table} row {row_id} not found")
        self.table = table
        self.row_id = row_id


class StaleReadError(StoreError):
    """Compare-and-set failed: the row changed since the caller last read it."""

    def __init__(self, table: str, row_id, expected, actual):
        super().__init__(
            f"{table} row {row_id} changed concurrently (expected {expected}, found {actual})"
        )
        self.table = table
        self.row_id = row_id
        self.expected = expected
        self.actual = actual


class StockFloorViolation(StoreError):
    """Guarded decrement refused because it would take stock below the floor."""

    def __init__(self, product_id, delta: int, floor: int, current: int):
        super().__init__(
            f"Stock for product {product_id} is {current}; applying {delta} would go below {floor}"
        )
        self.product_id = product_id
        self.delta = delta
        self.floor = floor
        self.current = current


def _store_call(operation: str):
    """Run the wrapped body as one committed unit of work."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                result = fn(*args, **kwargs)
                db.session.commit()
                return result
            except StoreError:
                db.session.rollback()
                raise
            except SQLAlchemyError as exc:
                db.session.rollback()
                current_app.logger.error("Store call %s failed: %s", operation, exc)
                raise StoreUnavailable(operation, exc) from exc
        return wrapper
    return decorator


def _columns(obj) -> dict:
    return {c.key: getattr(obj, c.key) for c in obj.__table__.columns}


def _product_row(product: Product) -> dict:
    return _columns(product)


def _product_ref(product: Optional[Product]) -> Optional[dict]:
    if product is None:
        return None
    return {
        "name": product.name,
        "sku": product.sku,
        "unit": product.unit,
        "image_url": product.image_url,
    }


def _order_row(order: Order) -> dict:
    row = _columns(order)
    row["clients"] = {"company_name": order.client.company_name} if order.client else None
    row["order_items"] = []
    for item in order.items:
        item_row = _columns(item)
        item_row["products"] = _product_ref(item.product)
        row["order_items"].append(item_row)
    return row


def _movement_row(movement: StockMovement) -> dict:
    row = _columns(movement)
    row["date"] = movement.created_at
    row["products"] = {"name": movement.product.name} if movement.product else None
    return row


def _reload_product(product_id: str) -> Product:
    product = (
        db.session.query(Product)
        .filter(Product.id == product_id)
        .populate_existing()
        .first()
    )
    if product is None:
        raise RowNotFound("products", product_id)
    return product


def _reload_client(client_id: str) -> Client:
    client = (
        db.session.query(Client)
        .filter(Client.id == client_id)
        .populate_existing()
        .first()
    )
    if client is None:
        raise RowNotFound("clients", client_id)
    return client


# =============================================================================
# PRODUCTS
# =============================================================================

@_store_call("select_products")
def select_products(*, include_archived: bool = False) -> list[dict]:
    query = db.session.query(Product).populate_existing()
    if not include_archived:
        query = query.filter(Product.deleted_at.is_(None))
    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    return [_product_row(p) for p in products]


@_store_call("select_product")
def select_product(product_id: str) -> Optional[dict]:
    product = db.session.query(Product).filter(Product.id == product_id).populate_existing().first()
    return _product_row(product) if product else None


@_store_call("insert_product")
def insert_product(row: dict) -> dict:
    product = Product(**row)
    db.session.add(product)
    db.session.flush()
    return _product_row(product)


def _compare_and_set_product(product_id: str, values: dict, expected_stock: int) -> dict:
    updated = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.stock == expected_stock)
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        current = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
        if current is None:
            raise RowNotFound("products", product_id)
        raise StaleReadError("products", product_id, expected_stock, current)
    return _product_row(_reload_product(product_id))


@_store_call("update_product")
def update_product(product_id: str, row: dict, *, expected_stock: int) -> dict:
    """Write the full product row, guarded on the stock value the caller saw."""
    return _compare_and_set_product(product_id, dict(row), expected_stock)


@_store_call("set_stock")
def set_stock(product_id: str, new_stock: int, *, expected_stock: int) -> dict:
    return _compare_and_set_product(product_id, {"stock": new_stock}, expected_stock)


@_store_call("increment_stock")
def increment_stock(product_id: str, delta: int, *, floor: Optional[int] = None) -> dict:
    """
    Atomic relative stock change: UPDATE products SET stock = stock + :delta.

    With ``floor`` set the update only applies when the result stays at or
    above it; otherwise StockFloorViolation is raised and nothing changes.
    """
    query = db.session.query(Product).filter(Product.id == product_id)
    if floor is not None:
        query = query.filter(Product.stock + delta >= floor)
    updated = query.update({Product.stock: Product.stock + delta}, synchronize_session=False)
    if updated == 0:
        current = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
        if current is None:
            raise RowNotFound("products", product_id)
        raise StockFloorViolation(product_id, delta, floor, current)
    return _product_row(_reload_product(product_id))


@_store_call("archive_product")
def archive_product(product_id: str) -> bool:
    """Soft delete. Returns False when the product is missing or already archived."""
    updated = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.deleted_at.is_(None))
        .update({Product.deleted_at: utcnow()}, synchronize_session=False)
    )
    return updated > 0


# =============================================================================
# CLIENTS
# =============================================================================

@_store_call("select_clients")
def select_clients() -> list[dict]:
    clients = (
        db.session.query(Client)
        .populate_existing()
        .order_by(Client.company_name.asc(), Client.name.asc(), Client.id.asc())
        .all()
    )
    return [_columns(c) for c in clients]


@_store_call("select_client")
def select_client(client_id: str) -> Optional[dict]:
    client = db.session.query(Client).filter(Client.id == client_id).populate_existing().first()
    return _columns(client) if client else None


@_store_call("insert_client")
def insert_client(row: dict) -> dict:
    client = Client(**row)
    db.session.add(client)
    db.session.flush()
    return _columns(client)


@_store_call("increment_balance")
def increment_balance(client_id: str, delta) -> dict:
    """Atomic relative balance change: UPDATE clients SET balance = balance + :delta."""
    updated = (
        db.session.query(Client)
        .filter(Client.id == client_id)
        .update({Client.balance: Client.balance + delta}, synchronize_session=False)
    )
    if updated == 0:
        raise RowNotFound("clients", client_id)
    return _columns(_reload_client(client_id))


# =============================================================================
# ORDERS
# =============================================================================

@_store_call("insert_order")
def insert_order(row: dict) -> dict:
    order = Order(**row)
    db.session.add(order)
    db.session.flush()
    return _columns(order)


@_store_call("update_order_status")
def update_order_status(order_id: str, status: str) -> dict:
    updated = (
        db.session.query(Order)
        .filter(Order.id == order_id)
        .update({Order.status: status}, synchronize_session=False)
    )
    if updated == 0:
        raise RowNotFound("orders", order_id)
    return {"id": order_id, "status": status}


@_store_call("insert_order_items")
def insert_order_items(rows: Iterable[dict]) -> list[dict]:
    items = [OrderItem(**row) for row in rows]
    db.session.add_all(items)
    db.session.flush()
    return [_columns(item) for item in items]


def _orders_query():
    return (
        db.session.query(Order)
        .populate_existing()
        .order_by(Order.date.desc(), Order.id.desc())
    )


@_store_call("select_orders")
def select_orders(*, limit: Optional[int] = 100) -> list[dict]:
    """Orders joined with client company name and items (each joined to its product)."""
    query = _orders_query()
    if limit is not None:
        query = query.limit(limit)
    return [_order_row(o) for o in query.all()]


@_store_call("select_order")
def select_order(order_id: str) -> Optional[dict]:
    order = _orders_query().filter(Order.id == order_id).first()
    return _order_row(order) if order else None


@_store_call("select_orders_not_in_status")
def select_orders_not_in_status(status: str) -> list[dict]:
    return [_order_row(o) for o in _orders_query().filter(Order.status != status).all()]


@_store_call("select_orders_without_items")
def select_orders_without_items() -> list[dict]:
    query = _orders_query().filter(~Order.items.any())
    return [_order_row(o) for o in query.all()]


# =============================================================================
# STOCK MOVEMENTS
# =============================================================================

@_store_call("insert_stock_movement")
def insert_stock_movement(row: dict) -> dict:
    movement = StockMovement(**row)
    db.session.add(movement)
    db.session.flush()
    return _columns(movement)


@_store_call("select_stock_movements")
def select_stock_movements(*, limit: Optional[int] = 50, product_id: Optional[str] = None) -> list[dict]:
    """Movements joined with product name, newest first."""
    query = (
        db.session.query(StockMovement)
        .populate_existing()
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    )
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if limit is not None:
        query = query.limit(limit)
    return [_movement_row(m) for m in query.all()]


@_store_call("sum_movements_by_product")
def sum_movements_by_product() -> dict[str, int]:
    rows = (
        db.session.query(StockMovement.product_id, func.coalesce(func.sum(StockMovement.quantity), 0))
        .group_by(StockMovement.product_id)
        .all()
    )
    return {product_id: int(total or 0) for product_id, total in rows}


# =============================================================================
# USERS
# =============================================================================

@_store_call("select_users")
def select_users() -> list[dict]:
    users = db.session.query(User).populate_existing().order_by(User.name.asc(), User.id.asc()).all()
    return [_columns(u) for u in users]


@_store_call("select_user")
def select_user(user_id: str) -> Optional[dict]:
    user = db.session.query(User).filter(User.id == user_id).populate_existing().first()
    return _columns(user) if user else None


@_store_call("select_user_by_telegram_id")
def select_user_by_telegram_id(telegram_id: int) -> Optional[dict]:
    user = db.session.query(User).filter(User.telegram_id == telegram_id).populate_existing().first()
    return _columns(user) if user else None


@_store_call("insert_user")
def insert_user(row: dict) -> dict:
    user = User(**row)
    db.session.add(user)
    db.session.flush()
    return _columns(user)


@_store_call("update_user_role")
def update_user_role(user_id: str, role: str) -> dict:
    updated = (
        db.session.query(User)
        .filter(User.id == user_id)
        .update({User.role: role}, synchronize_session=False)
    )
    if updated == 0:
        raise RowNotFound("users", user_id)
    user = db.session.query(User).filter(User.id == user_id).populate_existing().one()
    return _columns(user)
