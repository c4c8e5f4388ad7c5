# backend/nexus/services/snapshot_service.py
"""
Domain Snapshot Cache.

An owned, invalidate-and-refetch read model of products, clients, orders and
stock movements. The front-end renders only from here; mutations never patch
it, they call refresh() and the whole thing is refetched from the store.

One instance lives per app (``app.extensions["nexus.snapshot"]``) and is
handed explicitly to every mutation service. It is shared by
every signed-in user, so signing out never clears it; it is loaded lazily
before the first request.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from flask import current_app

from ..domain import Client, Order, Product, StockMovement
from ..money import round_money
from . import store_client
from .store_client import StoreError

EXTENSION_KEY = "nexus.snapshot"

COLLECTIONS = ("products", "clients", "orders", "stock_movements")


class SnapshotState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"


@dataclass(frozen=True)
class RefreshReport:
    refreshed: tuple[str, ...] = ()
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {"ok": self.ok, "refreshed": list(self.refreshed), "failed": dict(self.failed)}


class DomainSnapshot:
    """
    Process-wide snapshot of the four domain collections.

    refresh() performs four independent reads, then swaps in every collection
    whose read succeeded under one lock, so readers never observe a
    half-applied batch. A failed read keeps that collection's previous value.
    """

    def __init__(self, *, order_limit: int = 100, movement_limit: int = 50):
        self.order_limit = order_limit
        self.movement_limit = movement_limit
        self._lock = threading.Lock()
        self._state = SnapshotState.EMPTY
        self._products: tuple[Product, ...] = ()
        self._clients: tuple[Client, ...] = ()
        self._orders: tuple[Order, ...] = ()
        self._stock_movements: tuple[StockMovement, ...] = ()

    # ------------------------------------------------------------------
    # Read interface
    # ------------------------------------------------------------------

    @property
    def state(self) -> SnapshotState:
        return self._state

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def clients(self) -> tuple[Client, ...]:
        return self._clients

    @property
    def orders(self) -> tuple[Order, ...]:
        return self._orders

    @property
    def stock_movements(self) -> tuple[StockMovement, ...]:
        return self._stock_movements

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def find_client(self, client_id: str) -> Optional[Client]:
        return next((c for c in self._clients if c.id == client_id), None)

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    def collections(self) -> dict:
        with self._lock:
            return {
                "products": self._products,
                "clients": self._clients,
                "orders": self._orders,
                "stock_movements": self._stock_movements,
            }

    def to_dict(self) -> dict:
        data = self.collections()
        return {
            "state": self._state.value,
            "products": [p.to_dict() for p in data["products"]],
            "clients": [c.to_dict() for c in data["clients"]],
            "orders": [o.to_dict() for o in data["orders"]],
            "stockMovements": [m.to_dict() for m in data["stock_movements"]],
        }

    def summary(self) -> dict:
        """Dashboard figures derived from the current snapshot."""
        data = self.collections()
        stock_value = sum((p.price * p.stock for p in data["products"]), Decimal("0"))
        revenue = sum((o.total_amount for o in data["orders"]), Decimal("0"))
        debt = sum((-c.balance for c in data["clients"] if c.balance < 0), Decimal("0"))
        low_stock = [p for p in data["products"] if p.is_low_stock]
        return {
            "totalStockValue": float(round_money(stock_value)),
            "totalRevenue": float(round_money(revenue)),
            "outstandingDebt": float(round_money(debt)),
            "lowStockCount": len(low_stock),
            "lowStock": [p.to_dict() for p in low_stock],
            "productCount": len(data["products"]),
            "clientCount": len(data["clients"]),
            "orderCount": len(data["orders"]),
        }

    # ------------------------------------------------------------------
    # Refresh / clear
    # ------------------------------------------------------------------

    def _loaders(self) -> list[tuple[str, Callable[[], tuple]]]:
        return [
            ("products", lambda: tuple(Product.from_row(r) for r in store_client.select_products())),
            ("clients", lambda: tuple(Client.from_row(r) for r in store_client.select_clients())),
            ("orders", lambda: tuple(
                Order.from_row(r) for r in store_client.select_orders(limit=self.order_limit)
            )),
            ("stock_movements", lambda: tuple(
                StockMovement.from_row(r)
                for r in store_client.select_stock_movements(limit=self.movement_limit)
            )),
        ]

    def refresh(self) -> RefreshReport:
        """Refetch all four collections; never raises for store failures."""
        fetched: dict[str, tuple] = {}
        failed: dict[str, str] = {}

        for name, loader in self._loaders():
            try:
                fetched[name] = loader()
            except StoreError as exc:
                current_app.logger.error("Snapshot refresh of %s failed, keeping previous data: %s", name, exc)
                failed[name] = str(exc)

        with self._lock:
            for name, value in fetched.items():
                setattr(self, f"_{name}", value)
            if fetched:
                self._state = SnapshotState.POPULATED

        refreshed = tuple(name for name in COLLECTIONS if name in fetched)
        current_app.logger.debug("Snapshot refreshed: %s", ", ".join(refreshed) or "nothing")
        return RefreshReport(refreshed=refreshed, failed=failed)

    def ensure_loaded(self) -> Optional[RefreshReport]:
        """Refresh only while nothing has been loaded yet (cold start, after a reset)."""
        if self._state is SnapshotState.EMPTY:
            return self.refresh()
        return None

    def clear(self) -> None:
        """Drop every collection; the next request reloads them."""
        with self._lock:
            self._products = ()
            self._clients = ()
            self._orders = ()
            self._stock_movements = ()
            self._state = SnapshotState.EMPTY


def init_app(app) -> DomainSnapshot:
    snapshot = DomainSnapshot(
        order_limit=app.config["NEXUS_ORDER_SNAPSHOT_LIMIT"],
        movement_limit=app.config["NEXUS_MOVEMENT_SNAPSHOT_LIMIT"],
    )
    app.extensions[EXTENSION_KEY] = snapshot

    @app.before_request
    def load_snapshot():
        get_snapshot().ensure_loaded()

    return snapshot


def get_snapshot() -> DomainSnapshot:
    return current_app.extensions[EXTENSION_KEY]
