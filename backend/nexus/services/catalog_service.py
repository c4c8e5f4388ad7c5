# backend/nexus/services/catalog_service.py
"""
Catalog Mutation Service.

Add, edit, archive and restock products. Every stock change writes the
product row first and then appends exactly one movement through the ledger.
Every operation ends with a full snapshot refresh.

Stock writes are compare-and-set against the stock value in the snapshot the
caller acted on, so an edit based on a stale snapshot is refused instead of
silently erasing a concurrent sale.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app

from ..domain import Product
from . import ledger_service, store_client
from .ledger_service import movement_type_for_delta
from .snapshot_service import DomainSnapshot
from .store_client import RowNotFound, StaleReadError, StoreError

INITIAL_ENTRY_NOTE = "Initial entry"
PRODUCT_EDIT_NOTE = "Product edit"
MANUAL_UPDATE_NOTE = "Manual update"


class CatalogError(Exception):
    """Raised for catalog operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFound(CatalogError):
    pass


class StaleProductError(CatalogError):
    pass


def _require_known_product(snapshot: DomainSnapshot, product_id: str) -> Product:
    product = snapshot.find_product(product_id)
    if product is None:
        raise ProductNotFound("Product not found", details={"product_id": product_id})
    return product


def _stale(exc: StaleReadError, product_id: str) -> StaleProductError:
    current_app.logger.warning(
        "Rejected stale stock write for product %s: expected %s, store has %s",
        product_id, exc.expected, exc.actual,
    )
    return StaleProductError(
        "Product stock changed since it was loaded; refresh and retry",
        details={"product_id": product_id, "expected_stock": exc.expected, "current_stock": exc.actual},
    )


def add_product(*, snapshot: DomainSnapshot, product: Product) -> Product:
    """Insert a product; non-zero initial stock is logged as a restock."""
    try:
        created = Product.from_row(store_client.insert_product(product.to_row()))
        if created.stock != 0:
            ledger_service.record_movement(
                created.id, movement_type_for_delta(created.stock), created.stock, INITIAL_ENTRY_NOTE
            )
    except StoreError as exc:
        current_app.logger.error("add_product failed for sku %s: %s", product.sku, exc)
        raise
    finally:
        snapshot.refresh()

    current_app.logger.info("Product %s (%s) added with stock %s", created.id, created.sku, created.stock)
    return created


def edit_product(*, snapshot: DomainSnapshot, product: Product) -> Product:
    """
    Write the full updated row. The stock delta against the snapshot's
    version of the product, when non-zero, is appended to the ledger.
    """
    previous = _require_known_product(snapshot, product.id)
    delta = product.stock - previous.stock

    try:
        updated = Product.from_row(
            store_client.update_product(product.id, product.to_row(), expected_stock=previous.stock)
        )
        if delta != 0:
            ledger_service.record_movement(product.id, movement_type_for_delta(delta), delta, PRODUCT_EDIT_NOTE)
    except StaleReadError as exc:
        raise _stale(exc, product.id) from exc
    except RowNotFound as exc:
        raise ProductNotFound("Product not found", details={"product_id": product.id}) from exc
    except StoreError as exc:
        current_app.logger.error("edit_product failed for %s (stock delta %s): %s", product.id, delta, exc)
        raise
    finally:
        snapshot.refresh()

    return updated


def delete_product(*, snapshot: DomainSnapshot, product_id: str) -> None:
    """
    Archive the product (soft delete).

    Historical order items and movements keep pointing at the archived row,
    so their joins still resolve a name.
    """
    try:
        archived = store_client.archive_product(product_id)
    except StoreError as exc:
        current_app.logger.error("delete_product failed for %s: %s", product_id, exc)
        raise
    finally:
        snapshot.refresh()

    if not archived:
        raise ProductNotFound("Product not found", details={"product_id": product_id})
    current_app.logger.info("Product %s archived", product_id)


def update_stock(*, snapshot: DomainSnapshot, product_id: str, new_stock: int) -> Optional[Product]:
    """
    Set stock to ``new_stock``. Returns None (and does nothing, not even a
    refresh) when it already equals the snapshot's stock.
    """
    if isinstance(new_stock, bool) or not isinstance(new_stock, int):
        raise CatalogError("stock must be an integer", details={"product_id": product_id})

    previous = _require_known_product(snapshot, product_id)
    delta = new_stock - previous.stock
    if delta == 0:
        return None

    try:
        updated = Product.from_row(
            store_client.set_stock(product_id, new_stock, expected_stock=previous.stock)
        )
        ledger_service.record_movement(product_id, movement_type_for_delta(delta), delta, MANUAL_UPDATE_NOTE)
    except StaleReadError as exc:
        raise _stale(exc, product_id) from exc
    except RowNotFound as exc:
        raise ProductNotFound("Product not found", details={"product_id": product_id}) from exc
    except StoreError as exc:
        current_app.logger.error("update_stock failed for %s (delta %s): %s", product_id, delta, exc)
        raise
    finally:
        snapshot.refresh()

    return updated


def restock(*, snapshot: DomainSnapshot, product_id: str, quantity: int = 1) -> Optional[Product]:
    """Quick '+N' button: relative to the snapshot stock."""
    previous = _require_known_product(snapshot, product_id)
    return update_stock(snapshot=snapshot, product_id=product_id, new_stock=previous.stock + quantity)
