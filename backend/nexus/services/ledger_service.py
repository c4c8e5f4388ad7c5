# Overview: Service-layer operations for the stock ledger; append-only movement log.

from __future__ import annotations

from typing import Optional

from ..domain import MovementType, StockMovement
from ..time_utils import utcnow
from . import store_client
"""
Nexus Stock Ledger Invariants (authoritative)

- Append-only: movements are inserted, never updated or deleted.
- The ledger never touches products.stock. Callers write stock first and
  append the movement second, one movement per stock-changing operation,
  with quantity equal to the delta applied.
- Type tagging is the caller's job (see movement_type_for_delta). The ledger
  only checks that the type is one it knows.
- For sequential operations, products.stock == SUM(quantity) over a product's
  movements. This is best-effort: a failure between the stock write and the
  append leaves a gap that reconciliation_service reports.
"""


def movement_type_for_delta(delta: int) -> MovementType:
    """
    Tag a manual (non-sale) stock change.

    Positive deltas are RESTOCK even when they are really corrections;
    negative deltas are ADJUSTMENT. Sales are tagged SALE by checkout.
    """
    return MovementType.RESTOCK if delta > 0 else MovementType.ADJUSTMENT


def record_movement(
    product_id: str,
    movement_type,
    quantity_delta: int,
    note: Optional[str] = None,
) -> StockMovement:
    """Append one movement row. Raises ValueError for an unknown type."""
    movement_type = MovementType(movement_type)
    row = store_client.insert_stock_movement({
        "product_id": product_id,
        "type": movement_type.value,
        "quantity": int(quantity_delta),
        "note": note,
        "created_at": utcnow(),
    })
    return StockMovement.from_row(row)


def list_movements(product_id: str, *, limit: Optional[int] = None) -> list[StockMovement]:
    """Full (or limited) movement history of one product, newest first."""
    rows = store_client.select_stock_movements(limit=limit, product_id=product_id)
    return [StockMovement.from_row(row) for row in rows]


def ledger_total(product_id: str) -> int:
    """Sum of all movement quantities recorded for the product."""
    return store_client.sum_movements_by_product().get(product_id, 0)
