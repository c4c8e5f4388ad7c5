# backend/nexus/services/checkout_service.py
"""
Checkout Engine.

Turns a deduplicated cart into an order, its line items, a client debit and
per-product stock decrements with matching SALE movements.

The store gives us no multi-call transaction, so checkout runs as a saga.
The order row is created first with status ``pending`` and its status is
advanced after each effect lands:

    pending -> items_written -> balance_applied -> stock_applied -> completed

Nothing is compensated. If a step fails after the order exists, the order is
left at the last status it reached and PartialCheckoutFailure names the
failing step, the steps already done and the cause. Stranded orders are found
by reconciliation_service.

Prices are the ones captured on the cart lines, rounded to cents once; the
same rounded price is stored on the line and used for the order total. The
catalog is not re-read.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from flask import current_app

from ..domain import CartItem, MovementType, OrderStatus
from ..money import HUNDRED, compute_totals, round_money, to_decimal
from ..time_utils import utcnow
from . import client_service, ledger_service, store_client
from .snapshot_service import DomainSnapshot, RefreshReport
from .store_client import StoreError


class CheckoutError(Exception):
    """Raised for checkout errors that left no order behind."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CheckoutUnavailable(CheckoutError):
    """The order row could not be created; nothing was written."""


class PartialCheckoutFailure(CheckoutError):
    """The order exists but a later step failed; it needs manual review."""

    def __init__(self, order_id: str, step: str, completed_steps: list[str], cause: BaseException, progress=None):
        self.order_id = order_id
        self.step = step
        self.completed_steps = list(completed_steps)
        self.cause = cause
        super().__init__(
            f"Checkout of order {order_id[:8]} failed at step '{step}'. "
            "The order may be partially processed; review it before retrying.",
            details={
                "order_id": order_id,
                "failed_step": step,
                "completed_steps": self.completed_steps,
                "cause": str(cause),
                **(progress or {}),
            },
        )


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    status: str
    refresh: RefreshReport

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "subtotal": float(self.subtotal),
            "taxAmount": float(self.tax_amount),
            "total": float(self.total),
            "status": self.status,
            "refresh": self.refresh.to_dict(),
        }


def sale_note(order_id: str) -> str:
    return f"Order #{order_id[:8]}"


def _validate(
    snapshot: DomainSnapshot,
    client_id: str,
    items: list[CartItem],
    tax_rate,
    staff_id: Optional[str],
    allow_negative_stock: bool,
) -> tuple[Decimal, list[CartItem]]:
    """Check the request; return the tax rate and the lines with prices rounded to cents."""
    if not staff_id:
        raise CheckoutError("Checkout requires an authenticated staff user")
    if not client_id:
        raise CheckoutError("Please select a client first")
    if not items:
        raise CheckoutError("Cart is empty")

    try:
        rate = to_decimal(tax_rate)
    except ValueError:
        raise CheckoutError("Invalid tax rate", details={"tax_rate": str(tax_rate)})
    if rate < 0 or rate > HUNDRED:
        raise CheckoutError("Tax rate must be between 0 and 100", details={"tax_rate": str(rate)})

    if snapshot.find_client(client_id) is None:
        raise CheckoutError("Client not found", details={"client_id": client_id})

    seen: set[str] = set()
    short: list[dict] = []
    priced: list[CartItem] = []
    for item in items:
        if item.product_id in seen:
            raise CheckoutError("Cart contains the same product more than once", details={"product_id": item.product_id})
        seen.add(item.product_id)
        if item.quantity <= 0:
            raise CheckoutError("Quantity must be > 0", details={"product_id": item.product_id})
        try:
            price = round_money(item.price)
        except ValueError:
            raise CheckoutError("Invalid price", details={"product_id": item.product_id})
        if price < 0:
            raise CheckoutError("Price must be >= 0", details={"product_id": item.product_id})
        priced.append(CartItem(item.product_id, item.quantity, price))

        product = snapshot.find_product(item.product_id)
        if product is None:
            raise CheckoutError("Product not found", details={"product_id": item.product_id})
        if item.quantity > product.stock:
            short.append({
                "product_id": item.product_id,
                "requested_quantity": item.quantity,
                "on_hand": product.stock,
            })

    if short:
        if not allow_negative_stock:
            raise CheckoutError("Insufficient stock", details={"items": short})
        for entry in short:
            current_app.logger.warning(
                "Overselling product %s: requested %s with %s on hand",
                entry["product_id"], entry["requested_quantity"], entry["on_hand"],
            )

    return rate, priced


def _advance(order_id: str, status: OrderStatus) -> None:
    store_client.update_order_status(order_id, status.value)


def checkout(
    *,
    snapshot: DomainSnapshot,
    client_id: str,
    cart_items: Iterable[CartItem],
    tax_rate,
    staff_id: Optional[str],
    allow_negative_stock: Optional[bool] = None,
) -> CheckoutResult:
    """
    Place an order for ``client_id`` from ``cart_items``.

    Raises CheckoutError (nothing written) for invalid input,
    CheckoutUnavailable when the order row could not be created, and
    PartialCheckoutFailure once the order exists but a later step fails.
    The snapshot is refreshed whenever an order row was created.
    """
    items = list(cart_items)
    if allow_negative_stock is None:
        allow_negative_stock = current_app.config["NEXUS_ALLOW_NEGATIVE_STOCK"]
    rate, items = _validate(snapshot, client_id, items, tax_rate, staff_id, allow_negative_stock)
    totals = compute_totals(((item.price, item.quantity) for item in items), rate)

    try:
        order = store_client.insert_order({
            "client_id": client_id,
            "staff_id": staff_id,
            "total_amount": totals.total,
            "status": OrderStatus.PENDING.value,
            "date": utcnow(),
        })
    except StoreError as exc:
        current_app.logger.error("Checkout for client %s aborted, order not created: %s", client_id, exc)
        raise CheckoutUnavailable(
            "Checkout failed; no order was created", details={"client_id": client_id, "cause": str(exc)}
        ) from exc

    order_id = order["id"]
    completed = [OrderStatus.PENDING.value]
    progress = {"stock_decremented": [], "movements_recorded": []}
    step = OrderStatus.ITEMS_WRITTEN.value
    stock_floor = None if allow_negative_stock else 0

    try:
        store_client.insert_order_items([
            {
                "order_id": order_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "price_at_sale": item.price,
            }
            for item in items
        ])
        _advance(order_id, OrderStatus.ITEMS_WRITTEN)
        completed.append(step)

        step = OrderStatus.BALANCE_APPLIED.value
        client_service.apply_checkout_debit(client_id, totals.total)
        _advance(order_id, OrderStatus.BALANCE_APPLIED)
        completed.append(step)

        step = OrderStatus.STOCK_APPLIED.value
        for item in items:
            store_client.increment_stock(item.product_id, -item.quantity, floor=stock_floor)
            progress["stock_decremented"].append(item.product_id)
            ledger_service.record_movement(item.product_id, MovementType.SALE, -item.quantity, sale_note(order_id))
            progress["movements_recorded"].append(item.product_id)
        _advance(order_id, OrderStatus.STOCK_APPLIED)
        completed.append(step)

        step = OrderStatus.COMPLETED.value
        _advance(order_id, OrderStatus.COMPLETED)
        completed.append(step)
    except StoreError as exc:
        current_app.logger.error(
            "Checkout of order %s failed at step %s (completed: %s; stock decremented: %s; "
            "movements recorded: %s): %s",
            order_id, step, ", ".join(completed),
            progress["stock_decremented"], progress["movements_recorded"], exc,
        )
        snapshot.refresh()
        raise PartialCheckoutFailure(order_id, step, completed, exc, progress=progress) from exc

    report = snapshot.refresh()
    current_app.logger.info(
        "Order %s completed for client %s by %s: %s items, total %s",
        order_id, client_id, staff_id, len(items), totals.total,
    )
    return CheckoutResult(
        order_id=order_id,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
        status=OrderStatus.COMPLETED.value,
        refresh=report,
    )
