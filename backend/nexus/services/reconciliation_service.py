# Overview: Read-only checks that surface what a failed multi-step operation left behind.

from __future__ import annotations

from ..domain import Order, OrderStatus, Product
from . import store_client


def stock_discrepancies() -> list[dict]:
    """
    Products whose stock differs from the sum of their movements.

    A gap means a stock write landed without its movement (or vice versa).
    Archived products are included; their history still has to add up.
    """
    totals = store_client.sum_movements_by_product()
    report = []
    for row in store_client.select_products(include_archived=True):
        product = Product.from_row(row)
        ledger = totals.get(product.id, 0)
        if ledger != product.stock:
            report.append({
                "productId": product.id,
                "sku": product.sku,
                "name": product.name,
                "stock": product.stock,
                "ledgerTotal": ledger,
                "difference": product.stock - ledger,
                "archived": row.get("deleted_at") is not None,
            })
    return report


def incomplete_orders() -> list[dict]:
    """Orders that stopped before ``completed`` or have a total but no items."""
    found: dict[str, dict] = {}
    for row in store_client.select_orders_not_in_status(OrderStatus.COMPLETED.value):
        order = Order.from_row(row)
        found[order.id] = _describe(order, "incomplete")

    for row in store_client.select_orders_without_items():
        order = Order.from_row(row)
        if not order.is_missing_items:
            continue
        if order.id in found:
            found[order.id]["problems"].append("missing_items")
        else:
            found[order.id] = _describe(order, "missing_items")

    return sorted(found.values(), key=lambda entry: (entry["date"] or "", entry["orderId"]), reverse=True)


def _describe(order: Order, problem: str) -> dict:
    data = order.to_dict()
    return {
        "orderId": order.id,
        "clientId": order.client_id,
        "clientName": order.client_name,
        "status": order.status,
        "totalAmount": data["totalAmount"],
        "itemCount": len(order.items),
        "date": data["date"],
        "problems": [problem],
    }
