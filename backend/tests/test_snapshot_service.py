"""
Domain snapshot tests.

Verifies:
- refresh() is idempotent with no intervening mutation
- A failed collection read keeps that collection's previous value
- Join fallbacks for rows that no longer resolve
- Dashboard summary figures
"""

import json
from datetime import timedelta
from decimal import Decimal

from nexus.domain import CartItem
from nexus.services import catalog_service, checkout_service, client_service, store_client
from nexus.services.snapshot_service import DomainSnapshot, SnapshotState
from nexus.services.store_client import StoreUnavailable
from nexus.time_utils import utcnow


def _fail(*args, **kwargs):
    raise StoreUnavailable("select_clients", RuntimeError("timeout"))


def test_starts_empty_and_populates_on_refresh(snapshot, new_product):
    assert snapshot.state is SnapshotState.EMPTY
    store_client.insert_product(new_product().to_row())

    report = snapshot.refresh()

    assert report.ok
    assert report.refreshed == ("products", "clients", "orders", "stock_movements")
    assert snapshot.state is SnapshotState.POPULATED
    assert len(snapshot.products) == 1


def test_refresh_twice_yields_identical_collections(snapshot, product, customer, staff_user):
    checkout_service.checkout(
        snapshot=snapshot,
        client_id=customer.id,
        cart_items=[CartItem(product.id, 2, product.price)],
        tax_rate=5,
        staff_id=staff_user.id,
    )

    snapshot.refresh()
    first = json.dumps(snapshot.to_dict(), sort_keys=True)
    first_collections = snapshot.collections()
    snapshot.refresh()

    assert json.dumps(snapshot.to_dict(), sort_keys=True) == first
    assert snapshot.collections() == first_collections


def test_failed_read_keeps_previous_collection(snapshot, customer, new_product, new_client, monkeypatch):
    store_client.insert_product(new_product(sku="NEW").to_row())
    store_client.insert_client(new_client(company="Bistro 42").to_row())
    monkeypatch.setattr(store_client, "select_clients", _fail)

    report = snapshot.refresh()

    assert not report.ok
    assert list(report.failed) == ["clients"]
    assert "clients" not in report.refreshed
    assert [c.id for c in snapshot.clients] == [customer.id]
    assert [p.sku for p in snapshot.products] == ["NEW"]


def test_clear_empties_every_collection(snapshot, product, customer):
    snapshot.clear()
    assert snapshot.state is SnapshotState.EMPTY
    assert snapshot.products == snapshot.clients == snapshot.orders == snapshot.stock_movements == ()


def test_ensure_loaded_refreshes_only_when_empty(snapshot, product, monkeypatch):
    snapshot.clear()
    report = snapshot.ensure_loaded()
    assert report is not None and report.ok
    assert [p.id for p in snapshot.products] == [product.id]

    monkeypatch.setattr(store_client, "select_clients", _fail)
    assert snapshot.ensure_loaded() is None


def test_order_window_is_newest_first(db_session, customer, staff_user):
    now = utcnow()
    for days in (3, 1, 2):
        store_client.insert_order({
            "client_id": customer.id,
            "staff_id": staff_user.id,
            "total_amount": Decimal(days),
            "status": "completed",
            "date": now - timedelta(days=days),
        })

    small = DomainSnapshot(order_limit=2, movement_limit=1)
    small.refresh()

    assert [o.total_amount for o in small.orders] == [Decimal("1.00"), Decimal("2.00")]


def test_unresolvable_rows_fall_back_to_unknown(db_session, snapshot, customer, staff_user):
    order = store_client.insert_order({
        "client_id": customer.id,
        "staff_id": staff_user.id,
        "total_amount": Decimal("5.00"),
        "status": "completed",
        "date": utcnow(),
    })
    store_client.insert_order_items([
        {"order_id": order["id"], "product_id": "gone", "quantity": 1, "price_at_sale": Decimal("5.00")},
    ])
    store_client.insert_stock_movement({
        "product_id": "gone", "type": "sale", "quantity": -1, "note": None, "created_at": utcnow(),
    })

    snapshot.refresh()

    assert snapshot.orders[0].items[0].name == "Unknown Product"
    assert snapshot.stock_movements[0].product_name == "Unknown"


def test_summary_figures(snapshot, new_product, new_client):
    catalog_service.add_product(snapshot=snapshot, product=new_product(sku="A", price="10.00", stock=3, min_stock=5))
    catalog_service.add_product(snapshot=snapshot, product=new_product(sku="B", price="2.50", stock=10, min_stock=5))
    client_service.add_client(snapshot=snapshot, client=new_client(balance="-100.00"))
    client_service.add_client(snapshot=snapshot, client=new_client(name="Bob", balance="40.00"))

    summary = snapshot.summary()

    assert summary["totalStockValue"] == 55.0
    assert summary["outstandingDebt"] == 100.0
    assert summary["totalRevenue"] == 0.0
    assert summary["lowStockCount"] == 1
    assert summary["lowStock"][0]["sku"] == "A"
    assert summary["productCount"] == 2
    assert summary["clientCount"] == 2
