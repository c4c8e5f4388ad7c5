"""
Catalog mutation tests.

Verifies:
- Every stock change writes exactly one movement with the applied delta
- Stock always reconciles with the movement ledger for sequential operations
- Stale snapshot edits are refused instead of overwriting concurrent changes
- Deletion is a soft delete that keeps history joinable
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from nexus.services import catalog_service, ledger_service, reconciliation_service, store_client
from nexus.services.catalog_service import CatalogError, ProductNotFound, StaleProductError


class TestAddProduct:

    def test_initial_stock_is_logged_as_restock(self, snapshot, new_product):
        created = catalog_service.add_product(snapshot=snapshot, product=new_product(stock=10))

        movements = ledger_service.list_movements(created.id)
        assert len(movements) == 1
        assert movements[0].type == "restock"
        assert movements[0].quantity == 10
        assert movements[0].note == "Initial entry"

    def test_zero_stock_writes_no_movement(self, snapshot, new_product):
        created = catalog_service.add_product(snapshot=snapshot, product=new_product(stock=0))
        assert ledger_service.list_movements(created.id) == []

    def test_snapshot_is_refreshed(self, snapshot, new_product):
        created = catalog_service.add_product(snapshot=snapshot, product=new_product(stock=3))
        assert snapshot.find_product(created.id) == created
        assert [m.product_id for m in snapshot.stock_movements] == [created.id]


class TestStockReconciliation:

    def test_add_edit_update_sequence_reconciles(self, snapshot, new_product):
        created = catalog_service.add_product(snapshot=snapshot, product=new_product(stock=10))
        catalog_service.edit_product(snapshot=snapshot, product=replace(created, stock=15))
        catalog_service.update_stock(snapshot=snapshot, product_id=created.id, new_stock=12)

        movements = list(reversed(ledger_service.list_movements(created.id)))
        assert [(m.type, m.quantity, m.note) for m in movements] == [
            ("restock", 10, "Initial entry"),
            ("restock", 5, "Product edit"),
            ("adjustment", -3, "Manual update"),
        ]
        assert snapshot.find_product(created.id).stock == 12
        assert sum(m.quantity for m in movements) == 12
        assert reconciliation_service.stock_discrepancies() == []

    def test_edit_without_stock_change_writes_no_movement(self, snapshot, product):
        catalog_service.edit_product(snapshot=snapshot, product=replace(product, price=Decimal("20.00")))
        assert len(ledger_service.list_movements(product.id)) == 1
        assert snapshot.find_product(product.id).price == Decimal("20.00")

    def test_update_stock_to_same_value_is_noop(self, snapshot, product):
        assert catalog_service.update_stock(snapshot=snapshot, product_id=product.id, new_stock=20) is None
        assert len(ledger_service.list_movements(product.id)) == 1

    def test_restock_adds_to_snapshot_stock(self, snapshot, product):
        updated = catalog_service.restock(snapshot=snapshot, product_id=product.id, quantity=4)
        assert updated.stock == 24
        assert ledger_service.list_movements(product.id)[0].quantity == 4


class TestStaleWrites:

    def test_edit_from_stale_snapshot_is_refused(self, snapshot, product):
        # Someone else sells 3 units; this snapshot still shows 20
        store_client.increment_stock(product.id, -3)

        with pytest.raises(StaleProductError) as exc_info:
            catalog_service.edit_product(snapshot=snapshot, product=replace(product, stock=25))

        assert exc_info.value.details["current_stock"] == 17
        assert store_client.select_product(product.id)["stock"] == 17
        # The refused edit still refreshed the snapshot
        assert snapshot.find_product(product.id).stock == 17
        assert [m.note for m in ledger_service.list_movements(product.id)] == ["Initial entry"]

    def test_update_stock_from_stale_snapshot_is_refused(self, snapshot, product):
        store_client.increment_stock(product.id, 5)
        with pytest.raises(StaleProductError):
            catalog_service.update_stock(snapshot=snapshot, product_id=product.id, new_stock=10)
        assert store_client.select_product(product.id)["stock"] == 25


class TestDeleteProduct:

    def test_delete_archives_and_keeps_history_joinable(self, snapshot, product):
        catalog_service.delete_product(snapshot=snapshot, product_id=product.id)

        assert snapshot.find_product(product.id) is None
        assert snapshot.stock_movements[0].product_name == "Widget"
        assert store_client.select_products(include_archived=True)[0]["id"] == product.id

    def test_delete_unknown_product(self, snapshot):
        with pytest.raises(ProductNotFound):
            catalog_service.delete_product(snapshot=snapshot, product_id="missing")

    def test_edit_unknown_product(self, snapshot, new_product):
        with pytest.raises(ProductNotFound):
            catalog_service.edit_product(snapshot=snapshot, product=replace(new_product(), id="missing"))

    def test_update_stock_rejects_non_integer(self, snapshot, product):
        with pytest.raises(CatalogError):
            catalog_service.update_stock(snapshot=snapshot, product_id=product.id, new_stock="12")
