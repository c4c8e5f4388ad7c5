from decimal import Decimal

import pytest

from nexus.cart import Cart, CartError
from nexus.domain import Product


def _product(product_id="p1", price="10.00", stock=5):
    return Product(product_id, "SKU", "Widget", "General", Decimal(price), Decimal("1.00"), stock, 1, "pcs")


class _Snapshot:
    def __init__(self, *products):
        self._products = {p.id: p for p in products}

    def find_product(self, product_id):
        return self._products.get(product_id)


def test_adding_same_product_accumulates_quantity():
    cart = Cart()
    cart.add(_product())
    cart.add(_product())
    assert len(cart) == 1
    assert cart.items()[0].quantity == 2


def test_price_is_captured_on_first_add():
    cart = Cart()
    cart.add(_product(price="10.00"))
    cart.add(_product(price="12.00"))
    assert cart.items()[0].price == Decimal("10.00")


def test_adjust_quantity_never_goes_below_one():
    cart = Cart()
    cart.add(_product())
    assert cart.adjust_quantity("p1", -5).quantity == 1


def test_adjust_quantity_past_known_stock_is_ignored():
    cart = Cart()
    cart.add(_product(stock=2), 2)
    assert cart.adjust_quantity("p1", 1).quantity == 2


def test_set_quantity():
    cart = Cart()
    cart.add(_product(stock=10))
    assert cart.set_quantity("p1", 4).quantity == 4
    assert cart.set_quantity("missing", 4) is None


def test_remove_and_clear():
    cart = Cart()
    cart.add(_product("p1"))
    cart.add(_product("p2"))
    cart.remove("p1")
    assert "p1" not in cart
    cart.clear()
    assert cart.is_empty


def test_totals_apply_tax_once():
    cart = Cart()
    cart.add(_product(price="10.00"), 2)
    totals = cart.totals(10)
    assert totals.subtotal == Decimal("20.00")
    assert totals.tax_amount == Decimal("2.00")
    assert totals.total == Decimal("22.00")


def test_add_rejects_non_positive_quantity():
    with pytest.raises(CartError):
        Cart().add(_product(), 0)


def test_from_lines_merges_duplicates():
    snapshot = _Snapshot(_product("p1"), _product("p2", price="3.00"))
    cart = Cart.from_lines([
        {"product_id": "p1", "quantity": 1, "price": Decimal("9.00")},
        {"product_id": "p2", "quantity": 2, "price": Decimal("3.00")},
        {"product_id": "p1", "quantity": 2, "price": Decimal("11.00")},
    ], snapshot)

    items = {item.product_id: item for item in cart.items()}
    assert items["p1"].quantity == 3
    assert items["p1"].price == Decimal("9.00")
    assert items["p2"].quantity == 2


def test_from_lines_unknown_product():
    with pytest.raises(CartError):
        Cart.from_lines([{"product_id": "nope", "quantity": 1, "price": Decimal("1")}], _Snapshot())
