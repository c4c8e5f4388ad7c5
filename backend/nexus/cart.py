# Overview: Point-of-sale cart; one line per product, price captured when the product is first added.

from __future__ import annotations

from typing import Iterable, Optional

from .domain import CartItem, Product
from .money import Totals, compute_totals


class CartError(ValueError):
    pass


class Cart:
    """
    Ordered, deduplicated cart.

    Adding a product that is already in the cart increases its quantity and
    keeps the price captured on the first add. The stock each product had when
    it was added is remembered so quantity edits can be capped at it.
    """

    def __init__(self):
        self._lines: dict[str, CartItem] = {}
        self._known_stock: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._lines

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add(self, product: Product, quantity: int = 1, price=None) -> CartItem:
        if quantity <= 0:
            raise CartError("quantity must be > 0")
        if product.id is None:
            raise CartError("Product has no id")

        existing = self._lines.get(product.id)
        if existing is not None:
            line = CartItem(existing.product_id, existing.quantity + quantity, existing.price)
        else:
            line = CartItem(product.id, quantity, product.price if price is None else price)
        self._lines[product.id] = line
        self._known_stock[product.id] = product.stock
        return line

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)
        self._known_stock.pop(product_id, None)

    def adjust_quantity(self, product_id: str, delta: int) -> Optional[CartItem]:
        """+/- buttons: never below 1; a step past known stock is ignored."""
        line = self._lines.get(product_id)
        if line is None:
            return None
        new_quantity = max(1, line.quantity + delta)
        if new_quantity > self._known_stock.get(product_id, new_quantity):
            return line
        line = CartItem(line.product_id, new_quantity, line.price)
        self._lines[product_id] = line
        return line

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartItem]:
        line = self._lines.get(product_id)
        if line is None:
            return None
        return self.adjust_quantity(product_id, quantity - line.quantity)

    def clear(self) -> None:
        self._lines.clear()
        self._known_stock.clear()

    def items(self) -> list[CartItem]:
        return list(self._lines.values())

    def totals(self, tax_rate) -> Totals:
        return compute_totals(((line.price, line.quantity) for line in self._lines.values()), tax_rate)

    @classmethod
    def from_lines(cls, lines: Iterable[dict], snapshot) -> "Cart":
        """
        Build a cart from parsed request lines (see validation.parse_cart_lines),
        merging repeated product ids. Every product must be in the snapshot.
        """
        cart = cls()
        for line in lines:
            product = snapshot.find_product(line["product_id"])
            if product is None:
                raise CartError(f"Product not found: {line['product_id']}")
            cart.add(product, line["quantity"], price=line["price"])
        return cart
