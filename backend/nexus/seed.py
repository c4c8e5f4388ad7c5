# Overview: Demo catalog and client book loaded by `flask system init`.

from __future__ import annotations

from decimal import Decimal

from .domain import Client, Product

DEMO_PRODUCTS = [
    Product(None, "KIT-001", "Industrial Mixer 5L", "Kitchenware", Decimal("450.00"), Decimal("300.00"), 12, 5, "unit"),
    Product(None, "KIT-002", "Stainless Steel Pot 20L", "Kitchenware", Decimal("85.50"), Decimal("50.00"), 45, 10, "unit"),
    Product(None, "ING-001", "Premium Olive Oil", "Ingredients", Decimal("25.00"), Decimal("15.00"), 120, 20, "L"),
    Product(None, "ING-002", "Organic Flour Type 00", "Ingredients", Decimal("4.50"), Decimal("2.00"), 500, 100, "kg"),
    Product(None, "PKG-001", "Cardboard Box (Large)", "Packaging", Decimal("1.20"), Decimal("0.40"), 1000, 200, "pcs"),
    Product(None, "CLN-001", "Heavy Duty Degreaser", "Cleaning", Decimal("15.00"), Decimal("8.00"), 3, 10, "L"),
]

DEMO_CLIENTS = [
    Client(None, "Alice Johnson", "The Morning Café", "alice@morningcafe.com", "+1 555-0101", Decimal("-450.00")),
    Client(None, "Bob Smith", "Bistro 42", "bob@bistro42.com", "+1 555-0202", Decimal("0.00")),
    Client(None, "Charlie Davis", "Downtown Bakery", "charlie@bakery.com", "+1 555-0303", Decimal("-1250.50")),
]
