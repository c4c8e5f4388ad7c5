from decimal import Decimal

import pytest

from nexus.permissions import Capability, Role, has_capability, parse_role
from nexus.validation import (
    ValidationError,
    client_from_payload,
    parse_cart_lines,
    parse_settings_patch,
    parse_telegram_user,
    product_from_payload,
    require_int,
)


class TestProductPayload:

    def test_create_applies_defaults(self):
        product = product_from_payload({"sku": "A-1", "name": "Mixer", "price": 450}, default_min_stock=5)
        assert product.id is None
        assert product.price == Decimal("450.00")
        assert product.stock == 0
        assert product.min_stock == 5
        assert product.unit == "pcs"

    def test_explicit_min_stock_zero_is_kept(self):
        product = product_from_payload(
            {"sku": "A-1", "name": "Mixer", "price": 1, "minStock": 0}, default_min_stock=5
        )
        assert product.min_stock == 0

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError, match="name"):
            product_from_payload({"sku": "A-1", "price": 1}, default_min_stock=5)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            product_from_payload({"sku": "A", "name": "B", "price": -1}, default_min_stock=5)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Field not allowed"):
            product_from_payload({"sku": "A", "name": "B", "price": 1, "secret": 1}, default_min_stock=5)

    def test_fractional_stock_rejected(self):
        with pytest.raises(ValidationError):
            product_from_payload({"sku": "A", "name": "B", "price": 1, "stock": "1.5"}, default_min_stock=5)

    def test_edit_merges_over_base_and_ignores_id(self):
        base = product_from_payload({"sku": "A", "name": "B", "price": 1, "stock": 3}, default_min_stock=5)
        edited = product_from_payload({"id": "other", "price": "2.5"}, default_min_stock=5, base=base)
        assert edited.price == Decimal("2.50")
        assert edited.stock == 3
        assert edited.sku == "A"


class TestOtherPayloads:

    def test_client_defaults(self):
        client = client_from_payload({"name": "Bob", "companyName": "Bistro 42"})
        assert client.balance == Decimal("0.00")
        assert client.status == "active"

    def test_client_bad_status(self):
        with pytest.raises(ValidationError):
            client_from_payload({"name": "Bob", "status": "banned"})

    def test_cart_lines_accept_id_or_product_id(self):
        lines = parse_cart_lines([
            {"productId": "p1", "quantity": 2, "price": 10},
            {"id": "p2", "quantity": "1", "price": "0.10"},
        ])
        assert lines == [
            {"product_id": "p1", "quantity": 2, "price": Decimal("10.00")},
            {"product_id": "p2", "quantity": 1, "price": Decimal("0.10")},
        ]

    @pytest.mark.parametrize("items", [None, [], [{"productId": "p1", "quantity": 0, "price": 1}], ["x"]])
    def test_cart_lines_rejected(self, items):
        with pytest.raises(ValidationError):
            parse_cart_lines(items)

    def test_settings_patch_maps_keys(self):
        assert parse_settings_patch({"taxRate": 5, "companyName": "X"}) == {"tax_rate": 5, "company_name": "X"}

    def test_telegram_user_requires_id(self):
        with pytest.raises(ValidationError):
            parse_telegram_user({"first_name": "Ann"})

    def test_require_int_rejects_bool(self):
        with pytest.raises(ValidationError):
            require_int(True, "stock")


class TestPermissions:

    def test_role_capabilities(self):
        assert has_capability(Role.STAFF, Capability.CHECKOUT)
        assert not has_capability(Role.STAFF, Capability.MANAGE_USERS)
        assert has_capability("admin", Capability.RECONCILE)
        assert has_capability(Role.DEVELOPER, Capability.MANAGE_SETTINGS)
        assert not has_capability(Role.GUEST, Capability.CHECKOUT)

    def test_unknown_role_has_nothing(self):
        assert not has_capability("user", Capability.VIEW_CATALOG)

    def test_parse_role(self):
        assert parse_role(" staff ") is Role.STAFF
        with pytest.raises(ValueError):
            parse_role("owner")
