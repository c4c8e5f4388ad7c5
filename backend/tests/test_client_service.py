import logging
from decimal import Decimal

import pytest

from nexus.domain import CartItem
from nexus.services import catalog_service, checkout_service, client_service, store_client
from nexus.services.client_service import ClientNotFound


def test_add_client_keeps_initial_balance(snapshot, new_client):
    created = client_service.add_client(snapshot=snapshot, client=new_client(balance="-450.00"))
    assert created.balance == Decimal("-450.00")
    assert snapshot.find_client(created.id).has_debt


def test_payment_is_added_to_balance(snapshot, new_client):
    created = client_service.add_client(snapshot=snapshot, client=new_client(balance="-50.00"))
    updated = client_service.record_payment(snapshot=snapshot, client_id=created.id, amount=Decimal("20.00"))
    assert updated.balance == Decimal("-30.00")
    assert snapshot.find_client(created.id).balance == Decimal("-30.00")


def test_payment_does_not_overwrite_concurrent_change(snapshot, new_client):
    created = client_service.add_client(snapshot=snapshot, client=new_client(balance="0.00"))
    # A debit the snapshot has not seen yet
    store_client.increment_balance(created.id, Decimal("-15.00"))

    updated = client_service.record_payment(snapshot=snapshot, client_id=created.id, amount=Decimal("10.00"))
    assert updated.balance == Decimal("-5.00")


def test_negative_payment_is_applied_and_logged(snapshot, new_client, caplog):
    created = client_service.add_client(snapshot=snapshot, client=new_client())
    with caplog.at_level(logging.WARNING):
        updated = client_service.record_payment(snapshot=snapshot, client_id=created.id, amount=Decimal("-5"))
    assert updated.balance == Decimal("-5.00")
    assert "Negative payment" in caplog.text


def test_payment_for_unknown_client(snapshot):
    with pytest.raises(ClientNotFound):
        client_service.record_payment(snapshot=snapshot, client_id="missing", amount=Decimal("1"))


def test_payment_then_checkout_of_same_amount_restores_balance(snapshot, staff_user, new_client, new_product):
    created = client_service.add_client(snapshot=snapshot, client=new_client(balance="-50.00"))
    item = catalog_service.add_product(snapshot=snapshot, product=new_product(price="30.00", stock=10))

    paid = client_service.record_payment(snapshot=snapshot, client_id=created.id, amount=Decimal("50.00"))
    assert paid.balance == Decimal("0.00")

    checkout_service.checkout(
        snapshot=snapshot,
        client_id=created.id,
        cart_items=[CartItem(item.id, 1, item.price)],
        tax_rate=0,
        staff_id=staff_user.id,
    )
    assert snapshot.find_client(created.id).balance == Decimal("-30.00")


def test_checkout_debit_does_not_refresh(snapshot, customer):
    client_service.apply_checkout_debit(customer.id, Decimal("12.00"))
    assert snapshot.find_client(customer.id).balance == Decimal("0.00")
    assert store_client.select_client(customer.id)["balance"] == Decimal("-12.00")
