# Overview: Service-layer operations for client accounts and their balance ledger.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..domain import Client
from ..money import round_money
from . import store_client
from .snapshot_service import DomainSnapshot
from .store_client import RowNotFound, StoreError
"""
Client Balance Invariants

- balance is signed: negative means the client owes money.
- Every change is a relative, atomic increment; no caller ever writes an
  absolute balance computed from a cached value.
- record_payment adds the amount; checkout debits subtract the order total.
"""


class ClientLedgerError(Exception):
    """Raised for client account errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ClientNotFound(ClientLedgerError):
    pass


def add_client(*, snapshot: DomainSnapshot, client: Client) -> Client:
    try:
        created = Client.from_row(store_client.insert_client(client.to_row()))
    finally:
        snapshot.refresh()
    current_app.logger.info("Client %s (%s) added", created.id, created.company_name or created.name)
    return created


def record_payment(*, snapshot: DomainSnapshot, client_id: str, amount) -> Client:
    """
    Credit a payment to the client.

    Negative amounts are accepted and act as a manual debit; they are logged
    so they stand out in audit.
    """
    amount = round_money(amount)
    if snapshot.find_client(client_id) is None:
        raise ClientNotFound("Client not found", details={"client_id": client_id})
    if amount < 0:
        current_app.logger.warning("Negative payment %s recorded for client %s", amount, client_id)

    try:
        updated = Client.from_row(store_client.increment_balance(client_id, amount))
    except RowNotFound as exc:
        raise ClientNotFound("Client not found", details={"client_id": client_id}) from exc
    except StoreError as exc:
        current_app.logger.error("record_payment failed for client %s: %s", client_id, exc)
        raise
    finally:
        snapshot.refresh()

    current_app.logger.info("Payment %s recorded for client %s; balance now %s", amount, client_id, updated.balance)
    return updated


def apply_checkout_debit(client_id: str, amount: Decimal) -> Client:
    """Subtract an order total from the client balance. Does not refresh."""
    return Client.from_row(store_client.increment_balance(client_id, -round_money(amount)))
