from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow
from ._ids import new_id


class Order(db.Model):
    """
    Checkout document.

    status walks pending -> items_written -> balance_applied ->
    stock_applied -> completed. Any other final value means the checkout
    stopped part way and needs manual reconciliation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_date", "date"),
        db.Index("ix_orders_client_id", "client_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    client_id = db.Column(db.String(36), db.ForeignKey("clients.id"), nullable=False)
    staff_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)

    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="pending", index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    client = db.relationship("Client", lazy="joined")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        lazy="selectin",
    )


class OrderItem(db.Model):
    """Immutable line snapshot: price_at_sale never follows catalog changes."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    # No cascade: a product may be archived or missing while history remains
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product", lazy="joined")
