from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class StockMovement(db.Model):
    """
    Append-only stock ledger entry.

    quantity is signed: positive adds stock, negative removes it.
    Rows are never updated or deleted.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)  # restock, sale, adjustment
    quantity = db.Column(db.Integer, nullable=False)
    note = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", lazy="joined")
