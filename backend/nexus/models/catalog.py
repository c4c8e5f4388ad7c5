from __future__ import annotations

from ..extensions import db
from ._ids import new_id


class Product(db.Model):
    """
    Catalog entry.

    WHY stock is a column: the hosted store keeps quantity on hand on the
    product row; stock_movements is the audit trail that should reconcile
    with it, not the source of truth.

    Soft delete: deleted_at hides the product from the catalog while keeping
    historical order items and movements joinable.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sku = db.Column(db.String(64), nullable=False, index=True)  # unique by convention only
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False, default="")

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Not DB-enforced non-negative; see checkout negative stock policy
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    unit = db.Column(db.String(32), nullable=False, default="pcs")
    image_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} stock={self.stock}>"
