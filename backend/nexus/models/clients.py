from __future__ import annotations

from ..extensions import db
from ._ids import new_id


class Client(db.Model):
    """
    Customer account with a running balance.

    balance < 0 is debt owed to the business, balance > 0 is prepaid credit.
    Only checkout (debit) and payments (credit) move it, always through an
    atomic relative update.
    """
    __tablename__ = "clients"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Client id={self.id} company={self.company_name!r} balance={self.balance}>"
