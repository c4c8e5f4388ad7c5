from __future__ import annotations

from ..extensions import db
from ._ids import new_id


class User(db.Model):
    """
    Staff/user identity as provisioned by the Telegram identity gateway.

    The core only needs id (attribution on orders) and role (capabilities).
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    telegram_id = db.Column(db.BigInteger, nullable=True, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="GUEST")
    avatar_url = db.Column(db.String(1024), nullable=True)
    username = db.Column(db.String(64), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
