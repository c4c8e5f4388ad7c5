# Overview: Identity adapter; resolves Telegram users to Nexus users and manages their roles.

from __future__ import annotations

from typing import Optional

from flask import current_app

from ..domain import User
from ..permissions import Role, parse_role
from . import store_client

DEFAULT_ROLE = Role.GUEST


class IdentityError(Exception):
    """Raised for identity errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class UserNotFound(IdentityError):
    pass


def display_name(first_name: str = "", last_name: str = "", username: Optional[str] = None) -> str:
    name = " ".join(part for part in (first_name, last_name) if part)
    return name or username or "Telegram user"


def find_or_create_telegram_user(telegram_user: dict) -> tuple[User, bool]:
    """
    Look up a user by Telegram id, creating a GUEST account on first login.

    Returns ``(user, created)``. The Telegram payload is trusted as given;
    signature checks belong to the gateway in front of this service.
    """
    telegram_id = telegram_user["id"]
    row = store_client.select_user_by_telegram_id(telegram_id)
    if row is not None:
        return User.from_row(row), False

    row = store_client.insert_user({
        "telegram_id": telegram_id,
        "name": display_name(
            telegram_user.get("first_name") or "",
            telegram_user.get("last_name") or "",
            telegram_user.get("username"),
        ),
        "username": telegram_user.get("username"),
        "avatar_url": telegram_user.get("photo_url"),
        "role": DEFAULT_ROLE.value,
    })
    user = User.from_row(row)
    current_app.logger.info("Created user %s for telegram id %s", user.id, telegram_id)
    return user, True


def create_user(*, telegram_id: int, name: str, role=DEFAULT_ROLE) -> User:
    role = parse_role(role)
    if store_client.select_user_by_telegram_id(telegram_id) is not None:
        raise IdentityError("Telegram id already registered", details={"telegram_id": telegram_id})
    row = store_client.insert_user({"telegram_id": telegram_id, "name": name, "role": role.value})
    return User.from_row(row)


def get_user(user_id: str) -> Optional[User]:
    row = store_client.select_user(user_id)
    return User.from_row(row) if row else None


def require_user(user_id: str) -> User:
    user = get_user(user_id)
    if user is None:
        raise UserNotFound("User not found", details={"user_id": user_id})
    return user


def list_users() -> list[User]:
    return [User.from_row(row) for row in store_client.select_users()]


def set_role(user_id: str, role, *, actor_id: Optional[str] = None) -> User:
    try:
        role = parse_role(role)
    except ValueError as exc:
        raise IdentityError(str(exc), details={"role": role}) from exc

    if actor_id is not None and actor_id == user_id:
        raise IdentityError("Users cannot change their own role")

    require_user(user_id)
    user = User.from_row(store_client.update_user_role(user_id, role.value))
    current_app.logger.info("User %s role set to %s by %s", user_id, role.value, actor_id or "system")
    return user
