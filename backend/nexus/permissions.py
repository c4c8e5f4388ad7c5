"""
Roles and capabilities.

WHY: Role checks were scattered boolean flags in the front-end
(isAdmin, isStaff, ...). Here roles are a closed enum and every guarded
route asks one question: does this role have capability X?

Hierarchy: DEVELOPER > ADMIN > STAFF > GUEST. Capabilities are listed
explicitly per role rather than inherited so the table can be read at a glance.
"""

from enum import Enum


class Role(str, Enum):
    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    GUEST = "GUEST"


class Capability(str, Enum):
    VIEW_CATALOG = "VIEW_CATALOG"
    VIEW_DASHBOARD = "VIEW_DASHBOARD"
    MANAGE_PRODUCTS = "MANAGE_PRODUCTS"
    MANAGE_CLIENTS = "MANAGE_CLIENTS"
    CHECKOUT = "CHECKOUT"
    RECONCILE = "RECONCILE"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    MANAGE_USERS = "MANAGE_USERS"


_STAFF_CAPABILITIES = frozenset({
    Capability.VIEW_CATALOG,
    Capability.MANAGE_PRODUCTS,
    Capability.MANAGE_CLIENTS,
    Capability.CHECKOUT,
})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.DEVELOPER: frozenset(Capability),
    Role.ADMIN: _STAFF_CAPABILITIES | {
        Capability.VIEW_DASHBOARD,
        Capability.RECONCILE,
        Capability.MANAGE_SETTINGS,
        Capability.MANAGE_USERS,
    },
    Role.STAFF: _STAFF_CAPABILITIES,
    Role.GUEST: frozenset({Capability.VIEW_CATALOG}),
}


def parse_role(value) -> Role:
    """Parse a role name case-insensitively; raises ValueError for unknown roles."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value or "").strip().upper())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def has_capability(role, capability: Capability) -> bool:
    """Unknown roles have no capabilities."""
    try:
        parsed = parse_role(role)
    except ValueError:
        return False
    return capability in ROLE_CAPABILITIES[parsed]
