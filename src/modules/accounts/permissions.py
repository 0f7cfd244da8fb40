"""Role → capability resolution.

``PermissionResolver.resolve(role)`` is a pure lookup: no I/O, no request
context.  Services receive the resolver through their constructor and
ask it for the actor's ``Capabilities`` before mutating anything.

Capability sets per role:

- ADMIN: everything.
- FINANCIAL: view/edit orders (payment fields only, see
  ``OrderService.update_order``), cash flow CRUD, unpaid orders.
- MANAGEMENT: view/edit orders, assign delivery, delivery persons,
  delivery zones, unpaid orders.  No products, categories, users or
  cash flow.
- DELIVERY, USER: nothing.  Couriers use the narrower self-service
  surface under ``/delivery/``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Dict, FrozenSet, Mapping

from modules.accounts.constants import ADMIN_SURFACE_ROLES, Role
from modules.core.exceptions import AuthorizationDenied


@dataclass(frozen=True)
class Capabilities:
    # Orders
    can_view_orders: bool = False
    can_edit_orders: bool = False
    can_delete_orders: bool = False
    can_assign_delivery: bool = False
    # Products
    can_view_products: bool = False
    can_create_products: bool = False
    can_edit_products: bool = False
    can_delete_products: bool = False
    # Categories
    can_view_categories: bool = False
    can_create_categories: bool = False
    can_edit_categories: bool = False
    can_delete_categories: bool = False
    # Users
    can_view_users: bool = False
    can_create_users: bool = False
    can_edit_users: bool = False
    can_delete_users: bool = False
    # Delivery persons
    can_view_delivery_persons: bool = False
    can_manage_delivery_persons: bool = False
    can_assign_routes: bool = False
    # Cash flow
    can_view_cash_flow: bool = False
    can_create_cash_flow: bool = False
    can_edit_cash_flow: bool = False
    can_delete_cash_flow: bool = False
    # Delivery zones
    can_view_delivery_zones: bool = False
    can_manage_delivery_zones: bool = False
    # Unpaid orders
    can_view_unpaid_orders: bool = False
    can_manage_unpaid_orders: bool = False

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def granting(cls, granted: FrozenSet[str]) -> Capabilities:
        unknown = granted - set(cls.names())
        if unknown:
            raise ValueError(f"Unknown capabilities: {sorted(unknown)}")
        return cls(**{name: name in granted for name in cls.names()})

    def as_dict(self) -> Dict[str, bool]:
        return asdict(self)


_FINANCIAL: FrozenSet[str] = frozenset(
    {
        "can_view_orders",
        "can_edit_orders",
        "can_view_cash_flow",
        "can_create_cash_flow",
        "can_edit_cash_flow",
        "can_delete_cash_flow",
        "can_view_unpaid_orders",
        "can_manage_unpaid_orders",
    }
)

_MANAGEMENT: FrozenSet[str] = frozenset(
    {
        "can_view_orders",
        "can_edit_orders",
        "can_assign_delivery",
        "can_view_delivery_persons",
        "can_manage_delivery_persons",
        "can_assign_routes",
        "can_view_delivery_zones",
        "can_manage_delivery_zones",
        "can_view_unpaid_orders",
        "can_manage_unpaid_orders",
    }
)

DEFAULT_ROLE_TABLE: Mapping[str, Capabilities] = {
    Role.ADMIN: Capabilities.granting(frozenset(Capabilities.names())),
    Role.FINANCIAL: Capabilities.granting(_FINANCIAL),
    Role.MANAGEMENT: Capabilities.granting(_MANAGEMENT),
    Role.DELIVERY: Capabilities(),
    Role.USER: Capabilities(),
}


class PermissionResolver:
    """Maps a role to its ``Capabilities``; unknown roles get USER's set."""

    def __init__(self, table: Mapping[str, Capabilities] | None = None) -> None:
        self._table = dict(table if table is not None else DEFAULT_ROLE_TABLE)

    def resolve(self, role: str) -> Capabilities:
        return self._table.get(role, self._table.get(Role.USER, Capabilities()))

    def require(self, role: str, capability: str) -> Capabilities:
        """Return the role's capabilities or raise ``AuthorizationDenied``."""
        capabilities = self.resolve(role)
        if not getattr(capabilities, capability):
            raise AuthorizationDenied()
        return capabilities


def can_access_admin(role: str) -> bool:
    """Whether the role may reach the administrative surface at all."""
    return role in ADMIN_SURFACE_ROLES


def is_full_admin(role: str) -> bool:
    """Installment schedules, reminders and courier itineraries are ADMIN only."""
    return role == Role.ADMIN


def require_full_admin(role: str) -> None:
    if not is_full_admin(role):
        raise AuthorizationDenied()


permission_resolver = PermissionResolver()
