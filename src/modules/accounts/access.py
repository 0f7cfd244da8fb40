"""DRF permission classes gating whole API surfaces by role.

Fine-grained capability checks live in the services; these classes only
decide which surface a role may reach at all.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.accounts.constants import Role
from modules.accounts.permissions import can_access_admin


class AdminSurfaceAccess(BasePermission):
    """ADMIN, FINANCIAL and MANAGEMENT only."""

    message = "Access not authorized."

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and can_access_admin(user.role))


class DeliverySurfaceAccess(BasePermission):
    """Couriers only."""

    message = "Only delivery persons can access this resource."

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.role == Role.DELIVERY)
