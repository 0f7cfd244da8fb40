"""Account roles.

``USER`` is a shopping customer; ``DELIVERY`` is a courier using the
self-service delivery surface; ``ADMIN``, ``FINANCIAL`` and
``MANAGEMENT`` reach the administrative surface with the capability
sets defined in ``modules.accounts.permissions``.
"""

from django.db import models


class Role(models.TextChoices):
    USER = "USER", "Cliente"
    ADMIN = "ADMIN", "Administrador"
    DELIVERY = "DELIVERY", "Entregador"
    FINANCIAL = "FINANCIAL", "Financeiro"
    MANAGEMENT = "MANAGEMENT", "Gerência"


ADMIN_SURFACE_ROLES: frozenset[str] = frozenset(
    {Role.ADMIN, Role.FINANCIAL, Role.MANAGEMENT}
)
