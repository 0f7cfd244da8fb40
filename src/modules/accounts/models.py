"""Custom user model carrying the role consumed by the permission resolver."""

from __future__ import annotations

import uuid6
from django.contrib.auth.models import AbstractUser
from django.db import models

from modules.accounts.constants import Role


class User(AbstractUser):
    """Authenticated actor: customer, courier or staff member.

    ``name`` is the display name shown on orders and courier rosters;
    ``username`` stays the login identifier.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    name = models.CharField(max_length=255, blank=True, default="")
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.USER,
    )

    class Meta:
        db_table = "users"
        ordering = ["name", "username"]
        indexes = [
            models.Index(fields=["role"], name="users_role_idx"),
        ]

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.display_name} ({self.role})"
