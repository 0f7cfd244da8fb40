"""Delivery zone exceptions."""

from __future__ import annotations

from modules.core.exceptions import ValidationFailed


class ZoneUnavailable(ValidationFailed):
    """The chosen zone does not exist or no longer delivers."""

    default_detail = "Delivery zone is not available."
