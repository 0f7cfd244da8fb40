"""Cash flow exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFound, ValidationFailed


class EntryNotFound(NotFound):
    default_detail = "Cash flow entry not found."


class InvalidEntry(ValidationFailed):
    """Bad type, amount, payment method or missing required field."""
