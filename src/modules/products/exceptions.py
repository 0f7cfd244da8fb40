"""Product domain exceptions raised during checkout."""

from __future__ import annotations

from modules.core.exceptions import NotFound, ValidationFailed


class ProductNotFound(NotFound):
    default_detail = "Product not found."


class InactiveProduct(ValidationFailed):
    default_detail = "Product is not available."


class InsufficientStock(ValidationFailed):
    default_detail = "Insufficient stock."
