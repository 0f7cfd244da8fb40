"""Product repository interface.

Checkout needs two things from the catalog: a locked read for stock
decrement and a way to persist the new stock level.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for catalog products."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional["Product"]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Used by checkout for the stock check-and-decrement.
        Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def count_low_stock(self, threshold: int) -> int:
        """Number of products whose stock is at or below *threshold*."""
