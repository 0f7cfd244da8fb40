"""Cash flow repositories package."""

from modules.cashflow.repositories.django_repository import CashFlowDjangoRepository
from modules.cashflow.repositories.interfaces import ICashFlowRepository

__all__ = ["CashFlowDjangoRepository", "ICashFlowRepository"]
