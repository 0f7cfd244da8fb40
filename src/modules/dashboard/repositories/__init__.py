"""Dashboard statistics repositories package."""

from modules.dashboard.repositories.django_repository import StatsDjangoRepository
from modules.dashboard.repositories.interfaces import IStatsRepository

__all__ = ["IStatsRepository", "StatsDjangoRepository"]
