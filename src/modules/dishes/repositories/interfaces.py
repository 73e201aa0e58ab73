"""Dish repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.dishes.models import Dish


class IDishRepository(IRepository["Dish"]):
    """Repository contract for dishes (read-mostly reference data)."""

    @abstractmethod
    def save(self, entity: Dish) -> Dish:
        """Validate and persist a dish."""
