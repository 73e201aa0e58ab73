"""Dish repositories package."""

from modules.dishes.repositories.django_repository import DishDjangoRepository
from modules.dishes.repositories.interfaces import IDishRepository

__all__ = ["DishDjangoRepository", "IDishRepository"]
