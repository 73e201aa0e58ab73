"""Django ORM implementation of the Dish repository.

Follows the Null Object pattern: look-ups return ``None`` instead of
raising, the Service Layer decides what a missing dish means.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.dishes.models import Dish
from modules.dishes.repositories.interfaces import IDishRepository

logger = structlog.get_logger(__name__)


class DishDjangoRepository(IDishRepository):
    """Concrete Dish repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Dish]:
        """Retrieve a dish by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return Dish.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Dish) -> Dish:
        entity.full_clean()
        entity.save()
        logger.info("dish.saved", dish_id=str(entity.id))
        return entity
