"""Dish reference model.

Dishes are read-only from the order core's point of view: orders point at
them, but placing or advancing an order never mutates a dish.

- Price must be greater than zero.
- A dish that has orders cannot be deleted (``Order.dish`` uses
  ``PROTECT``) so past orders keep their history.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Dish(BaseModel):
    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    class Meta:
        db_table = "dishes"
        ordering = ["name"]
        verbose_name_plural = "dishes"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="dishes_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def __str__(self) -> str:
        return f"{self.name} ({self.price})"
