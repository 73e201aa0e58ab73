"""Order model.

Business rules implemented:
- Quantity is always a positive integer (validator + DB check constraint).
- Status starts at ``pending`` and only moves along ``VALID_TRANSITIONS``
  (enforced at the service layer, helpers below).
- ``user`` and ``dish`` are immutable references; ``Dish`` uses PROTECT so
  order history survives catalog changes.
- Composite indexes back the owner-scoped history queries:
  ``(user, created_at)`` and ``(user, status, created_at)``.
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    INITIAL_STATUS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)


class Order(BaseModel):
    """Order aggregate root.

    The UUIDv7 ``id`` doubles as a tie breaker behind ``created_at`` in
    the cursor ordering.
    """

    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="orders",
    )
    dish: models.ForeignKey = models.ForeignKey(
        "dishes.Dish",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=INITIAL_STATUS,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["user", "created_at"],
                name="orders_user_created_idx",
            ),
            models.Index(
                fields=["user", "status", "created_at"],
                name="orders_user_status_created_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="orders_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, frozenset())

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def __str__(self) -> str:
        return f"Order {self.id} x{self.quantity} ({self.status})"
