"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Concurrency control on status updates combines ``select_for_update()``
(taken by ``get_for_update``) with a conditional ``UPDATE ... WHERE
status = <expected>`` so that two transitions racing from the same source
status can never both be applied, even on backends without row locks.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from modules.orders.constants import INITIAL_STATUS
from modules.orders.exceptions import OrderConflict
from modules.orders.models import Order
from modules.orders.queries import ORDERING
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self):
        return Order.objects.select_related("dish", "user")

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            dish_id=data["dish_id"],
            quantity=data["quantity"],
            status=INITIAL_STATUS,
        )
        order.full_clean(exclude=["user", "dish"])
        order.save()
        logger.info("order.inserted", order_id=str(order.id))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with dish and owner eager-loaded.

        Not owner-scoped: only for re-reading an order the caller already
        proved ownership of.  Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def find_owned(self, user_id: Any, id: str) -> Optional[Order]:
        try:
            return self._base_queryset().filter(id=id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, user_id: Any, id: str) -> Optional[Order]:
        """Owner-scoped look-up with a row-level lock (SELECT FOR UPDATE).

        Must run inside a transaction.  Returns ``None`` for non-existent,
        foreign or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .filter(id=id, user_id=user_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def query(self, predicates: Sequence[Q], limit: int) -> List[Order]:
        queryset = self._base_queryset().filter(*predicates).order_by(*ORDERING)
        return list(queryset[:limit])

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_status(self, id: UUID, expected_status: str, new_status: str) -> Order:
        updated = Order.objects.filter(id=id, status=expected_status).update(
            status=new_status,
            updated_at=timezone.now(),
        )
        if updated != 1:
            logger.warning(
                "order.conditional_update_missed",
                order_id=str(id),
                expected_status=expected_status,
            )
            raise OrderConflict(
                f"Order {id} is no longer {expected_status}; reload and retry."
            )
        return self._base_queryset().get(id=id)
