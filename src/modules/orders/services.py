"""Order service layer (Use Cases).

Orchestrates order placement, the status state machine and the history
query.  Services are stateless; every write runs in its own
``transaction.atomic`` unit of work.

Rules enforced:
- Every operation is scoped to the acting user; foreign orders are
  reported exactly like missing ones.
- Orders are created in ``pending`` for an existing dish with a positive
  quantity; creation bypasses the transition table.
- Status changes follow ``VALID_TRANSITIONS``; terminal orders and same
  status requests are rejected.
- A status change writes status + ``updated_at`` only, never other rows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.core.pagination import slice_page
from modules.orders.exceptions import (
    DishNotFound,
    InvalidTransition,
    OrderNotFound,
    UnauthenticatedUser,
)
from modules.orders.queries import OrderPage, OrderQueryBuilder, OrderQueryParams

if TYPE_CHECKING:
    from modules.dishes.repositories.interfaces import IDishRepository
    from modules.orders.dtos import (
        CreateOrderDTO,
        OrderListFiltersDTO,
        UpdateOrderStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _require_user_id(user: Any) -> Any:
    """Return the acting user's id or fail before any work is done."""
    if user is None or not getattr(user, "is_authenticated", False):
        raise UnauthenticatedUser("Authentication credentials were not provided.")
    return user.pk


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        dish_repository: IDishRepository,
    ) -> None:
        self._order_repo = order_repository
        self._dish_repo = dish_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, user: Any, dto: CreateOrderDTO) -> Order:
        """Create a ``pending`` order for *user*.

        Raises:
            UnauthenticatedUser: no acting user.
            DishNotFound: the dish does not exist.
        """
        user_id = _require_user_id(user)
        log = logger.bind(user_id=user_id, dish_id=str(dto.dish_id))

        dish = self._dish_repo.get_by_id(str(dto.dish_id))
        if not dish:
            log.warning("order.dish_not_found")
            raise DishNotFound(f"Dish {dto.dish_id} not found.")

        order = self._order_repo.create(
            {
                "user_id": user_id,
                "dish_id": dish.id,
                "quantity": dto.quantity,
            }
        )
        log.info("order.created", order_id=str(order.id), quantity=dto.quantity)
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def transition(
        self,
        user: Any,
        order_id: str,
        dto: UpdateOrderStatusDTO,
    ) -> Order:
        """Move an order to ``dto.status`` if the transition table allows it.

        Locks the order row (``SELECT FOR UPDATE``) before validating, then
        applies a conditional update keyed on the status that was validated.
        A request that waited on the lock is therefore judged against the
        committed status of the winner.

        Raises:
            UnauthenticatedUser: no acting user.
            OrderNotFound: order missing or owned by someone else.
            InvalidTransition: the edge is not in the transition table.
            OrderConflict: the status changed between validation and write.
        """
        user_id = _require_user_id(user)
        order = self._order_repo.get_for_update(user_id, order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        requested = dto.status.value
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=requested,
        )

        if not order.can_transition_to(requested):
            log.warning("order.invalid_transition", terminal=order.is_terminal)
            raise InvalidTransition(order.status, requested)

        old_status = order.status
        updated = self._order_repo.update_status(order.id, old_status, requested)

        log.info("order.status_updated", old_status=old_status)
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, user: Any, order_id: str) -> Order:
        """Retrieve one of the user's orders.

        Raises:
            UnauthenticatedUser: no acting user.
            OrderNotFound: order missing or owned by someone else.
        """
        user_id = _require_user_id(user)
        order = self._order_repo.find_owned(user_id, order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, user: Any, filters: OrderListFiltersDTO) -> OrderPage:
        """Return one page of the user's orders, newest first.

        Fetches ``limit + 1`` rows; the extra row only signals that a
        next page exists and is never returned.

        Raises:
            UnauthenticatedUser: no acting user.
            InvalidOrderQuery: the cursor could not be decoded.
        """
        user_id = _require_user_id(user)
        params = OrderQueryParams.from_filters(user_id, filters)
        builder = OrderQueryBuilder(params)

        rows = self._order_repo.query(builder.build(), builder.fetch_size)
        orders, next_cursor = slice_page(rows, params.limit)

        logger.info(
            "order.page_listed",
            user_id=user_id,
            count=len(orders),
            has_next=next_cursor is not None,
            status_filter=params.status,
        )
        return OrderPage(orders=orders, next_cursor=next_cursor)
