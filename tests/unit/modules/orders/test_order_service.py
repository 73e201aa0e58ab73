"""Unit tests for OrderService with mocked dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db.models import Q

from modules.core.pagination import Cursor
from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    CreateOrderDTO,
    OrderListFiltersDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.exceptions import (
    DishNotFound,
    InvalidOrderQuery,
    InvalidTransition,
    OrderConflict,
    OrderNotFound,
    UnauthenticatedUser,
)
from modules.orders.models import Order
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


@dataclass
class StubUser:
    pk: Any
    is_authenticated: bool = True


@dataclass
class StubDish:
    id: UUID


@dataclass
class StubRow:
    id: UUID
    created_at: datetime


def _call_place_order(service: OrderService, user, dto: CreateOrderDTO):
    return OrderService.place_order.__wrapped__(service, user, dto)


def _call_transition(service: OrderService, user, order_id, status: str):
    dto = UpdateOrderStatusDTO(status=status)
    return OrderService.transition.__wrapped__(service, user, str(order_id), dto)


def _order(status: str) -> Order:
    """Unsaved order carrying only what the state machine reads."""
    return Order(id=uuid4(), status=status, quantity=1)


@pytest.fixture()
def service_and_repos():
    order_repo = MagicMock()
    dish_repo = MagicMock()
    service = OrderService(order_repo, dish_repo)
    return service, order_repo, dish_repo


@pytest.fixture()
def acting_user():
    return StubUser(pk=42)


# ===========================================================================
# place_order
# ===========================================================================


class TestPlaceOrder:
    def test_success_creates_pending_order(self, service_and_repos, acting_user):
        service, order_repo, dish_repo = service_and_repos
        dish = StubDish(id=uuid4())
        dish_repo.get_by_id.return_value = dish

        order = MagicMock()
        order.id = uuid4()
        order_repo.create.return_value = order
        order_repo.get_by_id.return_value = order

        result = _call_place_order(
            service, acting_user, CreateOrderDTO(dish_id=dish.id, quantity=3)
        )

        assert result is order
        dish_repo.get_by_id.assert_called_once_with(str(dish.id))
        order_repo.create.assert_called_once_with(
            {"user_id": 42, "dish_id": dish.id, "quantity": 3}
        )
        order_repo.get_by_id.assert_called_once_with(str(order.id))

    def test_unknown_dish_raises(self, service_and_repos, acting_user):
        service, order_repo, dish_repo = service_and_repos
        dish_repo.get_by_id.return_value = None

        with pytest.raises(DishNotFound):
            _call_place_order(
                service, acting_user, CreateOrderDTO(dish_id=uuid4(), quantity=1)
            )

        order_repo.create.assert_not_called()

    @pytest.mark.parametrize("user", [None, AnonymousUser()])
    def test_unauthenticated_user_raises(self, service_and_repos, user):
        service, order_repo, dish_repo = service_and_repos

        with pytest.raises(UnauthenticatedUser):
            _call_place_order(service, user, CreateOrderDTO(dish_id=uuid4(), quantity=1))

        dish_repo.get_by_id.assert_not_called()
        order_repo.create.assert_not_called()


# ===========================================================================
# transition
# ===========================================================================


class TestTransition:
    def test_valid_transition_uses_conditional_update(
        self, service_and_repos, acting_user
    ):
        service, order_repo, _ = service_and_repos
        order = _order(OrderStatus.PENDING)
        order_repo.get_for_update.return_value = order
        updated = _order(OrderStatus.CONFIRMED)
        order_repo.update_status.return_value = updated

        result = _call_transition(service, acting_user, order.id, "confirmed")

        assert result is updated
        order_repo.get_for_update.assert_called_once_with(42, str(order.id))
        order_repo.update_status.assert_called_once_with(
            order.id, OrderStatus.PENDING, "confirmed"
        )

    def test_invalid_transition_raises_without_writing(
        self, service_and_repos, acting_user
    ):
        service, order_repo, _ = service_and_repos
        order = _order(OrderStatus.COMPLETED)
        order_repo.get_for_update.return_value = order

        with pytest.raises(InvalidTransition) as exc_info:
            _call_transition(service, acting_user, order.id, "pending")

        assert exc_info.value.current == OrderStatus.COMPLETED
        assert exc_info.value.requested == "pending"
        order_repo.update_status.assert_not_called()

    def test_same_status_raises(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order = _order(OrderStatus.PREPARING)
        order_repo.get_for_update.return_value = order

        with pytest.raises(InvalidTransition):
            _call_transition(service, acting_user, order.id, "preparing")

        order_repo.update_status.assert_not_called()

    def test_order_not_found_raises(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = None

        with pytest.raises(OrderNotFound):
            _call_transition(service, acting_user, uuid4(), "confirmed")

        order_repo.update_status.assert_not_called()

    def test_conflict_propagates(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order = _order(OrderStatus.PENDING)
        order_repo.get_for_update.return_value = order
        order_repo.update_status.side_effect = OrderConflict("moved on")

        with pytest.raises(OrderConflict):
            _call_transition(service, acting_user, order.id, "cancelled")

    def test_unauthenticated_user_raises(self, service_and_repos):
        service, order_repo, _ = service_and_repos

        with pytest.raises(UnauthenticatedUser):
            _call_transition(service, None, uuid4(), "confirmed")

        order_repo.get_for_update.assert_not_called()


# ===========================================================================
# get_order
# ===========================================================================


class TestGetOrder:
    def test_returns_owned_order(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order = _order(OrderStatus.PENDING)
        order_repo.find_owned.return_value = order

        assert service.get_order(acting_user, str(order.id)) is order
        order_repo.find_owned.assert_called_once_with(42, str(order.id))

    def test_missing_or_foreign_order_raises(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order_repo.find_owned.return_value = None

        with pytest.raises(OrderNotFound):
            service.get_order(acting_user, str(uuid4()))


# ===========================================================================
# list_orders
# ===========================================================================


def _rows(count: int) -> list[StubRow]:
    start = datetime(2025, 7, 29, 12, 0, tzinfo=dt_timezone.utc)
    return [StubRow(id=uuid4(), created_at=start - timedelta(minutes=i)) for i in range(count)]


class TestListOrders:
    def test_fetches_limit_plus_one_with_owner_first(
        self, service_and_repos, acting_user
    ):
        service, order_repo, _ = service_and_repos
        order_repo.query.return_value = []

        service.list_orders(acting_user, OrderListFiltersDTO(status="completed"))

        predicates, limit = order_repo.query.call_args.args
        assert limit == 11
        assert predicates == [Q(user_id=42), Q(status="completed")]

    def test_overflow_returns_limit_rows_and_cursor(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        rows = _rows(11)
        order_repo.query.return_value = rows

        page = service.list_orders(acting_user, OrderListFiltersDTO())

        assert page.orders == rows[:10]
        assert page.next_cursor == Cursor.for_row(rows[9]).encode()
        assert page.has_next

    def test_last_page_has_no_cursor(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        rows = _rows(5)
        order_repo.query.return_value = rows

        page = service.list_orders(acting_user, OrderListFiltersDTO())

        assert page.orders == rows
        assert page.next_cursor is None

    def test_empty_result_is_valid(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos
        order_repo.query.return_value = []

        page = service.list_orders(
            acting_user,
            OrderListFiltersDTO(start_date=date(2025, 7, 2), end_date=date(2025, 7, 1)),
        )

        assert page.orders == []
        assert page.next_cursor is None

    def test_malformed_cursor_raises(self, service_and_repos, acting_user):
        service, order_repo, _ = service_and_repos

        with pytest.raises(InvalidOrderQuery):
            service.list_orders(acting_user, OrderListFiltersDTO(cursor="garbage"))

        order_repo.query.assert_not_called()

    def test_unauthenticated_user_raises_before_filters(self, service_and_repos):
        service, order_repo, _ = service_and_repos

        with pytest.raises(UnauthenticatedUser):
            service.list_orders(
                StubUser(pk=None, is_authenticated=False),
                OrderListFiltersDTO(cursor="garbage"),
            )

        order_repo.query.assert_not_called()
