"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import VALIDATION_ERROR, error_response
from modules.dishes.repositories.django_repository import DishDjangoRepository
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
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListQuerySerializer,
    OrderPageSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService


def _not_found() -> Response:
    return error_response(status.HTTP_404_NOT_FOUND, "not_found", "Order not found.")


def _unauthenticated(exc: UnauthenticatedUser) -> Response:
    return error_response(
        status.HTTP_401_UNAUTHORIZED, "not_authenticated", str(exc)
    )


def _invalid_dto(exc: PydanticValidationError) -> Response:
    first = exc.errors()[0]
    attr = ".".join(str(part) for part in first.get("loc", ())) or None
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "invalid",
        first.get("msg", str(exc)),
        attr=attr,
        error_type=VALIDATION_ERROR,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for the current user's orders.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer, which scopes every read and write to
    ``request.user``.
    """

    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            dish_repository=DishDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        elif self.action == "partial_update":
            throttle_scope = "order_update"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(
        parameters=[OrderListQuerySerializer],
        responses=OrderPageSerializer,
    )
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Newest first, filtered by ``status``, ``start_date``, ``end_date``
        and paginated with the opaque ``cursor`` returned as
        ``next_cursor`` by the previous page.
        """
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            filters = OrderListFiltersDTO(**query.validated_data)
        except PydanticValidationError as exc:
            return _invalid_dto(exc)

        try:
            page = self._service.list_orders(request.user, filters)
        except UnauthenticatedUser as exc:
            return _unauthenticated(exc)
        except InvalidOrderQuery as exc:
            return error_response(
                status.HTTP_400_BAD_REQUEST,
                "invalid",
                str(exc),
                attr=exc.field,
                error_type=VALIDATION_ERROR,
            )

        return Response(OrderPageSerializer(page).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        if pk is None:
            return _not_found()
        try:
            order = self._service.get_order(request.user, pk)
        except UnauthenticatedUser as exc:
            return _unauthenticated(exc)
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer})
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Places a ``pending`` order for the authenticated user.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(**create_serializer.validated_data)
        except PydanticValidationError as exc:
            return _invalid_dto(exc)

        try:
            order = self._service.place_order(request.user, dto)
        except UnauthenticatedUser as exc:
            return _unauthenticated(exc)
        except DishNotFound as exc:
            return error_response(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "dish_not_found",
                str(exc),
                attr="dish_id",
            )

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderStatusSerializer, responses=OrderSerializer)
    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Advances the order through the fulfillment lifecycle.  Illegal
        transitions (including any change of a completed or cancelled
        order) return 422.
        """
        if pk is None:
            return _not_found()

        status_serializer = UpdateOrderStatusSerializer(data=request.data)
        status_serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateOrderStatusDTO(**status_serializer.validated_data)
        except PydanticValidationError as exc:
            return _invalid_dto(exc)

        try:
            order = self._service.transition(request.user, pk, dto)
        except UnauthenticatedUser as exc:
            return _unauthenticated(exc)
        except OrderNotFound:
            return _not_found()
        except InvalidTransition as exc:
            return error_response(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "invalid_transition",
                str(exc),
                attr="status",
            )
        except OrderConflict as exc:
            return error_response(status.HTTP_409_CONFLICT, "conflict", str(exc))

        return Response(OrderSerializer(order).data)
