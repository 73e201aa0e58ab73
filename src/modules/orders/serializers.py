"""Order DRF serializers for API input/output.

The serializers operate at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.core.pagination import Cursor, InvalidCursor
from modules.core.users import display_name
from modules.dishes.models import Dish
from modules.orders.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, OrderStatus
from modules.orders.models import Order

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order placement payload."""

    dish_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Validates the status change payload (membership only)."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)


class OrderListQuerySerializer(serializers.Serializer):
    """Validates the query string of ``GET /orders/``.

    Blank values are treated as absent.
    """

    status = serializers.ChoiceField(
        choices=OrderStatus.choices, required=False, allow_blank=True
    )
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    cursor = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MAX_PAGE_LIMIT,
        default=DEFAULT_PAGE_LIMIT,
    )

    def to_internal_value(self, data):
        cleaned = {
            key: value
            for key, value in data.items()
            if key in self.fields and not (isinstance(value, str) and not value.strip())
        }
        return super().to_internal_value(cleaned)

    def validate_cursor(self, value: str) -> str:
        try:
            Cursor.decode(value)
        except InvalidCursor as exc:
            raise serializers.ValidationError(str(exc), code="invalid_cursor") from exc
        return value


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class DishSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Dish
        fields = ["id", "name", "price"]
        read_only_fields = fields


class OrderOwnerSerializer(serializers.Serializer):
    """Public view of the order owner: display name only."""

    name = serializers.SerializerMethodField()

    def get_name(self, user) -> str:
        return display_name(user)


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with denormalised dish and owner."""

    dish = DishSummarySerializer(read_only=True)
    user = OrderOwnerSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "quantity",
            "status",
            "created_at",
            "updated_at",
            "dish",
            "user",
        ]
        read_only_fields = fields


class OrderPageSerializer(serializers.Serializer):
    """Envelope of ``GET /orders/``: one page plus the next cursor."""

    orders = OrderSerializer(many=True, read_only=True)
    next_cursor = serializers.CharField(read_only=True, allow_null=True)
