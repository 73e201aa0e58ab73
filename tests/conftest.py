from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.dishes.models import Dish
from modules.orders.constants import OrderStatus
from modules.orders.models import Order

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    return User.objects.create_user(
        username="hanako",
        password="testpass123",
        email="hanako@example.com",
        first_name="Hanako",
        last_name="Yamada",
    )


@pytest.fixture()
def other_user():
    return User.objects.create_user(username="taro", password="testpass123")


@pytest.fixture()
def auth_client(user):
    """APIClient force-authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def dish():
    return Dish.objects.create(name="Curry Rice", price=Decimal("650.00"))


@pytest.fixture()
def make_order(dish):
    """Factory creating an order, optionally backdated to ``created_at``."""

    def _make(owner, status=OrderStatus.PENDING, created_at=None, quantity=1):
        order = Order.objects.create(
            user=owner,
            dish=dish,
            quantity=quantity,
            status=status,
        )
        if created_at is not None:
            Order.objects.filter(id=order.id).update(
                created_at=created_at, updated_at=created_at
            )
            order.refresh_from_db()
        return order

    return _make
