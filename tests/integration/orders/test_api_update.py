"""Integration tests for Order status updates.

Covers:
- PATCH /api/v1/orders/{id}/:
  - Success: pending -> confirmed, updated_at refreshed.
  - Going back (confirmed -> pending) returns 422.
  - Terminal orders return 422 and keep their status.
  - Same status returns 422.
  - Missing or unknown status returns 400.
  - Foreign, unknown and malformed ids return 404.
- Authentication enforcement.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


def _url(order_id) -> str:
    return f"/api/v1/orders/{order_id}/"


class TestUpdateStatus:
    def test_confirm_pending_order(self, auth_client, user, make_order):
        order = make_order(user, created_at=timezone.now() - timedelta(minutes=5))

        response = auth_client.patch(_url(order.id), {"status": "confirmed"}, format="json")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED
        assert order.updated_at > order.created_at

    def test_confirmed_cannot_go_back_to_pending(self, auth_client, user, make_order):
        order = make_order(user)

        first = auth_client.patch(_url(order.id), {"status": "confirmed"}, format="json")
        second = auth_client.patch(_url(order.id), {"status": "pending"}, format="json")

        assert first.status_code == 200
        assert second.status_code == 422
        error = second.json()["errors"][0]
        assert error["code"] == "invalid_transition"
        assert error["attr"] == "status"
        assert "confirmed" in error["detail"]
        assert "pending" in error["detail"]

    def test_completed_order_is_final(self, auth_client, user, make_order):
        order = make_order(user, status=OrderStatus.COMPLETED)

        response = auth_client.patch(_url(order.id), {"status": "pending"}, format="json")

        assert response.status_code == 422
        order.refresh_from_db()
        assert order.status == OrderStatus.COMPLETED

    def test_same_status_is_rejected(self, auth_client, user, make_order):
        order = make_order(user, status=OrderStatus.PREPARING)

        response = auth_client.patch(_url(order.id), {"status": "preparing"}, format="json")

        assert response.status_code == 422

    def test_ready_cannot_be_cancelled(self, auth_client, user, make_order):
        order = make_order(user, status=OrderStatus.READY)

        response = auth_client.patch(_url(order.id), {"status": "cancelled"}, format="json")

        assert response.status_code == 422
        order.refresh_from_db()
        assert order.status == OrderStatus.READY

    def test_other_fields_are_ignored(self, auth_client, user, make_order):
        order = make_order(user, quantity=2)

        response = auth_client.patch(
            _url(order.id), {"status": "cancelled", "quantity": 9}, format="json"
        )

        assert response.status_code == 200
        order.refresh_from_db()
        assert order.quantity == 2
        assert order.status == OrderStatus.CANCELLED


class TestUpdateStatusValidation:
    def test_missing_status_returns_400(self, auth_client, user, make_order):
        order = make_order(user)

        response = auth_client.patch(_url(order.id), {}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "status"

    def test_unknown_status_returns_400(self, auth_client, user, make_order):
        order = make_order(user)

        response = auth_client.patch(_url(order.id), {"status": "shipped"}, format="json")

        assert response.status_code == 400
        data = response.json()
        assert data["type"] == "validation_error"
        assert data["errors"][0]["attr"] == "status"

    def test_foreign_order_returns_404(self, auth_client, other_user, make_order):
        order = make_order(other_user)

        response = auth_client.patch(_url(order.id), {"status": "confirmed"}, format="json")

        assert response.status_code == 404
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_unknown_order_returns_404(self, auth_client):
        response = auth_client.patch(_url(uuid4()), {"status": "confirmed"}, format="json")

        assert response.status_code == 404

    def test_malformed_id_returns_404(self, auth_client):
        response = auth_client.patch(_url("abc"), {"status": "confirmed"}, format="json")

        assert response.status_code == 404

    def test_unauthenticated_returns_401(self, api_client, user, make_order):
        order = make_order(user)

        response = api_client.patch(_url(order.id), {"status": "confirmed"}, format="json")

        assert response.status_code == 401
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_put_is_not_allowed(self, auth_client, user, make_order):
        order = make_order(user)

        response = auth_client.put(_url(order.id), {"status": "confirmed"}, format="json")

        assert response.status_code == 405
