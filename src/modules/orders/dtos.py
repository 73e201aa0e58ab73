"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order placement.
- ``UpdateOrderStatusDTO``: input for a status transition.
- ``OrderListFiltersDTO``: input for the order history query.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, OrderStatus


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order placement requests."""

    model_config = ConfigDict(frozen=True)

    dish_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for a requested status change.

    ``status`` must be a member of ``OrderStatus``; whether the change is
    *legal* is decided by the state machine, not here.
    """

    model_config = ConfigDict(frozen=True)

    status: OrderStatus


class OrderListFiltersDTO(BaseModel):
    """Immutable DTO describing one page request of a user's history.

    ``cursor`` stays an opaque string here; the query engine decodes it.
    """

    model_config = ConfigDict(frozen=True)

    status: Optional[OrderStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    cursor: Optional[str] = None
    limit: int = DEFAULT_PAGE_LIMIT

    @field_validator("status", "cursor", mode="before")
    @classmethod
    def blank_means_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("limit")
    @classmethod
    def limit_must_be_in_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Limit must be at least 1.")
        if v > MAX_PAGE_LIMIT:
            raise ValueError(f"Limit must be at most {MAX_PAGE_LIMIT}.")
        return v
