"""Order domain constants.

Defines the status enumeration and the transition table of the order
state machine.  The table is the single source of truth: a status change
is legal only if the target appears in ``VALID_TRANSITIONS[current]``.
There are no self edges, so requesting the current status is rejected.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PREPARING = "preparing", "Preparing"
    READY = "ready", "Ready"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)

INITIAL_STATUS = OrderStatus.PENDING

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
