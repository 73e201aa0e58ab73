"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The order does not exist or is not owned by the acting user.

    Both cases are reported identically so callers cannot probe for
    other users' orders.
    """


class DishNotFound(Exception):
    """The dish referenced by a new order does not exist."""


class InvalidTransition(Exception):
    """The requested status is not reachable from the current status."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid status transition from {current} to {requested}."
        )


class OrderConflict(Exception):
    """A concurrent transition changed the order first; retry with fresh state."""


class InvalidOrderQuery(Exception):
    """A list parameter (cursor, date, limit) could not be interpreted."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class UnauthenticatedUser(Exception):
    """No acting user was resolved for the request."""
