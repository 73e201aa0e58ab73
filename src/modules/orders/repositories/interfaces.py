"""Order repository interface.

Extends ``IRepository[Order]`` with the owner-scoped look-ups, the
conditional status update and the predicate query used by the history
engine.  There is deliberately no generic ``save``: after creation an
order only changes through ``update_status``.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import Q

    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert a new order.

        ``data`` must include ``user_id``, ``dish_id`` and ``quantity``.
        The status is always the initial one.
        """

    @abstractmethod
    def find_owned(self, user_id: Any, id: str) -> Optional[Order]:
        """Retrieve an order only if it belongs to *user_id*."""

    @abstractmethod
    def get_for_update(self, user_id: Any, id: str) -> Optional[Order]:
        """Owner-scoped look-up holding a row lock until the transaction ends."""

    @abstractmethod
    def update_status(self, id: UUID, expected_status: str, new_status: str) -> Order:
        """Move the order from *expected_status* to *new_status* in one write.

        Raises:
            OrderConflict: the stored status is no longer *expected_status*.
        """

    @abstractmethod
    def query(self, predicates: Sequence[Q], limit: int) -> List[Order]:
        """Return at most *limit* orders matching all *predicates*.

        Rows are ordered by ``created_at DESC, id DESC`` with dish and
        owner eager-loaded.
        """
