"""Repository base contract.

Services in ``modules.orders`` receive repositories through their
constructor and only see these abstractions, so tests can hand them
mocks or stale-read doubles instead of the Django ORM implementations.

Persistence is left to each aggregate's own contract: dishes may be
saved wholesale, while orders only expose creation and the guarded
status update.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Lookup shared by the dish and order repositories.

    ``get_by_id`` follows the Null Object convention: malformed and
    unknown identifiers both yield ``None`` rather than raising.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        ...
