"""Order history query engine.

A page request is turned into an explicit, ordered list of predicates
(``Q`` objects) combined with AND by the repository:

1. ownership   ``user_id = <acting user>`` (always present, outermost)
2. status      exact match, when requested
3. date range  ``[start_of_day(start_date), end_of_day(end_date)]``
4. cursor      rows strictly after the cursor in ``created_at DESC, id DESC``

Each predicate is a pure function of ``OrderQueryParams`` returning a
``Q`` or ``None`` (not applicable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from datetime import timezone as dt_timezone
from typing import Any, Callable, List, Optional, Sequence

from django.db.models import Q
from django.utils import timezone

from modules.core.pagination import Cursor, InvalidCursor
from modules.orders.constants import DEFAULT_PAGE_LIMIT
from modules.orders.dtos import OrderListFiltersDTO
from modules.orders.exceptions import InvalidOrderQuery, UnauthenticatedUser

ORDERING = ("-created_at", "-id")


def start_of_day(day: date) -> datetime:
    """First instant of *day* in the current Django timezone."""
    return timezone.make_aware(datetime.combine(day, time.min))


def end_of_day(day: date) -> datetime:
    """Last instant of *day* in the current Django timezone."""
    return timezone.make_aware(datetime.combine(day, time.max))


def _day_bound(field_name: str, day: date, to_instant: Callable[[date], datetime]) -> datetime:
    instant = to_instant(day)
    try:
        instant.astimezone(dt_timezone.utc)
    except OverflowError as exc:
        raise InvalidOrderQuery(
            field_name, f"{day.isoformat()} is outside the supported date range."
        ) from exc
    return instant


@dataclass(frozen=True)
class OrderQueryParams:
    """Fully parsed parameters of one page request."""

    user_id: Any
    status: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    cursor: Optional[Cursor] = None
    limit: int = DEFAULT_PAGE_LIMIT

    @classmethod
    def from_filters(cls, user_id: Any, filters: OrderListFiltersDTO) -> OrderQueryParams:
        """Resolve dates into instants and decode the cursor.

        Raises:
            InvalidOrderQuery: the cursor token is malformed, or a date or
                the cursor falls outside the representable UTC range.
        """
        cursor = None
        if filters.cursor:
            try:
                cursor = Cursor.decode(filters.cursor)
            except InvalidCursor as exc:
                raise InvalidOrderQuery("cursor", str(exc)) from exc

        start = end = None
        if filters.start_date:
            start = _day_bound("start_date", filters.start_date, start_of_day)
        if filters.end_date:
            end = _day_bound("end_date", filters.end_date, end_of_day)

        return cls(
            user_id=user_id,
            status=filters.status.value if filters.status else None,
            start=start,
            end=end,
            cursor=cursor,
            limit=filters.limit,
        )


Predicate = Callable[[OrderQueryParams], Optional[Q]]


def owner_predicate(params: OrderQueryParams) -> Q:
    return Q(user_id=params.user_id)


def status_predicate(params: OrderQueryParams) -> Optional[Q]:
    if not params.status:
        return None
    return Q(status=params.status)


def date_range_predicate(params: OrderQueryParams) -> Optional[Q]:
    condition = Q()
    if params.start is not None:
        condition &= Q(created_at__gte=params.start)
    if params.end is not None:
        condition &= Q(created_at__lte=params.end)
    return condition or None


def cursor_predicate(params: OrderQueryParams) -> Optional[Q]:
    cursor = params.cursor
    if cursor is None:
        return None
    if cursor.id is None:
        return Q(created_at__lt=cursor.created_at)
    return Q(created_at__lt=cursor.created_at) | Q(
        created_at=cursor.created_at, id__lt=cursor.id
    )


PREDICATE_CHAIN: Sequence[Predicate] = (
    owner_predicate,
    status_predicate,
    date_range_predicate,
    cursor_predicate,
)


class OrderQueryBuilder:
    """Compose the predicate chain for one page request."""

    def __init__(
        self,
        params: OrderQueryParams,
        chain: Sequence[Predicate] = PREDICATE_CHAIN,
    ) -> None:
        if params.user_id is None:
            raise UnauthenticatedUser("An owner is required to query orders.")
        self._params = params
        self._chain = chain

    @property
    def fetch_size(self) -> int:
        """Rows to fetch: one extra row reveals whether a next page exists."""
        return self._params.limit + 1

    def build(self) -> List[Q]:
        predicates = []
        for predicate in self._chain:
            condition = predicate(self._params)
            if condition is not None:
                predicates.append(condition)
        return predicates


@dataclass(frozen=True)
class OrderPage:
    """One page of a user's orders, newest first."""

    orders: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None
