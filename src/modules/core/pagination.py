"""Keyset (cursor) pagination over ``created_at DESC, id DESC``.

The cursor handed to clients is an opaque string.  Internally it is the
ISO-8601 ``created_at`` of the last row of the previous page, followed by
``|`` and that row's id::

    2025-07-29T09:53:16.123456Z|01984f6a-7c1e-7d39-a0a4-5b8e1f0c2d11

The id part breaks ties between rows sharing the same timestamp.  A bare
timestamp (no id) is still accepted and acts as a strict ``created_at <``
bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any, List, Optional, Sequence, Tuple
from uuid import UUID

from django.utils import timezone
from django.utils.dateparse import parse_datetime

CURSOR_SEPARATOR = "|"


class InvalidCursor(ValueError):
    """The cursor token could not be decoded."""


@dataclass(frozen=True)
class Cursor:
    """Position of the last row already returned to the client."""

    created_at: datetime
    id: Optional[UUID] = None

    def encode(self) -> str:
        stamp = (
            self.created_at.astimezone(dt_timezone.utc)
            .isoformat(timespec="microseconds")
            .replace("+00:00", "Z")
        )
        if self.id is None:
            return stamp
        return f"{stamp}{CURSOR_SEPARATOR}{self.id}"

    @classmethod
    def decode(cls, token: str) -> Cursor:
        """Parse a client token.

        Naive timestamps are interpreted in the current Django timezone.

        Raises:
            InvalidCursor: the token is empty, malformed, or names an
                instant that has no UTC representation.
        """
        token = (token or "").strip()
        if not token:
            raise InvalidCursor("Cursor is empty.")

        stamp, _, raw_id = token.partition(CURSOR_SEPARATOR)
        try:
            created_at = parse_datetime(stamp)
        except ValueError as exc:
            raise InvalidCursor(f"Invalid cursor timestamp: {stamp!r}.") from exc
        if created_at is None:
            raise InvalidCursor(f"Invalid cursor timestamp: {stamp!r}.")
        if timezone.is_naive(created_at):
            created_at = timezone.make_aware(created_at)
        try:
            created_at.astimezone(dt_timezone.utc)
        except OverflowError as exc:
            raise InvalidCursor(f"Cursor timestamp out of range: {stamp!r}.") from exc

        row_id: Optional[UUID] = None
        if raw_id:
            try:
                row_id = UUID(raw_id)
            except ValueError as exc:
                raise InvalidCursor(f"Invalid cursor id: {raw_id!r}.") from exc

        return cls(created_at=created_at, id=row_id)

    @classmethod
    def for_row(cls, row: Any) -> Cursor:
        return cls(created_at=row.created_at, id=row.id)


def slice_page(rows: Sequence[Any], limit: int) -> Tuple[List[Any], Optional[str]]:
    """Trim a ``limit + 1`` fetch down to one page.

    Returns the page rows and the cursor of the following page, or
    ``None`` when the fetch did not overflow (last page).
    """
    page = list(rows)
    if len(page) <= limit:
        return page, None
    page = page[:limit]
    return page, Cursor.for_row(page[-1]).encode()
