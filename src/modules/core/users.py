"""Helpers for presenting the acting user.

Only the display name ever leaves the API; e-mail, password and auth
provider fields are never serialized alongside orders.
"""

from __future__ import annotations

from typing import Any


def display_name(user: Any) -> str:
    """Full name when set, otherwise the username."""
    if user is None:
        return ""
    full_name = user.get_full_name().strip() if hasattr(user, "get_full_name") else ""
    return full_name or user.get_username()
