"""Query-string parsing and page arithmetic for list endpoints."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from pydantic.alias_generators import to_camel

from ..schemas import PaginationMeta


def parse_bool_flag(raw: Optional[str]) -> Optional[bool]:
    """Map the literal strings "true"/"false" to a bool, anything else to None."""
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def resolve_sort_field(raw: Optional[str], allowed: Iterable[str], default: str = "created_at") -> str:
    """Return the column name for a `sortBy` value given in camel or snake case.

    Raises ValueError when the field is not sortable.
    """
    if not raw:
        return default
    lookup = {}
    for name in allowed:
        lookup[name] = name
        lookup[to_camel(name)] = name
    try:
        return lookup[raw]
    except KeyError:
        choices = ", ".join(sorted(to_camel(n) for n in allowed))
        raise ValueError(f"sortBy must be one of: {choices}") from None


def resolve_sort_order(raw: Optional[str]) -> str:
    value = (raw or "desc").lower()
    if value not in ("asc", "desc"):
        raise ValueError("sortOrder must be 'asc' or 'desc'")
    return value


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    """Compute the pagination block returned next to a page of records."""
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
