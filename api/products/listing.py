"""
Paginated / filtered / sorted product listing.

Turns untrusted query-string values into a `ListingQuery` and then into two
statements sharing the same WHERE clause: one counts matching rows, the other
fetches a single page.

Only values from `SORTABLE_FIELDS` and `SORT_DIRECTIONS` are ever written into
the SQL text. Category, limit and offset are always bound parameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from core.errors import ValidationError

SORTABLE_FIELDS = ("id", "name", "price", "stock")
SORT_DIRECTIONS = ("ASC", "DESC")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_MAX_LIMIT = 100

# OFFSET is bound as int8.
MAX_OFFSET = 2**63 - 1

PRODUCT_COLUMNS = "id, name, mark, category, description, price, stock, image_url, public_id"


@dataclass(frozen=True)
class ListingQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    category: str | None = None
    sort_by: str = "id"
    order: str = "ASC"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ListingStatements:
    count_sql: str
    count_args: tuple[Any, ...]
    data_sql: str
    data_args: tuple[Any, ...]


def _parse_positive_int(raw: str | int | None, default: int) -> int:
    """
    Absent or non-numeric -> default; zero and negatives clamp to 1.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        try:
            value = int(text)
        except ValueError:
            return default
    return max(value, 1)


def parse_sort_field(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        return "id"
    if value not in SORTABLE_FIELDS:
        raise ValidationError(
            f"Invalid sortBy '{value[:50]}'. Allowed: {', '.join(SORTABLE_FIELDS)}"
        )
    return value


def parse_sort_order(raw: str | None) -> str:
    value = (raw or "").strip().upper()
    return value if value in SORT_DIRECTIONS else "ASC"


def parse_listing_query(
    page: str | int | None = None,
    limit: str | int | None = None,
    category: str | None = None,
    sort_by: str | None = None,
    order: str | None = None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> ListingQuery:
    """
    Build a `ListingQuery` from raw request values.

    Raises `ValidationError` when `sort_by` is outside the allow-list; every
    other bad value falls back to a default or is clamped.
    """
    sort_field = parse_sort_field(sort_by)
    max_limit = max(max_limit, 1)

    limit_value = min(_parse_positive_int(limit, default_limit), max_limit)
    max_page = MAX_OFFSET // limit_value + 1

    category = (category or "").strip() or None
    return ListingQuery(
        page=min(_parse_positive_int(page, DEFAULT_PAGE), max_page),
        limit=limit_value,
        category=category,
        sort_by=sort_field,
        order=parse_sort_order(order),
    )


def build_listing_statements(query: ListingQuery) -> ListingStatements:
    # Re-check: a hand-built ListingQuery must not smuggle in raw text.
    if query.sort_by not in SORTABLE_FIELDS or query.order not in SORT_DIRECTIONS:
        raise ValidationError("Invalid sort field or direction.")

    where: list[str] = []
    filter_args: tuple[Any, ...] = ()
    if query.category is not None:
        where = ["WHERE category = $1"]
        filter_args = (query.category,)

    count_sql = " ".join(["SELECT count(*) AS total FROM products", *where])

    order_by = f"{query.sort_by} {query.order}"
    if query.sort_by != "id":
        order_by += ", id ASC"

    n = len(filter_args)
    data_sql = " ".join(
        [
            f"SELECT {PRODUCT_COLUMNS} FROM products",
            *where,
            f"ORDER BY {order_by}",
            f"LIMIT ${n + 1} OFFSET ${n + 2}",
        ]
    )

    return ListingStatements(
        count_sql=count_sql,
        count_args=filter_args,
        data_sql=data_sql,
        data_args=(*filter_args, query.limit, query.offset),
    )


def total_pages(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return math.ceil(total / limit)


def listing_envelope(query: ListingQuery, total: int, rows: list[dict]) -> dict:
    return {
        "page": query.page,
        "limit": query.limit,
        "total": total,
        "totalPages": total_pages(total, query.limit),
        "data": rows,
    }
