"""
Product persistence (raw SQL).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.db import Database

from .listing import PRODUCT_COLUMNS, ListingQuery, build_listing_statements
from .schemas import ProductCreate, ProductUpdate

# SET clauses are only ever built from these names.
UPDATABLE_COLUMNS = tuple(ProductUpdate.model_fields)


def _to_decimal(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _to_product(row: dict | None) -> dict | None:
    # numeric columns come back as Decimal; the API speaks JSON numbers.
    if row is None:
        return None
    out = dict(row)
    for key in ("price", "average_rating"):
        if isinstance(out.get(key), Decimal):
            out[key] = float(out[key])
    return out


class ProductRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_with_rating(self) -> list[dict]:
        rows = await self.db.fetch_all(
            """
            SELECT p.id, p.name, p.mark, p.category, p.description, p.price,
                   p.stock, p.image_url, p.public_id,
                   ROUND(AVG(r.rating)::numeric, 2) AS average_rating
            FROM products p
            LEFT JOIN reviews r ON r.product_id = p.id
            GROUP BY p.id
            ORDER BY p.id ASC
            """
        )
        return [_to_product(row) for row in rows]

    async def list_page(self, query: ListingQuery) -> tuple[int, list[dict]]:
        statements = build_listing_statements(query)
        total = await self.db.fetch_val(statements.count_sql, *statements.count_args)
        rows = await self.db.fetch_all(statements.data_sql, *statements.data_args)
        return int(total or 0), [_to_product(row) for row in rows]

    async def list_categories(self) -> list[str]:
        rows = await self.db.fetch_all(
            """
            SELECT DISTINCT category
            FROM products
            WHERE category IS NOT NULL
            ORDER BY category ASC
            """
        )
        return [str(row["category"]) for row in rows]

    async def get(self, product_id: int) -> dict | None:
        row = await self.db.fetch_one(
            f"""
            SELECT {PRODUCT_COLUMNS}
            FROM products
            WHERE id = $1
            """,
            product_id,
        )
        return _to_product(row)

    async def create(self, product: ProductCreate) -> dict:
        row = await self.db.fetch_one(
            f"""
            INSERT INTO products (name, mark, category, description, price, stock, image_url)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING {PRODUCT_COLUMNS}
            """,
            product.name,
            product.mark,
            product.category,
            product.description,
            _to_decimal(product.price),
            product.stock,
            product.image_url,
        )
        if row is None:
            raise RuntimeError("Failed to create product.")
        return _to_product(row)

    async def update(self, product_id: int, changes: ProductUpdate) -> dict | None:
        values = changes.changes()
        columns = [name for name in UPDATABLE_COLUMNS if name in values]
        if not columns:
            return await self.get(product_id)

        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(columns, start=1))
        args = [_to_decimal(values[name]) for name in columns]
        row = await self.db.fetch_one(
            f"""
            UPDATE products
            SET {assignments}
            WHERE id = ${len(columns) + 1}
            RETURNING {PRODUCT_COLUMNS}
            """,
            *args,
            product_id,
        )
        return _to_product(row)

    async def delete(self, product_id: int) -> bool:
        removed = await self.db.execute("DELETE FROM products WHERE id = $1", product_id)
        return removed > 0

    async def set_image(self, product_id: int, *, image_url: str, public_id: str) -> dict | None:
        row = await self.db.fetch_one(
            f"""
            UPDATE products
            SET image_url = $1, public_id = $2
            WHERE id = $3
            RETURNING {PRODUCT_COLUMNS}
            """,
            image_url,
            public_id,
            product_id,
        )
        return _to_product(row)
