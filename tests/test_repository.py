"""Tests for ProductRepository SQL against a recording database."""

from decimal import Decimal

import pytest

from products.listing import ListingQuery
from products.repository import ProductRepository
from products.schemas import ProductCreate, ProductUpdate


class RecordingDatabase:
    """Stands in for core.db.Database; records every statement."""

    def __init__(self, *, one=None, rows=None, val=0, affected=0):
        self.calls = []
        self.one = one
        self.rows = rows or []
        self.val = val
        self.affected = affected

    async def fetch_one(self, sql, *args):
        self.calls.append(("fetch_one", " ".join(sql.split()), args))
        return self.one

    async def fetch_all(self, sql, *args):
        self.calls.append(("fetch_all", " ".join(sql.split()), args))
        return self.rows

    async def fetch_val(self, sql, *args):
        self.calls.append(("fetch_val", " ".join(sql.split()), args))
        return self.val

    async def execute(self, sql, *args):
        self.calls.append(("execute", " ".join(sql.split()), args))
        return self.affected


def _row(**overrides):
    row = {
        "id": 1,
        "name": "Widget",
        "mark": "Acme",
        "category": "tools",
        "description": None,
        "price": Decimal("9.99"),
        "stock": 5,
        "image_url": None,
        "public_id": None,
    }
    row.update(overrides)
    return row


class TestListing:
    async def test_list_page_runs_count_then_data_with_same_filter(self):
        db = RecordingDatabase(rows=[_row()], val=12)
        repo = ProductRepository(db)

        total, rows = await repo.list_page(ListingQuery(page=2, limit=5, category="tools", sort_by="price", order="DESC"))

        assert total == 12
        assert rows[0]["price"] == 9.99
        (count_op, count_sql, count_args), (data_op, data_sql, data_args) = db.calls
        assert count_op == "fetch_val"
        assert count_args == ("tools",)
        assert data_op == "fetch_all"
        assert data_args == ("tools", 5, 5)
        assert "WHERE category = $1" in count_sql
        assert "WHERE category = $1" in data_sql

    async def test_list_with_rating_joins_reviews(self):
        db = RecordingDatabase(rows=[_row(average_rating=Decimal("4.50"))])
        rows = await ProductRepository(db).list_with_rating()

        assert rows[0]["average_rating"] == 4.5
        sql = db.calls[0][1]
        assert "LEFT JOIN reviews r ON r.product_id = p.id" in sql
        assert "GROUP BY p.id" in sql

    async def test_list_categories(self):
        db = RecordingDatabase(rows=[{"category": "garden"}, {"category": "tools"}])
        assert await ProductRepository(db).list_categories() == ["garden", "tools"]
        assert "SELECT DISTINCT category" in db.calls[0][1]


class TestWrites:
    async def test_create_binds_every_value(self):
        db = RecordingDatabase(one=_row(id=42))
        product = ProductCreate(name="Widget", mark="Acme", category="tools", price=9.99, stock=5)

        row = await ProductRepository(db).create(product)

        assert row["id"] == 42
        op, sql, args = db.calls[0]
        assert sql.startswith("INSERT INTO products")
        assert "Widget" not in sql
        assert args == ("Widget", "Acme", "tools", None, Decimal("9.99"), 5, None)

    async def test_update_sets_only_present_columns(self):
        db = RecordingDatabase(one=_row(stock=3))
        changes = ProductUpdate.model_validate({"stock": 3, "price": 1.5})

        row = await ProductRepository(db).update(1, changes)

        assert row["stock"] == 3
        _, sql, args = db.calls[0]
        assert "SET price = $1, stock = $2 WHERE id = $3" in sql
        assert args == (Decimal("1.5"), 3, 1)

    async def test_update_missing_row_returns_none(self):
        db = RecordingDatabase(one=None)
        changes = ProductUpdate.model_validate({"name": "Gadget"})
        assert await ProductRepository(db).update(999999, changes) is None

    @pytest.mark.parametrize("affected, expected", [(1, True), (0, False)])
    async def test_delete(self, affected, expected):
        db = RecordingDatabase(affected=affected)
        assert await ProductRepository(db).delete(5) is expected
        assert db.calls == [("execute", "DELETE FROM products WHERE id = $1", (5,))]

    async def test_set_image(self):
        db = RecordingDatabase(one=_row(image_url="https://x/1.png", public_id="products/1"))
        row = await ProductRepository(db).set_image(1, image_url="https://x/1.png", public_id="products/1")

        assert row["public_id"] == "products/1"
        assert db.calls[0][2] == ("https://x/1.png", "products/1", 1)
