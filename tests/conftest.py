"""Shared fixtures: in-memory collaborators injected into the app factory."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from auth import security
from core.cloudinary import CloudinaryError, UploadedImage
from core.config import Settings
from main import create_app
from products import router as products_router
from products.listing import ListingQuery
from products.schemas import ProductCreate, ProductUpdate

JWT_SECRET = "test-secret-with-enough-length-for-hs256"


class InMemoryProductRepository:
    """Same surface as ProductRepository, backed by a dict."""

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.ratings: dict[int, list[int]] = {}
        self.next_id = 1
        self.list_page_calls = 0

    def seed(self, **fields: Any) -> dict[str, Any]:
        row = {
            "id": self.next_id,
            "name": fields.get("name", f"Product {self.next_id}"),
            "mark": fields.get("mark", "Acme"),
            "category": fields.get("category", "tools"),
            "description": fields.get("description"),
            "price": fields.get("price", 1.0),
            "stock": fields.get("stock", 1),
            "image_url": fields.get("image_url"),
            "public_id": fields.get("public_id"),
        }
        self.rows[row["id"]] = row
        self.next_id += 1
        return dict(row)

    async def list_with_rating(self) -> list[dict]:
        out = []
        for pid in sorted(self.rows):
            ratings = self.ratings.get(pid) or []
            avg = round(sum(ratings) / len(ratings), 2) if ratings else None
            out.append({**self.rows[pid], "average_rating": avg})
        return out

    async def list_page(self, query: ListingQuery) -> tuple[int, list[dict]]:
        self.list_page_calls += 1
        rows = [r for r in self.rows.values() if query.category is None or r["category"] == query.category]
        rows.sort(key=lambda r: r["id"])
        rows.sort(key=lambda r: r[query.sort_by], reverse=query.order == "DESC")
        page = rows[query.offset : query.offset + query.limit]
        return len(rows), [dict(r) for r in page]

    async def list_categories(self) -> list[str]:
        return sorted({r["category"] for r in self.rows.values() if r["category"] is not None})

    async def get(self, product_id: int) -> dict | None:
        row = self.rows.get(product_id)
        return dict(row) if row is not None else None

    async def create(self, product: ProductCreate) -> dict:
        return self.seed(**product.model_dump())

    async def update(self, product_id: int, changes: ProductUpdate) -> dict | None:
        row = self.rows.get(product_id)
        if row is None:
            return None
        row.update(changes.changes())
        return dict(row)

    async def delete(self, product_id: int) -> bool:
        return self.rows.pop(product_id, None) is not None

    async def set_image(self, product_id: int, *, image_url: str, public_id: str) -> dict | None:
        row = self.rows.get(product_id)
        if row is None:
            return None
        row.update(image_url=image_url, public_id=public_id)
        return dict(row)


class FakeImageHost:
    def __init__(self) -> None:
        self.uploaded_paths: list[Path] = []
        self.seen_bytes: list[bytes] = []
        self.removed: list[str] = []
        self.fail_upload = False
        self.fail_remove = False

    async def upload_image(self, path: str | Path) -> UploadedImage:
        path = Path(path)
        self.uploaded_paths.append(path)
        self.seen_bytes.append(path.read_bytes())
        if self.fail_upload:
            raise CloudinaryError("Cloudinary upload request failed: 500 boom")
        n = len(self.uploaded_paths)
        return UploadedImage(url=f"https://res.example.com/img/{n}.png", public_id=f"products/{n}")

    async def remove_image(self, public_id: str) -> bool:
        if self.fail_remove:
            raise CloudinaryError("Cloudinary destroy request failed: 500 boom")
        self.removed.append(public_id)
        return True


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return replace(
        Settings(),
        jwt_secret=JWT_SECRET,
        upload_tmp_dir=str(tmp_path),
        max_upload_bytes=1024,
    )


@pytest.fixture
def repo() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def image_host() -> FakeImageHost:
    return FakeImageHost()


@pytest.fixture
def client(settings: Settings, repo: InMemoryProductRepository, image_host: FakeImageHost) -> TestClient:
    app = create_app(settings, image_host=image_host)
    app.dependency_overrides[products_router.get_product_repository] = lambda: repo
    return TestClient(app)


def _auth_header(*, is_admin: bool) -> dict[str, str]:
    token = security.build_access_token(user_id=7, is_admin=is_admin, secret=JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return _auth_header(is_admin=True)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return _auth_header(is_admin=False)
