"""
Product catalog API endpoints.

Read routes are public; every mutating route requires an admin token.
Static paths (`/products/category`, `/products/upload-picture`) are declared
before `/products/{product_id}` so they are not shadowed.
Path ids arrive as strings so that "abc" or out-of-range ids answer 404
rather than a framework 422.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile, status

from auth import dependencies as auth_dependencies
from core.cloudinary import CloudinaryClient
from core.config import Settings
from core.db import Database
from core.deps import get_database, get_image_host, get_settings

from . import service
from .repository import ProductRepository

router = APIRouter()


def get_product_repository(db: Database = Depends(get_database)) -> ProductRepository:
    return ProductRepository(db)


@router.get("/products")
async def list_products(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    category: str | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    order: str | None = Query(default=None),
    repo: ProductRepository = Depends(get_product_repository),
    settings: Settings = Depends(get_settings),
) -> list[dict] | dict:
    """
    Without query parameters: every product with its average rating.
    With any of page/limit/category/sortBy/order: the listing envelope.
    """
    return await service.list_products(
        repo,
        settings,
        page=page,
        limit=limit,
        category=category,
        sort_by=sort_by,
        order=order,
    )


@router.get("/products/category")
async def list_categories(
    repo: ProductRepository = Depends(get_product_repository),
) -> list[str]:
    return await service.list_categories(repo)


@router.post("/products/upload-picture")
async def upload_picture(
    file: UploadFile | None = File(default=None),
    product_id: str | None = Form(default=None, alias="id"),
    repo: ProductRepository = Depends(get_product_repository),
    host: CloudinaryClient = Depends(get_image_host),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.upload_picture(
        repo,
        host,
        settings,
        file=file,
        product_id=product_id,
    )


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    repo: ProductRepository = Depends(get_product_repository),
) -> dict:
    return await service.get_product(repo, product_id)


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Any = Body(default=None),
    repo: ProductRepository = Depends(get_product_repository),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.create_product(repo, payload)


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    payload: Any = Body(default=None),
    repo: ProductRepository = Depends(get_product_repository),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.update_product(repo, product_id, payload)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    repo: ProductRepository = Depends(get_product_repository),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.delete_product(repo, product_id)
