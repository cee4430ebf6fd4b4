"""
Product business logic.

Sits between the router and the repository / image host:
- validate payloads before any I/O
- translate "no row" into `NotFoundError`
- stage uploaded pictures on disk and always clean them up
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import UploadFile, status
from starlette.concurrency import run_in_threadpool

from core.cloudinary import CloudinaryClient, CloudinaryError
from core.config import Settings
from core.errors import AppError, NotFoundError, UploadError, ValidationError

from . import listing, validation
from .repository import ProductRepository

# products.id is a serial (int4) column.
MAX_PRODUCT_ID = 2_147_483_647

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

_CHUNK_SIZE = 1024 * 1024  # 1 MiB

logger = logging.getLogger(__name__)


def _not_found() -> NotFoundError:
    return NotFoundError("product not found")


def parse_product_id(raw: str | int | None) -> int:
    """
    Path id -> int. Anything that cannot name a stored row is not-found.
    """
    value = str(raw if raw is not None else "").strip()
    if not (value.isascii() and value.isdigit()) or len(value) > 10:
        raise _not_found()
    if not 1 <= int(value) <= MAX_PRODUCT_ID:
        raise _not_found()
    return int(value)


async def list_products(
    repo: ProductRepository,
    settings: Settings,
    *,
    page: str | None = None,
    limit: str | None = None,
    category: str | None = None,
    sort_by: str | None = None,
    order: str | None = None,
) -> list[dict] | dict:
    """
    Plain listing (with average rating) unless any listing parameter is given.
    """
    if all(value is None for value in (page, limit, category, sort_by, order)):
        return await repo.list_with_rating()

    query = listing.parse_listing_query(
        page,
        limit,
        category,
        sort_by,
        order,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )
    total, rows = await repo.list_page(query)
    return listing.listing_envelope(query, total, rows)


async def list_categories(repo: ProductRepository) -> list[str]:
    return await repo.list_categories()


async def get_product(repo: ProductRepository, product_id: str | int) -> dict:
    row = await repo.get(parse_product_id(product_id))
    if row is None:
        raise _not_found()
    return row


async def create_product(repo: ProductRepository, payload: Any) -> dict:
    product = validation.parse_product_create(payload)
    row = await repo.create(product)
    logger.info("product_created id=%s", row["id"])
    return row


async def update_product(repo: ProductRepository, product_id: str | int, payload: Any) -> dict:
    product_id = parse_product_id(product_id)
    changes = validation.parse_product_update(payload)
    row = await repo.update(product_id, changes)
    if row is None:
        raise _not_found()
    logger.info("product_updated id=%s fields=%s", product_id, ",".join(sorted(changes.changes())))
    return row


async def delete_product(repo: ProductRepository, product_id: str | int) -> dict:
    product_id = parse_product_id(product_id)
    if not await repo.delete(product_id):
        raise _not_found()
    logger.info("product_deleted id=%s", product_id)
    return {"message": "product deleted successfully"}


def _parse_form_product_id(raw: str | None) -> int:
    value = (raw or "").strip()
    if not (value.isascii() and value.isdigit()) or not value.strip("0"):
        raise ValidationError('"id" must be a positive integer')
    return parse_product_id(value)


def _image_ext(file: UploadFile) -> str:
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(
            f"Unsupported image type '{ext}'. Allowed: {sorted(ALLOWED_IMAGE_EXTENSIONS)}"
        )
    return ext


@asynccontextmanager
async def staged_upload(
    file: UploadFile,
    *,
    suffix: str,
    tmp_dir: str,
    max_bytes: int,
) -> AsyncIterator[Path]:
    """
    Copy an upload into a temp file and yield its path.

    The file is removed on exit whatever happened inside the block.
    """
    fd, name = tempfile.mkstemp(prefix="product-upload-", suffix=suffix, dir=tmp_dir)
    path = Path(name)
    try:
        size = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = await file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise AppError(
                        f"File too large. Max is {max_bytes} bytes.",
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    )
                await run_in_threadpool(out.write, chunk)
        if size == 0:
            raise ValidationError("no file provided")
        yield path
    finally:
        path.unlink(missing_ok=True)


async def _remove_previous_image(host: CloudinaryClient, public_id: str | None, *, product_id: int) -> None:
    if not public_id:
        return None
    try:
        await host.remove_image(public_id)
    except CloudinaryError:
        # New picture is already persisted; the old one stays on the host.
        logger.warning("previous_image_remove_failed product_id=%s public_id=%s", product_id, public_id)


async def upload_picture(
    repo: ProductRepository,
    host: CloudinaryClient,
    settings: Settings,
    *,
    file: UploadFile | None,
    product_id: str | None,
) -> dict:
    if file is None or not file.filename:
        raise ValidationError("no file provided")

    pid = _parse_form_product_id(product_id)
    ext = _image_ext(file)

    current = await repo.get(pid)
    if current is None:
        raise _not_found()

    async with staged_upload(
        file,
        suffix=ext,
        tmp_dir=settings.upload_tmp_dir,
        max_bytes=settings.max_upload_bytes,
    ) as path:
        try:
            image = await host.upload_image(path)
        except CloudinaryError as exc:
            logger.warning("picture_upload_failed product_id=%s error=%s", pid, exc)
            raise UploadError("Image upload failed.") from exc

    # Image is hosted now; if the row is gone the remote copy stays orphaned.
    row = await repo.set_image(pid, image_url=image.url, public_id=image.public_id)
    if row is None:
        logger.warning("picture_orphaned product_id=%s public_id=%s", pid, image.public_id)
        raise _not_found()

    previous = current.get("public_id")
    if previous and previous != image.public_id:
        await _remove_previous_image(host, previous, product_id=pid)

    logger.info("picture_uploaded product_id=%s public_id=%s", pid, image.public_id)
    return {"id": pid, "image_url": image.url, "public_id": image.public_id}
