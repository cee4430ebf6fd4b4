"""
FastAPI dependencies that hand out the collaborators stored on `app.state`.

`main.create_app` (or its lifespan hook) puts `settings`, `database` and
`image_host` there; tests inject fakes the same way.
"""

from __future__ import annotations

from fastapi import Request

from .cloudinary import CloudinaryClient
from .config import Settings
from .db import Database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialized. Open it in the app lifespan.")
    return database


def get_image_host(request: Request) -> CloudinaryClient:
    host = getattr(request.app.state, "image_host", None)
    if host is None:
        raise RuntimeError("Image host is not initialized. Configure it in the app lifespan.")
    return host
