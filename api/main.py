from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.cloudinary import CloudinaryClient
from core.config import Settings
from core.db import Database
from core.errors import register_exception_handlers
from core.logging_setup import configure_logging
from products import router as products_router

logger = logging.getLogger(__name__)


def _build_image_host(settings: Settings) -> CloudinaryClient:
    return CloudinaryClient(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        timeout_s=settings.upload_timeout_s,
    )


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    image_host: CloudinaryClient | None = None,
) -> FastAPI:
    """
    Build the API. Injected collaborators are used as-is and never closed here;
    missing ones are created in the lifespan hook from `settings`.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_db: Database | None = None
        if app.state.database is None:
            # Open the DB pool once per process.
            owned_db = await Database.connect(
                settings.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout_s,
            )
            app.state.database = owned_db
        if app.state.image_host is None:
            app.state.image_host = _build_image_host(settings)
        logger.info("startup db_owned=%s", owned_db is not None)
        try:
            yield
        finally:
            if owned_db is not None:
                await owned_db.close()
                app.state.database = None

    app = FastAPI(title="product-catalog", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.image_host = image_host

    # Allow the storefront dev server to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(products_router.router, tags=["products"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
