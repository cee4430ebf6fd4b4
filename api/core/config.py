"""
Process settings read from environment variables.

Build one `Settings` at startup and hand it to `main.create_app`; nothing
else in the codebase should read `os.environ` directly.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field

DEFAULT_JWT_SECRET = "dev-change-this-secret"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5 MiB
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_command_timeout_s: float = 30.0

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = ""
    upload_timeout_s: float = 60.0
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    upload_tmp_dir: str = field(default_factory=tempfile.gettempdir)

    default_page_limit: int = 10
    max_page_limit: int = 100

    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            database_url=_env_str("DATABASE_URL"),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
            db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
            # Local default keeps development simple.
            # In production, set JWT_SECRET in environment.
            jwt_secret=_env_str("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_algorithm=_env_str("JWT_ALG", "HS256"),
            cloudinary_cloud_name=_env_str("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=_env_str("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=_env_str("CLOUDINARY_API_SECRET"),
            cloudinary_folder=_env_str("CLOUDINARY_FOLDER"),
            upload_timeout_s=_env_float("UPLOAD_TIMEOUT_S", 60.0),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            upload_tmp_dir=_env_str("UPLOAD_TMP_DIR", tempfile.gettempdir()),
            default_page_limit=_env_int("DEFAULT_PAGE_LIMIT", 10),
            max_page_limit=_env_int("MAX_PAGE_LIMIT", 100),
            cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
