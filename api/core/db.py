"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns one connection pool. The app factory opens it in the
lifespan hook (see `api/main.py`) and stores it on `app.state`; request
code receives it through dependencies instead of a module global.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every driver failure is logged here and re-raised as `StorageError`, so
callers never see asyncpg exceptions or leak their text to clients.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .errors import StorageError

logger = logging.getLogger(__name__)

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

# Managed Postgres URLs (Neon, Supabase, Heroku) often carry these.
_LIBPQ_ONLY_PARAMS = frozenset({"sslmode", "channel_binding"})


def sanitize_database_url(url: str) -> str:
    """
    Drop libpq-only DSN options that asyncpg would forward as server settings.
    """
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    kept = [(key, value) for (key, value) in pairs if key.lower() not in _LIBPQ_ONLY_PARAMS]
    if len(kept) == len(pairs):
        return url
    return urlunsplit(parts._replace(query=urlencode(kept)))


def affected_rows(status_tag: str) -> int:
    """
    Parse the row count out of an asyncpg status tag ("UPDATE 3", "INSERT 0 1").
    """
    tail = (status_tag or "").rsplit(" ", 1)[-1]
    return int(tail) if tail.isdigit() else 0


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(
        cls,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 5,
        command_timeout: float = 30.0,
    ) -> Database:
        dsn = (dsn or "").strip()
        if not dsn:
            raise RuntimeError("DATABASE_URL is not set.")
        pool = await asyncpg.create_pool(
            dsn=sanitize_database_url(dsn),
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
        return cls(pool)

    async def close(self) -> None:
        await self._pool.close()

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        try:
            row = await self._pool.fetchrow(sql, *args)
        except _DRIVER_ERRORS as exc:
            logger.exception("storage_error op=fetch_one")
            raise StorageError() from exc
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        try:
            rows = await self._pool.fetch(sql, *args)
        except _DRIVER_ERRORS as exc:
            logger.exception("storage_error op=fetch_all")
            raise StorageError() from exc
        return [_record_to_dict(r) for r in rows]

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        try:
            return await self._pool.fetchval(sql, *args)
        except _DRIVER_ERRORS as exc:
            logger.exception("storage_error op=fetch_val")
            raise StorageError() from exc

    async def execute(self, sql: str, *args: Any) -> int:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return the affected row count.
        """
        try:
            status_tag = await self._pool.execute(sql, *args)
        except _DRIVER_ERRORS as exc:
            logger.exception("storage_error op=execute")
            raise StorageError() from exc
        return affected_rows(status_tag)
