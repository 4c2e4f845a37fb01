"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

Connection settings come from `DATABASE_URL`, or from the individual
`DB_HOST` / `DB_PORT` / `DB_USER` / `DB_PASSWORD` / `DB_NAME` variables.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
import os
import ssl
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import asyncpg

DEFAULT_CONNECTION_LIMIT = 10
CA_CERT_PATH = Path(__file__).resolve().parents[2] / "certs" / "ca.pem"

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    # TLS is configured through DB_SSL, not through the URL.
    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if url:
        return _sanitize_database_url(url)

    host = os.environ.get("DB_HOST", "").strip()
    if not host:
        raise RuntimeError("DATABASE_URL or DB_HOST is not set.")

    port = _env_int("DB_PORT", 5432)
    user = quote(os.environ.get("DB_USER", "postgres").strip() or "postgres", safe="")
    password = quote(os.environ.get("DB_PASSWORD", ""), safe="")
    name = os.environ.get("DB_NAME", "org_rollup").strip() or "org_rollup"
    credentials = f"{user}:{password}" if password else user
    return f"postgresql://{credentials}@{host}:{port}/{name}"


def connection_limit() -> int:
    limit = _env_int("DB_CONNECTION_LIMIT", DEFAULT_CONNECTION_LIMIT)
    return limit if limit > 0 else DEFAULT_CONNECTION_LIMIT


def ssl_context(ca_path: Path = CA_CERT_PATH) -> ssl.SSLContext | None:
    """
    TLS context for DB_SSL=true (None otherwise).

    A CA bundle at `certs/ca.pem` is trusted when present, else the system store.
    """
    if not _env_bool("DB_SSL"):
        return None
    if ca_path.exists():
        logger.info("db_ssl ca_file=%s", ca_path)
        return ssl.create_default_context(cafile=str(ca_path))
    logger.info("db_ssl ca_file=none")
    return ssl.create_default_context()


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=connection_limit(),
        command_timeout=30,
        ssl=ssl_context(),
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]
