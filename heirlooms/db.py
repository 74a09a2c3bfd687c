from __future__ import annotations

import psycopg

from .config import get_settings


def get_conn() -> psycopg.Connection:
    settings = get_settings()
    return psycopg.connect(
        settings.pg_dsn,
        connect_timeout=settings.postgres_connect_timeout,
        autocommit=False,
    )
