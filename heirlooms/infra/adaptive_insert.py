"""
Schema-tolerant INSERT helper.

Deployments do not all carry the same optional columns on `artifacts` and
`collections`. Inserts go through `insert_adaptive`, which first drops optional
columns a capability check reported as missing, then keeps a narrow fallback:
on SQLSTATE 42703 (undefined column) the offending optional column is removed
and the insert retried, a bounded number of times.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Collection, Dict, Iterable, List, Optional, Sequence, Set

import psycopg
from psycopg import sql
from psycopg.errors import UndefinedColumn
from psycopg.rows import dict_row

logger = logging.getLogger(__name__)

ConnFactory = Callable[[], psycopg.Connection]

_COLUMN_RE = re.compile(r'column "(?P<name>[^"]+)"')


def missing_column(err: psycopg.Error) -> Optional[str]:
    """Extract the column name from an undefined-column error, if present."""
    diag = getattr(err, "diag", None)
    message = getattr(diag, "message_primary", None) or str(err)
    match = _COLUMN_RE.search(message)
    if not match:
        return None
    # Postgres may qualify the name ("artifacts.collection_id")
    return match.group("name").rsplit(".", 1)[-1]


def fetch_columns(conn_factory: ConnFactory, table: str) -> Set[str]:
    """Columns of `table` according to information_schema (empty if unknown)."""
    query = (
        "SELECT column_name FROM information_schema.columns "
        "WHERE table_schema = current_schema() AND table_name = %s"
    )
    with conn_factory() as conn:
        with conn.cursor() as cur:
            cur.execute(query, (table,))
            rows = cur.fetchall()
    return {row[0] for row in rows}


def build_insert(table: str, columns: Sequence[str], returning: Sequence[str]) -> sql.Composed:
    query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        values=sql.SQL(", ").join([sql.Placeholder()] * len(columns)),
    )
    if returning:
        query = query + sql.SQL(" RETURNING {}").format(
            sql.SQL(", ").join(sql.Identifier(c) for c in returning)
        )
    return query


def _adapt(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _column_to_drop(err: psycopg.Error, payload: Dict[str, Any], optional_columns: Sequence[str]) -> Optional[str]:
    name = missing_column(err)
    if name is not None:
        return name if name in optional_columns and name in payload else None
    return next((c for c in optional_columns if c in payload), None)


def insert_adaptive(
    conn_factory: ConnFactory,
    table: str,
    row: Dict[str, Any],
    optional_columns: Sequence[str],
    returning: Iterable[str],
    max_attempts: int = 3,
    known_columns: Optional[Collection[str]] = None,
) -> Dict[str, Any]:
    """
    Insert `row` into `table` and return the RETURNING row as a dict.

    Args:
        conn_factory: Callable returning a new psycopg connection.
        table: Target table.
        row: Column -> value. dict/list values are stored as JSON.
        optional_columns: Columns that may be dropped when the schema lacks them,
            in the order they are given up when the error does not name one.
        returning: Columns to return. Optional columns no longer in the payload
            are left out.
        max_attempts: Upper bound on INSERT round-trips.
        known_columns: Result of a capability check; optional columns absent from
            it are dropped before the first attempt. Empty/None means unknown.

    Raises:
        psycopg.Error: the last underlying error once no column can be dropped or
            the attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    payload = dict(row)
    if known_columns:
        for column in optional_columns:
            if column in payload and column not in known_columns:
                logger.info("%s has no column %r; inserting without it", table, column)
                payload.pop(column)

    returning = list(returning)
    attempt = 0
    while True:
        attempt += 1
        columns: List[str] = list(payload)
        ret = [c for c in returning if c in payload or c not in optional_columns]
        query = build_insert(table, columns, ret)
        try:
            with conn_factory() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, [_adapt(payload[c]) for c in columns])
                    inserted = cur.fetchone() if ret else {}
                conn.commit()
            return dict(inserted or {})
        except UndefinedColumn as e:
            column = _column_to_drop(e, payload, optional_columns)
            if column is None or attempt == max_attempts:
                raise
            logger.warning(
                "%s insert failed on undefined column %r; retrying without it (attempt %d/%d)",
                table, column, attempt, max_attempts,
            )
            payload.pop(column)
