from typing import Any, Dict, List, Optional, Set

from psycopg.rows import dict_row

from heirlooms.db import get_conn
from heirlooms.infra.adaptive_insert import fetch_columns, insert_adaptive
from heirlooms.models.collection import Collection

COLLECTIONS_SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS collections (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    slug TEXT,
    title TEXT NOT NULL,
    description TEXT,
    cover_url TEXT,
    owner_id UUID NOT NULL,
    is_public BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_collections_slug ON collections(slug);
CREATE INDEX IF NOT EXISTS idx_collections_owner_id ON collections(owner_id);
"""

# Given up in this order when the schema lacks them
OPTIONAL_COLUMNS = ("slug", "cover_url", "is_public", "description")

_SELECT_COLUMNS = ("id", "slug", "title", "description", "cover_url", "owner_id", "is_public", "created_at")


class CollectionRepository:
    """
    Repository for collections in Postgres.
    """

    def __init__(self, conn_factory=None):
        self.conn_factory = conn_factory or get_conn
        self._columns: Optional[Set[str]] = None

    def ensure_schema(self) -> None:
        with self.conn_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(COLLECTIONS_SCHEMA_SQL)
            conn.commit()

    def columns(self) -> Set[str]:
        """Live column set, looked up once per repository instance."""
        if self._columns is None:
            self._columns = fetch_columns(self.conn_factory, "collections")
        return self._columns

    def _select(self) -> str:
        known = self.columns()
        # Optional columns the table lacks are left out; unknown schema selects all
        names = [c for c in _SELECT_COLUMNS if not known or c in known or c not in OPTIONAL_COLUMNS]
        return f"SELECT {', '.join(names)} FROM collections"

    def find_id_by_slug(self, slug: str) -> Optional[str]:
        """Canonical id of the first collection with this slug, or None."""
        query = "SELECT id FROM collections WHERE slug = %s LIMIT 1;"
        with self.conn_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (slug,))
                row = cur.fetchone()
        return str(row[0]) if row else None

    def insert_collection(self, row: Dict[str, Any]) -> Dict[str, Any]:
        inserted = insert_adaptive(
            self.conn_factory,
            "collections",
            row,
            optional_columns=OPTIONAL_COLUMNS,
            returning=("id", "slug"),
            max_attempts=len(OPTIONAL_COLUMNS) + 1,
            known_columns=self.columns(),
        )
        if inserted.get("id") is not None:
            inserted["id"] = str(inserted["id"])
        return inserted

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        with self.conn_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select() + " WHERE id = %s;", (collection_id,))
                row = cur.fetchone()
        return _to_collection(row) if row else None

    def list_for_owner(self, owner_id: str) -> List[Collection]:
        with self.conn_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select() + " WHERE owner_id = %s ORDER BY updated_at DESC;", (owner_id,))
                rows = cur.fetchall()
        return [_to_collection(r) for r in rows]

    def list_public(self, limit: int = 50) -> List[Collection]:
        with self.conn_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select() + " WHERE is_public ORDER BY created_at DESC LIMIT %s;", (limit,))
                rows = cur.fetchall()
        return [_to_collection(r) for r in rows]


def _to_collection(row: Dict[str, Any]) -> Collection:
    data = dict(row)
    data["id"] = str(data["id"])
    if data.get("owner_id") is not None:
        data["owner_id"] = str(data["owner_id"])
    return Collection(**data)
