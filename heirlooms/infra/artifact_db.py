import json
from typing import Any, Dict, List, Optional, Set

from psycopg.rows import dict_row

from heirlooms.db import get_conn
from heirlooms.infra.adaptive_insert import fetch_columns, insert_adaptive

# Schema for Artifacts
ARTIFACTS_SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS artifacts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    slug TEXT NOT NULL,
    title TEXT,
    summary TEXT,
    owner_id UUID NOT NULL,
    collection_id UUID REFERENCES collections(id) ON DELETE SET NULL,
    data JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_artifacts_slug ON artifacts(slug);
CREATE INDEX IF NOT EXISTS idx_artifacts_collection_id ON artifacts(collection_id);
CREATE INDEX IF NOT EXISTS idx_artifacts_owner_id ON artifacts(owner_id);
"""

# Columns mirrored in artifacts.data; the row is still valid without them.
OPTIONAL_COLUMNS = ("collection_id", "title", "summary")
MAX_INSERT_ATTEMPTS = 3


class ArtifactRepository:
    """
    Repository for artifacts in Postgres.
    Uses heirlooms.db.get_conn() unless a connection factory is injected.
    """

    def __init__(self, conn_factory=None):
        self.conn_factory = conn_factory or get_conn
        self._columns: Optional[Set[str]] = None

    def ensure_schema(self) -> None:
        """Ensures the artifacts table exists (collections must exist first)."""
        with self.conn_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(ARTIFACTS_SCHEMA_SQL)
            conn.commit()

    def columns(self) -> Set[str]:
        """Live column set, looked up once per repository instance."""
        if self._columns is None:
            self._columns = fetch_columns(self.conn_factory, "artifacts")
        return self._columns

    def insert_artifact(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an artifact row and return {id, slug[, collection_id]}.

        `collection_id` is absent from the result when the column had to be dropped.
        """
        inserted = insert_adaptive(
            self.conn_factory,
            "artifacts",
            row,
            optional_columns=OPTIONAL_COLUMNS,
            returning=("id", "slug", "collection_id"),
            max_attempts=MAX_INSERT_ATTEMPTS,
            known_columns=self.columns(),
        )
        if inserted.get("id") is not None:
            inserted["id"] = str(inserted["id"])
        if inserted.get("collection_id") is not None:
            inserted["collection_id"] = str(inserted["collection_id"])
        return inserted

    def set_collection_id(self, artifact_id: str, collection_id: str) -> Optional[str]:
        """Patch the top-level collection_id. Returns the stored value."""
        query = "UPDATE artifacts SET collection_id = %s WHERE id = %s RETURNING collection_id;"
        with self.conn_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (collection_id, artifact_id))
                row = cur.fetchone()
            conn.commit()
        if not row or row[0] is None:
            return None
        return str(row[0])

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """Latest artifact with this slug (slugs are not unique)."""
        query = """
        SELECT id, slug, title, summary, data, created_at
        FROM artifacts
        WHERE slug = %s
        ORDER BY created_at DESC
        LIMIT 1;
        """
        with self.conn_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (slug,))
                row = cur.fetchone()
        return _normalize_row(row) if row else None

    def list_by_collection(self, collection_id: str) -> List[Dict[str, Any]]:
        query = """
        SELECT id, slug, title, summary, data, created_at
        FROM artifacts
        WHERE collection_id = %s
        ORDER BY created_at DESC;
        """
        with self.conn_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (collection_id,))
                rows = cur.fetchall()
        return [_normalize_row(r) for r in rows]


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(row)
    data = out.get("data") or {}
    # JSONB may come back as a string depending on driver config
    if isinstance(data, str):
        data = json.loads(data)
    out["data"] = data
    if out.get("id") is not None:
        out["id"] = str(out["id"])
    return out
