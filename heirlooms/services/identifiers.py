from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import psycopg

from heirlooms.infra.collection_db import CollectionRepository

logger = logging.getLogger(__name__)

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_canonical_id(ref: str) -> bool:
    """Format check only; says nothing about whether the row exists."""
    return bool(UUID_RE.match(ref))


@dataclass
class CollectionResolution:
    collection_id: Optional[str] = None
    warning: Optional[str] = None


class CollectionRefResolver:
    """
    Resolves a client-supplied collection reference (id or slug) to a canonical id.

    Resolution failure is never fatal: the artifact is stored uncategorized and
    the caller gets a warning.
    """

    def __init__(self, repo: CollectionRepository):
        self.repo = repo

    def resolve(self, ref: Optional[str]) -> CollectionResolution:
        ref = (ref or "").strip()
        if not ref:
            return CollectionResolution()

        if is_canonical_id(ref):
            return CollectionResolution(collection_id=ref)

        try:
            found = self.repo.find_id_by_slug(ref)
        except psycopg.Error as e:
            logger.warning("Collection slug lookup failed for %r: %s", ref, e)
            found = None

        if found:
            logger.info("Resolved collection slug %r to %s", ref, found)
            return CollectionResolution(collection_id=found)

        logger.warning("Could not resolve collection reference %r", ref)
        return CollectionResolution(
            warning=f"collectionId provided but not a UUID and no collection found for slug '{ref}'"
        )


def pick_collection_ref(*candidates: Optional[str]) -> Optional[str]:
    """First non-blank value among the aliased form fields, trimmed."""
    for value in candidates:
        if value and value.strip():
            return value.strip()
    return None
