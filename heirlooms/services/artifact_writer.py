from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from heirlooms.infra.artifact_db import ArtifactRepository
from heirlooms.models.artifact import ArtifactDraft

logger = logging.getLogger(__name__)


class ArtifactWriteError(Exception):
    """The artifact could not be persisted, even after dropping optional columns."""


@dataclass
class WriteResult:
    id: str
    slug: str
    collection_id: Optional[str] = None
    warning: Optional[str] = None


class ArtifactWriter:
    """
    Persists a draft and reconciles the top-level collection_id.

    The insert and the follow-up patch are not atomic. When the patch fails the
    row keeps a null collection_id while data.collection_id still holds the
    caller's reference.
    """

    def __init__(self, repo: ArtifactRepository):
        self.repo = repo

    def write(self, draft: ArtifactDraft) -> WriteResult:
        try:
            inserted = self.repo.insert_artifact(draft.to_row())
        except Exception as e:  # noqa: BLE001
            logger.exception("Artifact insert failed")
            raise ArtifactWriteError(str(e)) from e

        result = WriteResult(
            id=str(inserted["id"]),
            slug=inserted.get("slug") or draft.slug,
            collection_id=inserted.get("collection_id"),
        )

        if draft.collection_id and not result.collection_id:
            try:
                patched = self.repo.set_collection_id(result.id, draft.collection_id)
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to patch collection_id on artifact %s: %s", result.id, e)
                result.warning = f"inserted but failed to patch collection_id: {e}"
            else:
                if patched:
                    logger.info("Patched artifact %s with collection_id %s", result.id, patched)
                    result.collection_id = patched
                else:
                    result.warning = "inserted but failed to patch collection_id: no row updated"

        return result
