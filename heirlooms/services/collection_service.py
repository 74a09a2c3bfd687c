from __future__ import annotations

import logging
from typing import Dict, List, Optional

import psycopg

from heirlooms.infra.artifact_db import ArtifactRepository
from heirlooms.infra.collection_db import CollectionRepository
from heirlooms.models.collection import Collection, CollectionDraft
from heirlooms.models.submission import MediaFile
from heirlooms.schemas import ArtifactCard, CollectionDetail
from heirlooms.services.identifiers import is_canonical_id
from heirlooms.services.media_uploader import MediaUploader
from heirlooms.services.slugs import to_slug

logger = logging.getLogger(__name__)

_TRUTHY = {"true", "1", "on", "yes"}


class CollectionValidationError(Exception):
    def __init__(self, field_errors: Dict[str, List[str]]):
        super().__init__(str(field_errors))
        self.field_errors = field_errors


class CollectionWriteError(Exception):
    pass


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


class CollectionService:
    """
    Creates collections and reads them back with their artifacts.
    """

    def __init__(
        self,
        repo: CollectionRepository,
        artifacts: ArtifactRepository,
        uploader: Optional[MediaUploader] = None,
    ):
        self.repo = repo
        self.artifacts = artifacts
        self.uploader = uploader

    def create_collection(
        self,
        owner_id: str,
        title: str,
        description: Optional[str] = None,
        is_public: bool = False,
        slug: Optional[str] = None,
        cover: Optional[MediaFile] = None,
    ) -> Dict[str, Optional[str]]:
        """
        Validate, upload the optional cover, then insert. Returns {id, slug}.

        Raises:
            CollectionValidationError: title missing.
            UploadError: the cover could not be stored.
            CollectionWriteError: the insert failed.
        """
        title = (title or "").strip()
        if not title:
            raise CollectionValidationError({"title": ["Title is required."]})

        final_slug = (slug or "").strip() or to_slug(title, prefix="collection")

        cover_url = None
        if cover is not None and not cover.is_empty:
            if self.uploader is None:
                raise CollectionWriteError("No media uploader configured for cover images")
            cover_url = self.uploader.upload(cover, "cover").url

        draft = CollectionDraft(
            title=title,
            slug=final_slug,
            owner_id=owner_id,
            description=(description or "").strip() or None,
            is_public=is_public,
            cover_url=cover_url,
        )
        try:
            inserted = self.repo.insert_collection(draft.to_row())
        except Exception as e:  # noqa: BLE001
            logger.exception("Collection insert failed")
            raise CollectionWriteError(str(e)) from e

        return {"id": inserted.get("id"), "slug": inserted.get("slug") or final_slug}

    def list_public(self) -> List[Collection]:
        return self.repo.list_public()

    def list_mine(self, owner_id: str) -> List[Collection]:
        return self.repo.list_for_owner(owner_id)

    def get_detail(self, ref: str, viewer_id: Optional[str] = None) -> Optional[CollectionDetail]:
        """
        Collection plus its artifacts, looked up by id or slug.

        None when missing, when the lookup fails, or when the collection is
        private and the viewer is not its owner.
        """
        ref = (ref or "").strip()
        try:
            collection_id = ref if is_canonical_id(ref) else self.repo.find_id_by_slug(ref)
            col = self.repo.get_collection(collection_id) if collection_id else None
        except psycopg.Error as e:
            logger.warning("Collection lookup failed for %r: %s", ref, e)
            return None
        if col is None:
            return None
        if not col.is_public and (viewer_id is None or viewer_id != col.owner_id):
            return None

        cards = [_card(row) for row in self.artifacts.list_by_collection(col.id)]
        return CollectionDetail(
            id=col.id,
            slug=col.slug,
            title=col.title or "Untitled Collection",
            description=col.description,
            cover_url=col.cover_url,
            is_public=col.is_public,
            owner_id=col.owner_id,
            artifacts=cards,
        )


def _card(row: dict) -> ArtifactCard:
    data = row.get("data") or {}
    media = data.get("media") if isinstance(data.get("media"), list) else []
    thumb = next((m.get("src") for m in media if isinstance(m, dict) and m.get("type") == "image"), None)
    created = row.get("created_at")
    return ArtifactCard(
        id=str(row["id"]),
        slug=row.get("slug"),
        title=row.get("title") or data.get("title") or "(untitled)",
        summary=row.get("summary") or data.get("summary") or "",
        thumbnail=thumb,
        created_at=created.isoformat() if hasattr(created, "isoformat") else created,
    )
