from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, List, Literal, Dict, Any
from pydantic import BaseModel, Field


class MediaItem(BaseModel):
    """A piece of media embedded in an artifact (no identity of its own)."""
    type: Literal["image", "audio"]
    src: str
    alt: Optional[str] = None


class ArtifactDraft(BaseModel):
    """
    An artifact assembled by the ingestion pipeline, before it is written.

    `collection_ref` is the caller's original reference (id or slug) and is kept
    in the JSON mirror; `collection_id` is the resolved canonical id, if any.
    """
    slug: str
    title: str
    summary: str
    owner_id: str
    media: List[MediaItem] = Field(default_factory=list)
    transcript: Optional[str] = None
    collection_id: Optional[str] = None
    collection_ref: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    theme: str = "museum"
    privacy: str = "public"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def data_payload(self) -> Dict[str, Any]:
        """JSON mirror stored in artifacts.data."""
        return {
            "title": self.title,
            "summary": self.summary,
            "media": [m.model_dump(exclude_none=True) for m in self.media],
            "transcript": self.transcript,
            "tags": list(self.tags),
            "theme": self.theme,
            "privacy": self.privacy,
            "collection_id": self.collection_ref,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
        }

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "slug": self.slug,
            "data": self.data_payload(),
            "title": self.title,
            "summary": self.summary,
            "owner_id": self.owner_id,
        }
        if self.collection_id:
            row["collection_id"] = self.collection_id
        return row
