from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class Collection(BaseModel):
    """A named grouping of artifacts owned by a user."""
    id: str
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    owner_id: Optional[str] = None
    is_public: Optional[bool] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CollectionDraft(BaseModel):
    title: str
    slug: str
    owner_id: str
    description: Optional[str] = None
    is_public: bool = False
    cover_url: Optional[str] = None

    def to_row(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "is_public": self.is_public,
            "owner_id": self.owner_id,
            "cover_url": self.cover_url,
            "slug": self.slug,
        }
