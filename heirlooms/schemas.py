from __future__ import annotations

from typing import List, Optional, Dict, Any

from pydantic import BaseModel

from .models.artifact import MediaItem


class IngestResponse(BaseModel):
    id: str
    slug: str
    collection_id: Optional[str] = None
    received_collection_param: Optional[str] = None
    warning: Optional[str] = None


class CollectionCreateResponse(BaseModel):
    id: str
    slug: Optional[str] = None


class ArtifactView(BaseModel):
    slug: str
    title: str
    summary: str
    media: List[MediaItem] = []
    transcript: Optional[str] = None
    collection_id: Optional[str] = None


class ArtifactCard(BaseModel):
    id: str
    slug: Optional[str] = None
    title: str
    summary: str = ""
    thumbnail: Optional[str] = None
    created_at: Optional[str] = None


class CollectionSummary(BaseModel):
    id: str
    slug: Optional[str] = None
    title: str
    description: Optional[str] = None
    cover_url: Optional[str] = None
    is_public: Optional[bool] = None
    owner_id: Optional[str] = None


class CollectionDetail(CollectionSummary):
    artifacts: List[ArtifactCard] = []


class SignUploadRequest(BaseModel):
    kind: str = "image"
    filename: str = ""


class SignedUpload(BaseModel):
    path: str
    signed_url: str
    token: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str | Dict[str, Any]
