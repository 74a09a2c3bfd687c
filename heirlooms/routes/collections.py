from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from heirlooms.auth import AuthUser, get_optional_user
from heirlooms.dependencies import get_collection_service
from heirlooms.routes.ingest import read_upload
from heirlooms.schemas import CollectionCreateResponse, CollectionDetail, CollectionSummary
from heirlooms.services.collection_service import (
    CollectionService,
    CollectionValidationError,
    CollectionWriteError,
    parse_bool,
)
from heirlooms.services.media_uploader import UploadError

router = APIRouter(prefix="/collections", tags=["collections"])

UNAUTHORIZED = "Unauthorized. Please sign in to create a collection."


def require_collection_user(user: Optional[AuthUser] = Depends(get_optional_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return user


@router.post("", response_model=CollectionCreateResponse)
@router.post("/create", response_model=CollectionCreateResponse)
def create_collection(
    request: Request,
    user: AuthUser = Depends(require_collection_user),
    title: str = Form(""),
    description: Optional[str] = Form(None),
    is_public: Optional[str] = Form(None),
    slug: Optional[str] = Form(None),
    cover: Optional[UploadFile] = File(None),
    service: CollectionService = Depends(get_collection_service),
):
    """
    Create a collection from a multipart form (optional cover image).
    """
    if "multipart/form-data" not in request.headers.get("content-type", ""):
        raise HTTPException(status_code=400, detail="Expected multipart/form-data")

    try:
        created = service.create_collection(
            owner_id=user.id,
            title=title,
            description=description,
            is_public=parse_bool(is_public),
            slug=slug,
            cover=read_upload(cover) if cover is not None else None,
        )
    except CollectionValidationError as e:
        raise HTTPException(status_code=400, detail=e.field_errors)
    except (UploadError, CollectionWriteError) as e:
        raise HTTPException(status_code=500, detail=str(e))

    return CollectionCreateResponse(**created)


@router.get("", response_model=List[CollectionSummary])
def list_public_collections(service: CollectionService = Depends(get_collection_service)):
    return [_summary(c) for c in service.list_public()]


@router.get("/mine", response_model=List[CollectionSummary])
def list_my_collections(
    user: AuthUser = Depends(require_collection_user),
    service: CollectionService = Depends(get_collection_service),
):
    return [_summary(c) for c in service.list_mine(user.id)]


@router.get("/{collection_id}", response_model=CollectionDetail)
def get_collection(
    collection_id: str,
    user: Optional[AuthUser] = Depends(get_optional_user),
    service: CollectionService = Depends(get_collection_service),
):
    """
    A collection and its artifacts, newest first. `collection_id` may also be a slug.
    """
    detail = service.get_detail(collection_id, viewer_id=user.id if user else None)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Collection {collection_id} not found.")
    return detail


def _summary(c) -> CollectionSummary:
    return CollectionSummary(
        id=c.id,
        slug=c.slug,
        title=c.title or "Untitled Collection",
        description=c.description,
        cover_url=c.cover_url,
        is_public=c.is_public,
        owner_id=c.owner_id,
    )
