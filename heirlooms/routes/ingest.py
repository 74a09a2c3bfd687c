import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from heirlooms.auth import AuthUser, get_optional_user
from heirlooms.dependencies import get_ingestion_service
from heirlooms.models.submission import MediaFile, Submission
from heirlooms.services.artifact_writer import ArtifactWriteError
from heirlooms.services.identifiers import pick_collection_ref
from heirlooms.services.ingest_service import IngestionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ingest"])

UNAUTHORIZED = "Unauthorized. Please sign in to create artifacts."


def require_ingest_user(user: Optional[AuthUser] = Depends(get_optional_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return user


def read_upload(upload: UploadFile) -> MediaFile:
    return MediaFile(
        filename=upload.filename or "",
        data=upload.file.read(),
        content_type=upload.content_type,
    )


@router.post("/ingest")
def ingest_artifact(
    user: AuthUser = Depends(require_ingest_user),
    text: str = Form(""),
    images: Optional[List[UploadFile]] = File(None),
    audio: Optional[UploadFile] = File(None),
    collection_id_alias: Optional[str] = Form(None, alias="collectionId"),
    collection_id: Optional[str] = Form(None),
    collection: Optional[str] = Form(None),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Turn uploaded photos, an optional voice note and notes into an artifact.

    - **text**: free-text notes
    - **images**: zero or more image files
    - **audio**: optional voice note
    - **collectionId** / **collection_id** / **collection**: collection id or slug
    """
    submission = Submission(
        owner_id=user.id,
        text=text or "",
        images=[read_upload(f) for f in images or []],
        audio=read_upload(audio) if audio is not None else None,
        collection_ref=pick_collection_ref(collection_id_alias, collection_id, collection),
    )
    logger.info("Ingest from %s, collection ref %r", user.id, submission.collection_ref)

    try:
        result = service.ingest(submission)
    except ArtifactWriteError as e:
        raise HTTPException(status_code=500, detail=str(e))

    body = {
        "id": result.id,
        "slug": result.slug,
        "collection_id": result.collection_id,
        "received_collection_param": result.received_collection_param,
    }
    if result.warning:
        body["warning"] = result.warning
    return body
