from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from heirlooms.auth import AuthUser, get_optional_user
from heirlooms.dependencies import get_media_uploader
from heirlooms.schemas import SignUploadRequest, SignedUpload
from heirlooms.services.media_uploader import FOLDERS, MediaUploader, UploadError

router = APIRouter(prefix="/uploads", tags=["uploads"])


def require_upload_user(user: Optional[AuthUser] = Depends(get_optional_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized. Please sign in to upload.")
    return user


@router.post("/sign", response_model=SignedUpload)
def sign_upload(
    req: SignUploadRequest,
    user: AuthUser = Depends(require_upload_user),
    uploader: MediaUploader = Depends(get_media_uploader),
):
    """
    Signed direct-upload target so the browser can send a file to the object host.
    """
    if req.kind not in FOLDERS:
        raise HTTPException(status_code=400, detail=f"Unknown upload kind {req.kind!r}")

    try:
        signed = uploader.create_signed_upload(req.kind, req.filename)
    except UploadError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SignedUpload(**signed)
