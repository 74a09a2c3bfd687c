"""
Media upload to the object host (a Supabase Storage bucket).

`normalize_upload_url` is the only place that knows about the host's result
shapes; everything past `MediaUploader` sees `UploadedMedia`.
"""
from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from supabase import Client
from tenacity import Retrying, stop_after_attempt, wait_exponential

from heirlooms.models.submission import MediaFile

logger = logging.getLogger(__name__)

MediaKind = Literal["image", "audio", "cover"]

FOLDERS = {
    "image": "heirlooms",
    "audio": "heirlooms/audio",
    "cover": "heirlooms/collections",
}

DEFAULT_CONTENT_TYPES = {
    "image": "image/jpeg",
    "audio": "audio/mpeg",
    "cover": "image/jpeg",
}

_URL_KEYS = (
    "secure_url",
    "url",
    "publicURL",
    "publicUrl",
    "public_url",
    "signedURL",
    "signedUrl",
    "signed_url",
)


class UploadError(Exception):
    """A single file could not be stored or its URL could not be determined."""


@dataclass
class UploadedMedia:
    kind: str
    url: str
    path: str


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def normalize_upload_url(result: Any) -> str:
    """
    Reduce a host result to a single URL string.

    Accepts a bare string, an object/mapping carrying one of the known URL keys,
    or the same nested under `data`.
    """
    candidates = [result]
    nested = _field(result, "data") if not isinstance(result, str) else None
    if nested is not None:
        candidates.append(nested)

    for candidate in candidates:
        if isinstance(candidate, str):
            if candidate.strip():
                return candidate.strip()
            continue
        for key in _URL_KEYS:
            value = _field(candidate, key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    raise UploadError(f"Unrecognized upload result: {type(result).__name__}")


class MediaUploader:
    def __init__(
        self,
        client: Client,
        bucket: str,
        attempts: int = 3,
        backoff_seconds: float = 0.5,
    ):
        self.client = client
        self.bucket = bucket
        self.attempts = max(1, attempts)
        self.backoff_seconds = backoff_seconds

    def _storage(self):
        return self.client.storage.from_(self.bucket)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=8),
            reraise=True,
        )

    @staticmethod
    def object_path(kind: str, filename: str = "", content_type: Optional[str] = None) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        if not ext and content_type:
            ext = mimetypes.guess_extension(content_type) or ""
        return f"{FOLDERS[kind]}/{uuid.uuid4().hex}{ext}"

    def upload(self, file: MediaFile, kind: MediaKind) -> UploadedMedia:
        """
        Store one file and return its public URL.

        Host errors are retried with exponential backoff; the last one is raised
        as UploadError.
        """
        if file.is_empty:
            raise UploadError(f"Refusing to upload empty {kind} file {file.filename!r}")

        path = self.object_path(kind, file.filename, file.content_type)
        content_type = file.content_type or DEFAULT_CONTENT_TYPES[kind]
        try:
            for attempt in self._retrying():
                with attempt:
                    self._storage().upload(
                        path,
                        file.data,
                        {"content-type": content_type, "upsert": "false"},
                    )
        except Exception as e:  # noqa: BLE001
            raise UploadError(f"Upload of {file.filename or path} failed: {e}") from e

        url = normalize_upload_url(self._storage().get_public_url(path))
        return UploadedMedia(kind=kind, url=url, path=path)

    def upload_images(self, files: List[MediaFile]) -> List[str]:
        """Upload images one at a time; a failed file is logged and skipped."""
        urls: List[str] = []
        for file in files:
            if file.is_empty:
                continue
            try:
                urls.append(self.upload(file, "image").url)
            except UploadError as e:
                logger.warning("Skipping image %r: %s", file.filename, e)
        return urls

    def upload_audio(self, file: Optional[MediaFile]) -> Optional[str]:
        if file is None or file.is_empty:
            return None
        try:
            return self.upload(file, "audio").url
        except UploadError as e:
            logger.warning("Audio upload failed (non-fatal): %s", e)
            return None

    def create_signed_upload(self, kind: MediaKind, filename: str = "") -> dict:
        """Signed direct-upload target so a browser can send the bytes itself."""
        path = self.object_path(kind, filename)
        try:
            result = self._storage().create_signed_upload_url(path)
        except Exception as e:  # noqa: BLE001
            raise UploadError(f"Could not sign upload for {path}: {e}") from e
        return {
            "path": _field(result, "path") or path,
            "signed_url": normalize_upload_url(result),
            "token": _field(result, "token"),
        }
