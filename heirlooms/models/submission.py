from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MediaFile:
    """
    A file part received with a request.

    Fields:
        filename: Client-side filename (may be empty).
        content_type: Declared MIME type, if any.
        data: Raw bytes, read once per request.
    """

    filename: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.data


@dataclass
class Submission:
    """Input of one ingestion request. Never persisted as such."""

    owner_id: str
    text: str = ""
    images: List[MediaFile] = field(default_factory=list)
    audio: Optional[MediaFile] = None
    collection_ref: Optional[str] = None
