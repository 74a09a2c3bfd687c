from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from heirlooms.models.artifact import ArtifactDraft, MediaItem
from heirlooms.models.submission import Submission
from heirlooms.services.artifact_writer import ArtifactWriter
from heirlooms.services.identifiers import CollectionRefResolver
from heirlooms.services.media_uploader import MediaUploader
from heirlooms.services.slugs import to_slug
from heirlooms.services.structurer import UNTITLED, ContentStructurer
from heirlooms.services.transcriber import SpeechTranscriber

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Generated by Heirlooms."


@dataclass
class IngestResult:
    id: str
    slug: str
    collection_id: Optional[str]
    received_collection_param: Optional[str]
    warning: Optional[str] = None


class IngestionService:
    """
    Runs one submission through the pipeline:

        resolve collection -> upload images -> upload audio -> transcribe
        -> structure -> slug -> write (+ reconcile collection_id)

    Every step before the write degrades to partial or fallback data. Only
    ArtifactWriteError propagates.
    """

    def __init__(
        self,
        resolver: CollectionRefResolver,
        uploader: MediaUploader,
        transcriber: SpeechTranscriber,
        structurer: ContentStructurer,
        writer: ArtifactWriter,
        theme: str = "museum",
        privacy: str = "public",
    ):
        self.resolver = resolver
        self.uploader = uploader
        self.transcriber = transcriber
        self.structurer = structurer
        self.writer = writer
        self.theme = theme
        self.privacy = privacy

    def ingest(self, submission: Submission) -> IngestResult:
        resolution = self.resolver.resolve(submission.collection_ref)

        image_urls = self.uploader.upload_images(submission.images)
        logger.info("Uploaded %d/%d images", len(image_urls), len(submission.images))

        audio_url = None
        transcript = None
        if submission.audio is not None and not submission.audio.is_empty:
            audio_url = self.uploader.upload_audio(submission.audio)
            transcript = self.transcriber.transcribe(submission.audio)

        structured = self.structurer.structure(submission.text, image_urls, transcript)

        media = list(structured.media)
        if audio_url:
            media.append(MediaItem(type="audio", src=audio_url))

        title = structured.title or UNTITLED
        draft = ArtifactDraft(
            slug=to_slug(title),
            title=title,
            summary=structured.summary or DEFAULT_SUMMARY,
            owner_id=submission.owner_id,
            media=media,
            transcript=transcript,
            collection_id=resolution.collection_id,
            collection_ref=submission.collection_ref,
            theme=self.theme,
            privacy=self.privacy,
        )

        written = self.writer.write(draft)

        return IngestResult(
            id=written.id,
            slug=written.slug,
            collection_id=written.collection_id or resolution.collection_id,
            received_collection_param=submission.collection_ref,
            warning=resolution.warning or written.warning,
        )
