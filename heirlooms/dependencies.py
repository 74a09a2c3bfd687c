"""
FastAPI dependency factories.

Provider clients and repositories are cached process-wide, so each repository's
column capability check runs once per process. Services are built per request.
Tests swap any of these via app.dependency_overrides.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from .config import get_settings
from .infra.artifact_db import ArtifactRepository
from .infra.collection_db import CollectionRepository
from .openai_client import get_optional_client
from .services.artifact_writer import ArtifactWriter
from .services.collection_service import CollectionService
from .services.identifiers import CollectionRefResolver
from .services.ingest_service import IngestionService
from .services.media_uploader import MediaUploader
from .services.structurer import ContentStructurer
from .services.transcriber import SpeechTranscriber
from .supabase_client import get_storage_client

logger = logging.getLogger(__name__)


@lru_cache()
def get_artifact_repository() -> ArtifactRepository:
    return ArtifactRepository()


@lru_cache()
def get_collection_repository() -> CollectionRepository:
    return CollectionRepository()


def get_media_uploader() -> MediaUploader:
    settings = get_settings()
    return MediaUploader(
        get_storage_client(),
        settings.storage_bucket,
        attempts=settings.upload_attempts,
        backoff_seconds=settings.upload_backoff_seconds,
    )


def get_ingestion_service() -> IngestionService:
    settings = get_settings()
    openai_client = get_optional_client()
    return IngestionService(
        resolver=CollectionRefResolver(get_collection_repository()),
        uploader=get_media_uploader(),
        transcriber=SpeechTranscriber(openai_client, model=settings.whisper_model),
        structurer=ContentStructurer(openai_client, model=settings.chat_model),
        writer=ArtifactWriter(get_artifact_repository()),
        theme=settings.artifact_theme,
        privacy=settings.artifact_privacy,
    )


def get_collection_service() -> CollectionService:
    # Reads work without storage credentials; a cover upload then fails loudly
    uploader: Optional[MediaUploader]
    try:
        uploader = get_media_uploader()
    except RuntimeError as e:
        logger.warning("Media storage unavailable: %s", e)
        uploader = None
    return CollectionService(get_collection_repository(), get_artifact_repository(), uploader=uploader)
