from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI

from heirlooms.models.submission import MediaFile

logger = logging.getLogger(__name__)


class SpeechTranscriber:
    """
    Best-effort speech-to-text. Every failure yields None; nothing is raised.
    """

    def __init__(self, client: Optional[OpenAI], model: str = "whisper-1"):
        self.client = client
        self.model = model

    def transcribe(self, audio: Optional[MediaFile]) -> Optional[str]:
        if audio is None or audio.is_empty:
            return None
        if self.client is None:
            logger.info("No OpenAI client configured; skipping transcription")
            return None

        try:
            result = self.client.audio.transcriptions.create(
                model=self.model,
                file=(audio.filename or "audio", audio.data, audio.content_type or "audio/mpeg"),
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("Transcription failed (non-fatal): %s", e)
            return None

        text = getattr(result, "text", result)
        if not isinstance(text, str) or not text.strip():
            logger.warning("Transcription returned no text")
            return None
        return text.strip()
