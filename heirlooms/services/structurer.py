from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Literal, Optional
from urllib.parse import urlparse

from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError, field_validator

from heirlooms.models.artifact import MediaItem

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Artifact"
FALLBACK_TITLE_LENGTH = 60

SYSTEM_PROMPT = "Return ONLY valid JSON. Do not include backticks."

USER_PROMPT = """You are turning notes and (optional) transcript into a concise, elegant catalog entry.

Return strictly this JSON:
{{
  "title": string,
  "summary": string,
  "media": [ {{"type":"image","src":string,"alt"?:string}} ]
}}

Guidelines:
- Title: 3-7 words, proper case.
- Summary: 1-3 punchy sentences, no fluff.
- Media: reference given image URLs with short alt text.
- If transcript is present, use it to improve summary.

NOTES:
{notes}

TRANSCRIPT:
{transcript}

IMAGE_URLS:
{image_urls}
"""

# Greedy: from the first "{" to a "}" that ends the text
_TRAILING_OBJECT = re.compile(r"\{.*\}$", re.DOTALL)


class GeneratedImage(BaseModel):
    type: Literal["image"]
    src: str
    alt: Optional[str] = None

    @field_validator("src")
    @classmethod
    def _must_be_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"not a URL: {value!r}")
        return value


class StructuredArtifact(BaseModel):
    """Shape the generation service must return."""
    title: str = Field(min_length=1, max_length=120)
    summary: str = Field(min_length=1)
    media: List[GeneratedImage]

    @field_validator("title", "summary")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class StructuredContent(BaseModel):
    """Result handed to the rest of the pipeline."""
    title: str
    summary: str
    media: List[MediaItem] = []
    generated: bool = False


def build_prompt(text: str, transcript: Optional[str], image_urls: List[str]) -> str:
    return USER_PROMPT.format(
        notes=text or "(none)",
        transcript=transcript or "(none)",
        image_urls="\n".join(image_urls) or "(none)",
    )


def parse_model_json(content: str) -> Any:
    """
    Parse model output as JSON, falling back to the trailing {...} block.

    Raises ValueError when neither yields JSON.
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass
    match = _TRAILING_OBJECT.search(content.strip())
    if not match:
        raise ValueError("No JSON object in model output")
    return json.loads(match.group(0))


def fallback_structure(text: str, transcript: Optional[str], image_urls: List[str]) -> StructuredContent:
    """Deterministic local summary used whenever generation is not usable."""
    notes = (text or "").strip()
    spoken = (transcript or "").strip()
    title = notes[:FALLBACK_TITLE_LENGTH] or spoken[:FALLBACK_TITLE_LENGTH] or UNTITLED
    summary = "Generated from notes and audio transcript." if transcript else "Generated from notes."
    return StructuredContent(
        title=title,
        summary=summary,
        media=[MediaItem(type="image", src=u) for u in image_urls],
    )


def ensure_images(media: List[MediaItem], image_urls: List[str]) -> List[MediaItem]:
    """Append every uploaded image the generated media left out, in upload order."""
    present = {m.src for m in media}
    out = list(media)
    for url in image_urls:
        if url not in present:
            out.append(MediaItem(type="image", src=url))
            present.add(url)
    return out


class ContentStructurer:
    """
    Turns notes, transcript and uploaded image URLs into {title, summary, media}.

    Uses the chat completion API when a client is configured. Any failure along the
    way (missing client, API error, unparsable or invalid output) returns the
    deterministic fallback instead; `structure` never raises.
    """

    def __init__(self, client: Optional[OpenAI], model: str = "gpt-4o-mini", temperature: float = 0.2):
        self.client = client
        self.model = model
        self.temperature = temperature

    def structure(self, text: str, image_urls: List[str], transcript: Optional[str] = None) -> StructuredContent:
        image_urls = list(image_urls or [])
        if self.client is None:
            return fallback_structure(text, transcript, image_urls)

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(text, transcript, image_urls)},
                ],
                temperature=self.temperature,
            )
            content = completion.choices[0].message.content
            if not content or not isinstance(content, str):
                raise ValueError("No JSON returned")
            safe = StructuredArtifact.model_validate(parse_model_json(content))
        except (ValidationError, ValueError) as e:
            logger.warning("Model output rejected; using fallback: %s", e)
            return fallback_structure(text, transcript, image_urls)
        except Exception as e:  # noqa: BLE001
            logger.warning("Structuring failed; using fallback: %s", e)
            return fallback_structure(text, transcript, image_urls)

        media = [MediaItem(type="image", src=m.src, alt=m.alt) for m in safe.media]
        return StructuredContent(
            title=safe.title,
            summary=safe.summary,
            media=ensure_images(media, image_urls),
            generated=True,
        )
