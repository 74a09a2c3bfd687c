from __future__ import annotations

import os
from functools import lru_cache

from openai import OpenAI

from .config import get_settings


@lru_cache()
def get_sync_client() -> OpenAI:
    """
    OpenAI client factory shared by the transcriber and the structurer.

    Uses OPENAI_API_KEY and optional OPENAI_BASE_URL. Raises RuntimeError when no
    key is configured; callers treat that as "generation unavailable".
    """
    settings = get_settings()
    api_key = settings.openai_api_key or os.getenv("OPENAI_API_KEY")
    base_url = settings.openai_base_url or os.getenv("OPENAI_BASE_URL") or None
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not set")
    return OpenAI(api_key=api_key, base_url=base_url, timeout=settings.openai_timeout)


def get_optional_client() -> OpenAI | None:
    try:
        return get_sync_client()
    except RuntimeError:
        return None
