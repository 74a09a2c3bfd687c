from __future__ import annotations

import os
from functools import lru_cache

from supabase import Client, create_client

from .config import get_settings


def _supabase_url() -> str | None:
    return get_settings().supabase_url or os.getenv("SUPABASE_URL")


@lru_cache()
def get_supabase_client() -> Client:
    """
    Anon-key Supabase client, used only to verify session tokens.

    Raises RuntimeError when SUPABASE_URL / SUPABASE_ANON_KEY are missing.
    """
    url = _supabase_url()
    key = get_settings().supabase_anon_key or os.getenv("SUPABASE_ANON_KEY")
    if not url or not key:
        raise RuntimeError("SUPABASE_URL / SUPABASE_ANON_KEY are not set")
    return create_client(url, key)


@lru_cache()
def get_storage_client() -> Client:
    """
    Service-role Supabase client for media storage.

    Raises RuntimeError when SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are missing,
    so a misconfigured deployment fails the request instead of storing artifacts
    without their media.
    """
    url = _supabase_url()
    key = get_settings().supabase_service_role_key or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise RuntimeError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set")
    return create_client(url, key)
