"""
Session verification against the identity provider.

Sign-in itself happens elsewhere; requests carry the resulting access token either
as `Authorization: Bearer <token>` or in the session cookie.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .config import get_settings
from .supabase_client import get_supabase_client

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        token = header[len("bearer "):].strip()
        if token:
            return token
    return request.cookies.get(get_settings().session_cookie_name) or None


def verify_token(client, token: str) -> Optional[AuthUser]:
    """Ask the provider who owns `token`. Any failure means anonymous."""
    try:
        response = client.auth.get_user(token)
    except Exception as e:  # noqa: BLE001
        logger.info("Session token rejected: %s", e)
        return None

    user = getattr(response, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        return None
    return AuthUser(id=str(user_id), email=getattr(user, "email", None))


def get_optional_user(request: Request) -> Optional[AuthUser]:
    token = extract_token(request)
    if not token:
        return None
    try:
        client = get_supabase_client()
    except RuntimeError as e:
        logger.error("Cannot verify session: %s", e)
        return None
    return verify_token(client, token)
