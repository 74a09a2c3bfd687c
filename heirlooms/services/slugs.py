import random
import re
import string

MAX_SLUG_LENGTH = 60
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_ALPHABET = string.digits + string.ascii_lowercase


def to_slug(title: str, prefix: str = "artifact") -> str:
    """
    URL-safe slug for a title: lowercase alphanumerics joined by single hyphens,
    at most 60 characters. Falls back to `<prefix>-<6 random base-36 chars>` when
    nothing usable is left. Uniqueness is not checked.
    """
    base = _NON_ALNUM.sub("-", (title or "").lower()).strip("-")
    base = base[:MAX_SLUG_LENGTH].strip("-")
    if base:
        return base
    suffix = "".join(random.choices(_ALPHABET, k=6))
    return f"{prefix}-{suffix}"
