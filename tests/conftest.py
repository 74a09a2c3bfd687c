from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from heirlooms.models.submission import MediaFile


@pytest.fixture
def fake_db():
    """
    A psycopg-shaped connection factory backed by mocks.

    Returns (factory, conn, cur); `with factory() as conn` and
    `with conn.cursor(...) as cur` both yield the mocks.
    """
    conn = MagicMock()
    cur = MagicMock()
    conn.__enter__.return_value = conn
    conn.cursor.return_value.__enter__.return_value = cur
    factory = MagicMock(return_value=conn)
    return factory, conn, cur


@pytest.fixture
def jpeg() -> MediaFile:
    return MediaFile(filename="watch.jpg", data=b"\xff\xd8\xff fake jpeg", content_type="image/jpeg")


@pytest.fixture
def voice_note() -> MediaFile:
    return MediaFile(filename="note.webm", data=b"fake audio", content_type="audio/webm")
