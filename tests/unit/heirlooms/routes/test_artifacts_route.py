import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from heirlooms.dependencies import get_artifact_repository
from heirlooms.main import app

client = TestClient(app)


@pytest.fixture
def repo():
    mock_repo = MagicMock()
    app.dependency_overrides[get_artifact_repository] = lambda: mock_repo
    yield mock_repo
    app.dependency_overrides = {}


def test_get_artifact_reads_json_mirror(repo):
    repo.get_by_slug.return_value = {
        "id": "a1",
        "slug": "grandpa-s-watch",
        "title": "stale column title",
        "summary": None,
        "data": {
            "title": "Grandpa's Watch",
            "summary": "Brass, still ticking.",
            "media": [
                {"type": "image", "src": "https://cdn/w.jpg", "alt": "Face"},
                {"type": "video", "src": "https://cdn/v.mp4"},
                {"type": "audio", "src": "https://cdn/a.mp3"},
            ],
            "transcript": "It still ticks.",
            "collection_id": "family-watches",
        },
    }

    resp = client.get("/artifacts/grandpa-s-watch")

    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Grandpa's Watch"
    assert [m["type"] for m in body["media"]] == ["image", "audio"]
    assert body["collection_id"] == "family-watches"


def test_get_artifact_not_found(repo):
    repo.get_by_slug.return_value = None
    resp = client.get("/artifacts/missing")
    assert resp.status_code == 404
    assert "missing" in resp.json()["error"]
