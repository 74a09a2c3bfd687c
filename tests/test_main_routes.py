from fastapi.testclient import TestClient
from unittest.mock import patch, MagicMock
from heirlooms.main import app

client = TestClient(app)

def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

@patch("heirlooms.main.get_settings")
def test_config_preview(mock_get_settings):
    mock_settings = MagicMock()
    mock_settings.openai_api_key = "fake-key"
    mock_settings.supabase_url = "https://example.supabase.co"
    mock_settings.supabase_anon_key = "anon"
    mock_settings.supabase_service_role_key = None
    mock_settings.postgres_host = "db"
    mock_settings.storage_bucket = "heirlooms"
    mock_settings.chat_model = "test-model"
    mock_get_settings.return_value = mock_settings

    response = client.get("/config")
    assert response.status_code == 200
    data = response.json()
    assert data["openai_key_present"] == "true"
    assert data["supabase_configured"] == "true"
    assert data["storage_configured"] == "false"
    assert data["chat_model"] == "test-model"
    assert "anon" not in response.text

def test_unknown_route_uses_error_body():
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.json()
