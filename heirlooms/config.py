from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    chat_model: str = "gpt-4o-mini"
    whisper_model: str = "whisper-1"
    openai_timeout: float = 30.0

    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_user: str = "heirlooms"
    postgres_password: str = "heirlooms"
    postgres_db: str = "heirlooms"
    postgres_connect_timeout: int = 10

    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    # Server-side storage writes; the anon key cannot insert into storage.objects under RLS
    supabase_service_role_key: str | None = None
    storage_bucket: str = "heirlooms"

    # Object host retries
    upload_attempts: int = 3
    upload_backoff_seconds: float = 0.5

    session_cookie_name: str = "sb-access-token"

    # Defaults mirrored into artifacts.data
    artifact_theme: str = "museum"
    artifact_privacy: str = "public"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def pg_dsn(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
