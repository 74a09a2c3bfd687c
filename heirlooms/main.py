from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .routes import artifacts, collections, ingest, uploads

# Load environment variables (expects OPENAI_API_KEY, SUPABASE_*, POSTGRES_* in .env)
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("heirlooms")

app = FastAPI(title="Heirlooms Backend", version="0.1.0")
app.include_router(ingest.router)
app.include_router(collections.router)
app.include_router(artifacts.router)
app.include_router(uploads.router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as {"error": ...}."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: Dict[str, list] = {}
    for err in exc.errors():
        name = str(err.get("loc", ("body",))[-1])
        fields.setdefault(name, []).append(err.get("msg", "invalid"))
    return JSONResponse(status_code=400, content={"error": fields})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
def health() -> Dict[str, str]:
    """
    Health check endpoint to verify service status.

    Returns:
        Dict[str, str]: {"status": "ok"} if running.
    """
    return {"status": "ok"}


@app.get("/config")
def config_preview() -> Dict[str, str | None]:
    """
    Endpoint to preview current configuration (safely, no secrets).
    """
    settings = get_settings()
    return {
        "openai_key_present": "true" if (settings.openai_api_key or os.getenv("OPENAI_API_KEY")) else "false",
        "supabase_configured": "true" if (settings.supabase_url and settings.supabase_anon_key) else "false",
        "storage_configured": "true" if (settings.supabase_url and settings.supabase_service_role_key) else "false",
        "postgres_host": settings.postgres_host,
        "storage_bucket": settings.storage_bucket,
        "chat_model": settings.chat_model,
    }
