"""
ArtGuessr - FastAPI Application
Main entry point for the backend server.

Run with:
    uvicorn backend.app:app --reload --host 0.0.0.0 --port 8001
"""

import json
import logging
import os
import time
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend import config
from backend.api.routes import register_routes
from backend.cache_backend import get_cache_backend
from backend.core.logging import configure_logging
from backend.metrics import record_error
from backend.services import close_services, get_candidate_provider

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

configure_logging()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs once on startup, yields for the lifetime of the app, then cleans up."""
    logger.info(
        "ArtGuessr %s starting (cache backend: %s, live museum API: %s)",
        config.VERSION, get_cache_backend().backend, config.MET_LIVE_ENABLED,
    )
    # Load the static tier up front so the first request does not pay for it.
    get_candidate_provider().static_candidates()

    yield  # Application is running

    await close_services()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ArtGuessr",
    version=config.VERSION,
    description="Guess where a museum artwork comes from by clicking a world map",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handler -- surfaces unhandled errors as structured JSON
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method, request.url.path, exc, traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "path": request.url.path,
        },
    )


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------

@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """One ``request_log {json}`` line per request; 5xx responses count as errors."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000.0, 1)

    if response.status_code >= 500:
        record_error()
    response.headers["X-Request-ID"] = request_id

    payload = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "client": request.client.host if request.client else None,
    }
    logger.info("request_log %s", json.dumps(payload, separators=(",", ":")))
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

register_routes(app)


# ---------------------------------------------------------------------------
# Development entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.app:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=True,
        reload_dirs=[_PROJECT_ROOT],
    )
