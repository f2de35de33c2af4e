# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Vidio API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    VidioException,
    vidio_exception_handler,
    validation_exception_handler,
)
from app.routers import health, videos
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the resolved configuration on startup and shutdown.
    """
    logger.info(f"Starting Vidio API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Uploads: bucket={settings.VIDEO_BUCKET}, max={settings.MAX_UPLOAD_SIZE_MB}MB, "
        f"types={settings.allowed_mime_types_list}"
    )

    yield

    logger.info("Shutting down Vidio API")


# Create FastAPI application
app = FastAPI(
    title="Vidio API",
    description="""
## Video Sharing API

Upload videos and browse the shared catalog. Files live in Supabase Storage,
metadata in the `videos` table, uploader names in `profiles`.

### Quick Start

```bash
# 1. Upload a video (token from Supabase Auth)
curl -X POST http://localhost:8000/api/v1/videos \\
  -H "Authorization: Bearer $TOKEN" \\
  -F "file=@clip.mp4;type=video/mp4" -F "title=My clip"

# 2. List videos
curl http://localhost:8000/api/v1/videos
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Current user and token checks",
        },
        {
            "name": "Videos",
            "description": "Upload videos and browse the catalog",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(VidioException)
async def handle_vidio_exception(request: Request, exc: VidioException):
    """Handle custom Vidio exceptions."""
    return await vidio_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle malformed requests."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Video endpoints
app.include_router(
    videos.router,
    prefix="/api/v1/videos",
    tags=["Videos"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Vidio API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
