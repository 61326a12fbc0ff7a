# src/townsquare/main.py
"""Main entry point for the Townsquare application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from townsquare import __version__
from townsquare.api.v1 import (
    auth_router,
    channels_router,
    comments_router,
    communities_router,
    documents_router,
    events_router,
    invites_router,
    posts_router,
    system_router,
    votes_router,
)
from townsquare.core.settings import settings
from townsquare.schemas.common import HealthResponse
from townsquare.services.email import get_email_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Townsquare API",
    description="Community platform: forums, events, documents and chat",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(communities_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(events_router, prefix="/api/v1")
app.include_router(invites_router, prefix="/api/v1")
app.include_router(documents_router, prefix="/api/v1")
app.include_router(channels_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    if not get_email_client().enabled:
        logger.info("Email delivery disabled; RSVP confirmations will not be sent")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_email_client().close()


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint to verify the service is running."""
    return HealthResponse(status="ok", service=settings.app_name, version=settings.app_version)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Townsquare API",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("townsquare.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
