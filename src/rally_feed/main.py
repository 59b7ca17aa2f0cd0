# src/rally_feed/main.py
"""Main entry point for the Rally feed application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from rally_feed.api.v1 import feed_router, posts_router
from rally_feed.core.settings import settings
from rally_feed.db.session import SessionLocal
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.sessions import FeedServices, FeedSessionRegistry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Rally Feed API",
    description="Privacy-aware social feed for tennis players, coaches and ambassadors",
    version=settings.app_version,
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
app.include_router(feed_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    services = FeedServices.from_session_factory(SessionLocal, FeedPolicy.from_settings(settings))
    app.state.feed_sessions = FeedSessionRegistry(
        services,
        max_sessions=settings.feed_max_sessions,
        idle_ttl_seconds=settings.feed_session_idle_seconds,
    )
    logger.info("Feed services ready (database=%s)", settings.effective_database_url.split("://", 1)[0])


@app.on_event("shutdown")
async def on_shutdown() -> None:
    registry: FeedSessionRegistry | None = getattr(app.state, "feed_sessions", None)
    if registry:
        registry.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Privacy-aware social feed for tennis players, coaches and ambassadors",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rally_feed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
