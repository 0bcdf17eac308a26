# src/confide/main.py
"""Main entry point for the Confide service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from confide.api.v1 import feed_router, notifications_router, posts_router, users_router
from confide.core.errors import (
    ConfideError,
    DocumentExistsError,
    NotFoundError,
    PermissionDeniedError,
    TransientStoreError,
    ValidationError,
)
from confide.core.logging import configure_logging
from confide.core.settings import settings
from confide.repositories import build_repositories
from confide.services.feed import SearchHistory
from confide.store import DocumentStore, MemoryDocumentStore, MemoryObjectStorage, SqlDocumentStore

logger = logging.getLogger(__name__)


async def _build_store() -> DocumentStore:
    if settings.uses_sql_store:
        return await SqlDocumentStore.connect()
    return MemoryDocumentStore()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire the store and repositories on startup; close an owned store on shutdown."""
    configure_logging(settings.log_level)
    # Tests and embedding applications may install a store before startup.
    if getattr(app.state, "store", None) is None:
        app.state.store = await _build_store()
        app.state.owns_store = True
    else:
        app.state.owns_store = False
    app.state.repositories = build_repositories(
        app.state.store,
        storage=MemoryObjectStorage(),
        snippet_length=settings.notification_snippet_length,
    )
    app.state.search_history = SearchHistory(settings.recent_search_limit)
    logger.info("Confide started with %s", type(app.state.store).__name__)

    yield

    store = app.state.store
    if app.state.owns_store:
        if isinstance(store, SqlDocumentStore):
            await store.close()
        app.state.store = None


# Initialize FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Confide API",
    description="Anonymous confession feeds with likes and comments",
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
app.include_router(posts_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")

_ERROR_STATUS: dict[type[ConfideError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DocumentExistsError: status.HTTP_409_CONFLICT,
    TransientStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(ConfideError)
async def handle_confide_error(request: Request, exc: ConfideError) -> JSONResponse:
    """Scope every domain failure to the request that caused it."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "retryable": exc.retryable},
    )


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
        "description": "Anonymous confession feeds with likes and comments",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("confide.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
