"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.core.storage import STORAGE_MOUNT
from app.models.database.base import init_db
from app.api.v1.routes import upload

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Initialize database
    await init_db()

    if not settings.api_tokens:
        logger.warning("No API_TOKENS configured; EPUB ingestion will reject every request")

    yield
    # Shutdown: cleanup if needed


app = FastAPI(
    title=settings.app_name,
    description="Serialized fiction reader backend with EPUB ingestion",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(upload.router, prefix="/api/v1", tags=["upload"])

# Re-hosted covers and chapter images
app.mount(STORAGE_MOUNT, StaticFiles(directory=settings.storage_dir), name="storage")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Serial Reader API", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
