"""Shared Pydantic schemas for API requests and responses."""

from .ingest import (
    ChapterPreview,
    ParsedNovel,
    IngestResponse,
)

__all__ = [
    "ChapterPreview",
    "ParsedNovel",
    "IngestResponse",
]
