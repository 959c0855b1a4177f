"""Schemas returned by the EPUB ingestion endpoint."""

from typing import Optional

from pydantic import BaseModel


class ChapterPreview(BaseModel):
    """A persisted chapter, with its content cut down to a preview."""

    number: int
    title: str
    content_preview: str
    images: list[str] = []


class ParsedNovel(BaseModel):
    """Novel-level data extracted from an EPUB."""

    title: str
    author: str
    description: str = ""
    chapters: list[ChapterPreview] = []
    cover_url: Optional[str] = None


class IngestResponse(BaseModel):
    """Response of a successful ingestion.

    Full chapter content is persisted but only previewed here to keep the
    response small.
    """

    success: bool = True
    data: ParsedNovel
    chapters_count: int
    used_fallback: bool = False
