"""EPUB ingestion: extract chapters, re-host assets, persist records."""

import logging
from typing import Optional

from app.config import settings
from app.core.epub import ParsedEpub, extract_epub
from app.core.epub.assets import AssetSink
from app.core.records import ChapterRecordStore
from app.models.database.enums import Language
from app.models.schemas.ingest import ChapterPreview, IngestResponse, ParsedNovel
from app.utils.text import safe_truncate

logger = logging.getLogger(__name__)


def build_response(
    parsed: ParsedEpub, preview_length: Optional[int] = None
) -> IngestResponse:
    """Summarize an extraction for the caller, previewing chapter content."""
    if preview_length is None:
        preview_length = settings.preview_length

    previews = [
        ChapterPreview(
            number=chapter.number,
            title=chapter.title,
            content_preview=safe_truncate(chapter.content, preview_length),
            images=chapter.images,
        )
        for chapter in parsed.chapters
    ]
    return IngestResponse(
        data=ParsedNovel(
            title=parsed.metadata.title,
            author=parsed.metadata.author,
            description=parsed.metadata.description,
            chapters=previews,
            cover_url=parsed.cover_url,
        ),
        chapters_count=len(parsed.chapters),
        used_fallback=parsed.used_fallback,
    )


class EpubIngestionService:
    """Run one EPUB through the pipeline and upsert its chapters.

    Uploads and upserts are awaited one at a time in chapter order.
    """

    def __init__(
        self,
        records: ChapterRecordStore,
        sink: AssetSink,
        min_content_length: Optional[int] = None,
    ):
        self.records = records
        self.sink = sink
        self.min_content_length = (
            settings.min_chapter_length if min_content_length is None else min_content_length
        )

    async def ingest(
        self,
        novel_id: str,
        data: bytes,
        language: Language = Language.EN,
    ) -> IngestResponse:
        """Parse ``data`` and store its chapters under ``novel_id``.

        Raises:
            InvalidArchive: If ``data`` is not a ZIP container
        """
        logger.info("Processing EPUB for novel %s, language: %s", novel_id, language.value)

        parsed = await extract_epub(
            data,
            sink=self.sink,
            novel_id=novel_id,
            min_content_length=self.min_content_length,
        )

        for chapter in parsed.chapters:
            await self.records.upsert_chapter(
                novel_id,
                chapter.number,
                chapter.title,
                chapter.content,
                language,
            )

        if parsed.cover_url:
            await self.records.set_cover(novel_id, parsed.cover_url)

        logger.info(
            "Stored %d chapters for novel %s%s",
            len(parsed.chapters),
            novel_id,
            " (flat-file fallback)" if parsed.used_fallback else "",
        )
        return build_response(parsed)
