"""Record store for novels and their chapters.

Writes are flushed but never committed here; the caller owns the
transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database.chapter import Chapter
from app.models.database.enums import Language
from app.models.database.novel import Novel

logger = logging.getLogger(__name__)


class ChapterRecordStore:
    """Chapter upserts keyed by (novel_id, chapter number)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_novel(self, novel_id: str) -> Optional[Novel]:
        result = await self.db.execute(select(Novel).where(Novel.id == novel_id))
        return result.scalar_one_or_none()

    async def get_chapter(self, novel_id: str, number: int) -> Optional[Chapter]:
        result = await self.db.execute(
            select(Chapter).where(
                Chapter.novel_id == novel_id,
                Chapter.number == number,
            )
        )
        return result.scalar_one_or_none()

    async def list_chapters(self, novel_id: str) -> list[Chapter]:
        result = await self.db.execute(
            select(Chapter)
            .where(Chapter.novel_id == novel_id)
            .order_by(Chapter.number)
        )
        return list(result.scalars().all())

    async def upsert_chapter(
        self,
        novel_id: str,
        number: int,
        title: str,
        content: str,
        language: Language,
    ) -> Chapter:
        """Update the chapter with this number, or insert it.

        Only the content column of ``language`` is written, so the other
        language's content survives a re-upload.
        """
        chapter = await self.get_chapter(novel_id, number)

        if chapter is None:
            chapter = Chapter(novel_id=novel_id, number=number)
            self.db.add(chapter)
            logger.debug("Inserting chapter %d of novel %s", number, novel_id)
        else:
            chapter.updated_at = datetime.utcnow()
            logger.debug("Updating chapter %d of novel %s", number, novel_id)

        chapter.title = title
        setattr(chapter, language.content_field, content)
        await self.db.flush()
        return chapter

    async def set_cover(self, novel_id: str, cover_url: str) -> bool:
        """Point the novel's cover at ``cover_url``. False if no such novel."""
        novel = await self.get_novel(novel_id)
        if novel is None:
            logger.warning("Cannot set cover, novel %s not found", novel_id)
            return False
        novel.cover_url = cover_url
        await self.db.flush()
        return True
