"""Upload API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.api.dependencies import RequireAdmin, Storage
from app.core.epub import InvalidArchive
from app.core.ingestion import EpubIngestionService
from app.core.records import ChapterRecordStore
from app.core.storage import ObjectStoreAssetSink
from app.models.database import get_db, Language
from app.models.schemas.ingest import IngestResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_upload_with_limit(file: UploadFile, max_size: int) -> bytes:
    """Read an uploaded file, enforcing the size limit while reading.

    This protects against clients that lie about Content-Length.
    """
    chunk_size = 1024 * 1024  # 1MB chunks
    chunks = []
    total_read = 0

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        total_read += len(chunk)
        if total_read > max_size:
            raise ValueError(f"File exceeds maximum size of {max_size // (1024*1024)}MB")
        chunks.append(chunk)

    return b"".join(chunks)


@router.post("/parse-epub", response_model=IngestResponse)
async def parse_epub(
    _: RequireAdmin,
    storage: Storage,
    epub: Optional[UploadFile] = File(None),
    novel_id: Optional[str] = Form(None),
    language: str = Form(Language.EN.value),
    db: AsyncSession = Depends(get_db),
):
    """Ingest an EPUB into an existing novel.

    Chapters are upserted by number into the content column of ``language``.
    Images and the cover are re-hosted in the object store.
    """
    if epub is None or not novel_id:
        raise HTTPException(status_code=400, detail="Missing epub file or novel_id")

    try:
        lang = Language(language)
    except ValueError:
        supported = ", ".join(item.value for item in Language)
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported language '{language}'. Supported: {supported}",
        )

    # Check Content-Length first for early rejection
    max_size = settings.max_upload_size_mb * 1024 * 1024
    if epub.size and epub.size > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB"
        )

    try:
        data = await _read_upload_with_limit(epub, max_size)
    except ValueError as e:
        raise HTTPException(status_code=413, detail=str(e))

    records = ChapterRecordStore(db)
    if await records.get_novel(novel_id) is None:
        raise HTTPException(status_code=404, detail="Novel not found")

    service = EpubIngestionService(records, ObjectStoreAssetSink(storage))

    try:
        result = await service.ingest(novel_id, data, lang)
        await db.commit()
        return result

    except InvalidArchive as e:
        await db.rollback()
        logger.warning("Rejected upload for novel %s: %s", novel_id, e)
        raise HTTPException(status_code=400, detail="Invalid EPUB file - could not unzip")

    except Exception as e:
        await db.rollback()
        logger.exception("EPUB parsing error for novel %s", novel_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to parse EPUB", "details": str(e)},
        )
