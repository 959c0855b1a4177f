"""Chapter extraction: spine-driven with a flat-file fallback.

This module is shared by both deployment modes. What happens to images is
decided only by the ``AssetSink`` handed in: the local mode passes a
``NullAssetSink`` (or ``DataUriAssetSink``), the server mode a sink backed by
the object store.
"""

import logging
import posixpath
from pathlib import Path
from typing import Optional

from .archive import EpubArchive
from .assets import AssetRehoster, AssetSink, NullAssetSink
from .container import resolve_package_location
from .errors import EntryDecodeError, MissingPackageDocument
from .markup import derive_title, extract_body, is_document_name
from .models import (
    CoverReference,
    PackageDocument,
    PackageLocation,
    PackageMetadata,
    ParsedChapter,
    ParsedEpub,
)
from .package import load_package_document

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100


class ChapterExtractor:
    """Turn the documents of one archive into numbered chapters."""

    def __init__(
        self,
        archive: EpubArchive,
        rehoster: AssetRehoster,
        min_content_length: int = MIN_CONTENT_LENGTH,
    ):
        self.archive = archive
        self.rehoster = rehoster
        self.min_content_length = min_content_length

    def _read_document(self, path: str) -> Optional[str]:
        try:
            return self.archive.entry_text(path)
        except EntryDecodeError as e:
            logger.warning("Skipping undecodable document: %s", e)
            return None

    async def _accept(
        self,
        chapters: list[ParsedChapter],
        path: str,
        document: str,
        title: Optional[str],
    ) -> None:
        """Append the document as the next chapter if it has enough content."""
        content = extract_body(document)
        if len(content) <= self.min_content_length:
            logger.debug(
                "Skipping %s: %d characters of content", path, len(content)
            )
            return

        number = len(chapters) + 1
        content, images = await self.rehoster.rehost_chapter(content, path)
        chapters.append(
            ParsedChapter(
                number=number,
                title=title or f"Chapter {number}",
                content=content,
                images=images,
                source_path=path,
            )
        )

    async def from_spine(
        self, package: PackageDocument, location: PackageLocation
    ) -> list[ParsedChapter]:
        """Chapters in declared reading order.

        Untitled documents are named after their position in the spine,
        not after the chapter number they end up with.
        """
        chapters: list[ParsedChapter] = []

        for attempt, item_id in enumerate(package.spine, start=1):
            item = package.manifest[item_id]
            if not item.is_document:
                logger.debug("Skipping non-document spine item %s (%s)", item_id, item.media_type)
                continue

            path = self.archive.lookup(posixpath.normpath(location.directory + item.href))
            if path is None:
                logger.debug("Spine item %s points at missing %s", item_id, item.href)
                continue

            document = self._read_document(path)
            if document is None:
                continue

            title = derive_title(document) or f"Chapter {attempt}"
            await self._accept(chapters, path, document, title)

        return chapters

    async def from_flat_files(self) -> list[ParsedChapter]:
        """Chapters from every (X)HTML entry, in lexicographic path order.

        Best-effort only: path order is not necessarily reading order.
        Titles are always synthesized.
        """
        chapters: list[ParsedChapter] = []

        for path in sorted(name for name in self.archive.names() if is_document_name(name)):
            document = self._read_document(path)
            if document is None:
                continue
            await self._accept(chapters, path, document, title=None)

        return chapters


def _cover_reference(
    package: PackageDocument, location: PackageLocation
) -> Optional[CoverReference]:
    item = package.cover_item
    if item is None:
        return None
    return CoverReference(
        manifest_id=item.id,
        resolved_path=posixpath.normpath(location.directory + item.href),
        media_type=item.media_type,
    )


async def extract_epub(
    data: bytes,
    sink: Optional[AssetSink] = None,
    novel_id: str = "local",
    min_content_length: int = MIN_CONTENT_LENGTH,
) -> ParsedEpub:
    """Parse an EPUB byte buffer into metadata, chapters and a cover URL.

    Args:
        data: Raw EPUB bytes
        sink: Where images and the cover are re-hosted (nothing by default)
        novel_id: Used to namespace uploaded asset names
        min_content_length: Fragments with this many characters or fewer are dropped

    Raises:
        InvalidArchive: If ``data`` is not a ZIP container
    """
    archive = EpubArchive.from_bytes(data)
    rehoster = AssetRehoster(archive, sink or NullAssetSink(), novel_id)
    extractor = ChapterExtractor(archive, rehoster, min_content_length)

    location = resolve_package_location(archive)
    metadata = PackageMetadata()
    chapters: list[ParsedChapter] = []
    cover_url = None

    try:
        package = load_package_document(archive, location)
    except MissingPackageDocument as e:
        logger.info("%s, falling back to a flat-file scan", e)
        package = None

    if package is not None:
        metadata = package.metadata
        cover = _cover_reference(package, location)
        if cover is not None:
            cover_url = await rehoster.rehost_cover(cover)
        chapters = await extractor.from_spine(package, location)

    used_fallback = False
    if not chapters:
        used_fallback = True
        chapters = await extractor.from_flat_files()
        logger.info("Flat-file scan found %d chapters", len(chapters))

    logger.info(
        "Extracted %d chapters from '%s' (%d images uploaded)",
        len(chapters),
        metadata.title,
        rehoster.upload_count,
    )
    return ParsedEpub(
        metadata=metadata,
        chapters=chapters,
        cover_url=cover_url,
        used_fallback=used_fallback,
    )


async def parse_epub_file(
    file_path: Path | str, sink: Optional[AssetSink] = None
) -> ParsedEpub:
    """Local mode: parse an EPUB on disk without any authorization boundary."""
    return await extract_epub(Path(file_path).read_bytes(), sink=sink)
