"""Re-hosting of images embedded in an EPUB.

Images referenced by chapter markup are copied to an external store and the
markup is rewritten to point at the returned public URL. A failed upload is
never fatal: the reference is simply left as it was.
"""

import base64
import html
import logging
import mimetypes
import posixpath
import re
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .archive import EpubArchive
from .errors import ImageUploadFailure, StorageError
from .models import CoverReference

logger = logging.getLogger(__name__)

_IMG_SRC_RE = re.compile(
    r"(<img\b[^>]*?(?<![\w:.-])src\s*=\s*)([\"'])(.*?)\2",
    re.IGNORECASE | re.DOTALL,
)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)


# =============================================================================
# Asset sinks
# =============================================================================


class AssetSink(ABC):
    """Destination for re-hosted assets."""

    # False for sinks that never store anything; images are then left alone
    enabled: bool = True

    @abstractmethod
    async def put(self, name: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``name`` and return its public URL.

        Raises:
            StorageError: If the asset could not be stored
        """


class NullAssetSink(AssetSink):
    """Stores nothing. Markup keeps its archive-relative image links."""

    enabled = False

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        raise ImageUploadFailure(name, "asset uploads are disabled")


class DataUriAssetSink(AssetSink):
    """Inlines assets as ``data:`` URIs, for use without any storage."""

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{content_type};base64,{encoded}"


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload attempt."""

    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


async def try_upload(
    sink: AssetSink, name: str, data: bytes, content_type: str
) -> UploadResult:
    """Upload through ``sink``, turning storage failures into a failed result."""
    try:
        url = await sink.put(name, data, content_type)
    except StorageError as e:
        logger.warning("Upload of %s failed: %s", name, e)
        return UploadResult(error=str(e))
    return UploadResult(url=url)


# =============================================================================
# Path helpers
# =============================================================================


def is_external_reference(src: str) -> bool:
    """Whether ``src`` points outside the archive (URL, data URI, root path)."""
    return src.startswith("/") or bool(_SCHEME_RE.match(src))


def resolve_asset_path(src: str, document_path: str) -> Optional[str]:
    """Archive path an image ``src`` refers to, relative to its document.

    ``./`` and ``../`` segments are normalized. External references
    resolve to None.
    """
    src = src.strip()
    if not src or is_external_reference(src):
        return None

    path = src.split("#", 1)[0].split("?", 1)[0]
    if not path:
        return None

    base = posixpath.dirname(document_path)
    joined = posixpath.join(base, path) if base else path
    return posixpath.normpath(joined)


def _extension(path: str, default: str = "jpg") -> str:
    ext = posixpath.splitext(path)[1].lstrip(".").lower()
    return ext or default


def guess_content_type(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    return content_type or f"image/{_extension(path)}"


# =============================================================================
# Rehoster
# =============================================================================


class AssetRehoster:
    """Uploads images of one ingestion call, each archive path at most once.

    The upload cache lives on the instance, so a fresh rehoster must be
    created for every ingestion. Uploads are awaited one at a time.
    """

    def __init__(self, archive: EpubArchive, sink: AssetSink, novel_id: str = "local"):
        self.archive = archive
        self.sink = sink
        self.novel_id = novel_id
        self.uploaded: dict[str, str] = {}  # archive path -> public URL
        self.upload_count = 0

    def _image_name(self, path: str) -> str:
        stamp = int(time.time() * 1000)
        token = uuid.uuid4().hex[:9]
        return f"images/{self.novel_id}/{stamp}_{token}.{_extension(path)}"

    async def _url_for(self, path: str) -> Optional[str]:
        # Cache is keyed by archive entry name, not by the spelling of src
        name = self.archive.lookup(path)
        if name is None:
            logger.debug("Image %s is not in the archive", path)
            return None

        cached = self.uploaded.get(name)
        if cached is not None:
            return cached

        result = await try_upload(
            self.sink,
            self._image_name(name),
            self.archive.entry(name),
            guess_content_type(name),
        )
        if not result.ok:
            return None

        self.upload_count += 1
        self.uploaded[name] = result.url
        return result.url

    async def rehost_chapter(
        self, fragment: str, document_path: str
    ) -> tuple[str, list[str]]:
        """Upload the images of a chapter fragment and rewrite their links.

        Args:
            fragment: Chapter HTML
            document_path: Archive path of the document the fragment came from

        Returns:
            The rewritten fragment and the public URLs of its images, one per
            distinct archive entry in order of first appearance
        """
        if not self.sink.enabled:
            return fragment, []

        replacements: dict[str, str] = {}
        images: list[str] = []

        for match in _IMG_SRC_RE.finditer(fragment):
            src = match.group(3)
            if src in replacements:
                continue
            path = resolve_asset_path(html.unescape(src), document_path)
            if path is None:
                continue
            url = await self._url_for(path)
            if url is None:
                continue
            replacements[src] = url
            if url not in images:
                images.append(url)

        if not replacements:
            return fragment, images

        def _rewrite(match: re.Match) -> str:
            src = match.group(3)
            if src not in replacements:
                return match.group(0)
            quote = match.group(2)
            return f"{match.group(1)}{quote}{replacements[src]}{quote}"

        return _IMG_SRC_RE.sub(_rewrite, fragment), images

    async def rehost_cover(self, cover: CoverReference) -> Optional[str]:
        """Upload the cover image; None if it is missing or the upload fails."""
        if not self.sink.enabled:
            return None

        name = self.archive.lookup(cover.resolved_path)
        if name is None:
            logger.info("Cover %s is not in the archive", cover.resolved_path)
            return None

        subtype = cover.media_type.split("/")[-1] if cover.media_type else ""
        ext = subtype or _extension(name)
        content_type = cover.media_type or guess_content_type(name)

        result = await try_upload(
            self.sink,
            f"covers/{self.novel_id}_cover.{ext}",
            self.archive.entry(name),
            content_type,
        )
        if result.ok:
            logger.info("Cover uploaded: %s", result.url)
        return result.url
