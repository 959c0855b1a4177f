"""Package document (OPF) parsing by targeted pattern extraction.

The extraction is deliberately permissive: attribute order, quoting,
namespace prefixes and unknown attributes are all tolerated, and every
missing piece falls back to a default instead of failing. A strict XML
parser would reject a large share of real-world EPUBs.
"""

import logging
from typing import Optional

from .archive import EpubArchive
from .errors import EntryDecodeError, MissingPackageDocument
from .markup import get_attr, get_tag_content, iter_start_tags, strip_tags
from .models import (
    DEFAULT_AUTHOR,
    DEFAULT_TITLE,
    ManifestItem,
    PackageDocument,
    PackageLocation,
    PackageMetadata,
)

logger = logging.getLogger(__name__)


def _first_text(block: str, *tags: str) -> Optional[str]:
    for tag in tags:
        inner = get_tag_content(block, tag)
        if inner is None:
            continue
        text = strip_tags(inner)
        if text:
            return text
    return None


def parse_metadata(opf: str) -> PackageMetadata:
    """Title, author and description, each defaulting independently."""
    block = get_tag_content(opf, "metadata", any_prefix=True)
    if block is None:
        block = opf

    return PackageMetadata(
        title=_first_text(block, "dc:title", "title") or DEFAULT_TITLE,
        author=_first_text(block, "dc:creator", "creator") or DEFAULT_AUTHOR,
        description=_first_text(block, "dc:description", "description") or "",
    )


def parse_manifest(opf: str) -> dict[str, ManifestItem]:
    """Manifest items keyed by id.

    Items without an id or href are skipped. A repeated id replaces the
    earlier declaration.
    """
    block = get_tag_content(opf, "manifest", any_prefix=True) or ""
    items: dict[str, ManifestItem] = {}

    for tag in iter_start_tags(block, "item"):
        item_id = get_attr(tag, "id")
        href = get_attr(tag, "href")
        if not item_id or not href:
            continue
        if item_id in items:
            logger.debug("Duplicate manifest id %r, keeping the last one", item_id)
        items[item_id] = ManifestItem(
            id=item_id,
            href=href,
            media_type=get_attr(tag, "media-type") or "",
        )

    return items


def parse_spine(opf: str, manifest: dict[str, ManifestItem]) -> list[str]:
    """Spine idrefs in reading order, dropping ids the manifest lacks."""
    block = get_tag_content(opf, "spine", any_prefix=True) or ""
    spine = []

    for tag in iter_start_tags(block, "itemref"):
        idref = get_attr(tag, "idref")
        if not idref:
            continue
        if idref not in manifest:
            logger.debug("Dropping dangling spine idref %r", idref)
            continue
        spine.append(idref)

    return spine


def parse_cover_id(opf: str) -> Optional[str]:
    """Manifest id named by ``<meta name="cover" content="...">``."""
    for tag in iter_start_tags(opf, "meta"):
        name = get_attr(tag, "name")
        if name and name.lower() == "cover":
            content = get_attr(tag, "content")
            if content:
                return content.strip()
    return None


def parse_package_document(opf: str) -> PackageDocument:
    """Extract metadata, manifest, spine and cover id from OPF text."""
    manifest = parse_manifest(opf)
    return PackageDocument(
        metadata=parse_metadata(opf),
        manifest=manifest,
        spine=parse_spine(opf, manifest),
        cover_id=parse_cover_id(opf),
    )


def load_package_document(
    archive: EpubArchive, location: PackageLocation
) -> PackageDocument:
    """Read and parse the package document at ``location``.

    Raises:
        MissingPackageDocument: If the file is absent or not valid UTF-8
    """
    try:
        opf = archive.entry_text(location.path)
    except EntryDecodeError as e:
        logger.warning("Package document is unreadable: %s", e)
        raise MissingPackageDocument(location.path) from e

    if opf is None:
        raise MissingPackageDocument(location.path)

    package = parse_package_document(opf)
    logger.info(
        "Parsed %s: %d manifest items, %d spine items",
        location.path,
        len(package.manifest),
        len(package.spine),
    )
    return package
