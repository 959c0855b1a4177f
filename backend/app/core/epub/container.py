"""Locate the package document through META-INF/container.xml."""

import logging
import posixpath

from .archive import EpubArchive
from .errors import EntryDecodeError
from .markup import get_attr, iter_start_tags
from .models import PackageLocation

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
DEFAULT_PACKAGE_PATH = "OEBPS/content.opf"


def package_location(path: str) -> PackageLocation:
    """Split a package document path into path and containing directory."""
    directory = posixpath.dirname(path)
    return PackageLocation(path=path, directory=f"{directory}/" if directory else "")


def resolve_package_location(archive: EpubArchive) -> PackageLocation:
    """Find the package document path declared by the container.

    Falls back to ``OEBPS/content.opf`` when the container is missing,
    unreadable, or declares no ``full-path``, so that sloppy archives
    still get a chance to parse.
    """
    try:
        container = archive.entry_text(CONTAINER_PATH)
    except EntryDecodeError as e:
        logger.warning("Ignoring unreadable container: %s", e)
        container = None

    if container is None:
        logger.info("No %s, assuming %s", CONTAINER_PATH, DEFAULT_PACKAGE_PATH)
        return package_location(DEFAULT_PACKAGE_PATH)

    for rootfile in iter_start_tags(container, "rootfile"):
        full_path = get_attr(rootfile, "full-path")
        if full_path:
            return package_location(full_path.lstrip("/"))

    # Some producers drop the <rootfile> wrapper; take the attribute anywhere
    full_path = get_attr(container, "full-path")
    if full_path:
        return package_location(full_path.lstrip("/"))

    logger.info("Container declares no full-path, assuming %s", DEFAULT_PACKAGE_PATH)
    return package_location(DEFAULT_PACKAGE_PATH)
