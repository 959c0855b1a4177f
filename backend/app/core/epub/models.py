"""Data types produced while parsing an EPUB."""

from dataclasses import dataclass, field
from typing import Optional


DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHOR = "Unknown"


@dataclass(frozen=True)
class PackageLocation:
    """Where the package document lives inside the archive."""

    path: str  # e.g. "OEBPS/content.opf"
    directory: str  # e.g. "OEBPS/" ("" at the archive root)


@dataclass(frozen=True)
class PackageMetadata:
    """Book-level metadata from the OPF <metadata> block."""

    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    description: str = ""


@dataclass(frozen=True)
class ManifestItem:
    """A resource declared in the OPF manifest."""

    id: str
    href: str  # Relative to the package document's directory
    media_type: str = ""

    @property
    def is_document(self) -> bool:
        """Whether the item can be read as a chapter.

        Items without a declared media type are given the benefit of the doubt.
        """
        return not self.media_type or "html" in self.media_type.lower()


@dataclass
class PackageDocument:
    """Everything extracted from one OPF file."""

    metadata: PackageMetadata = field(default_factory=PackageMetadata)
    manifest: dict[str, ManifestItem] = field(default_factory=dict)
    spine: list[str] = field(default_factory=list)  # Manifest ids, reading order
    cover_id: Optional[str] = None

    @property
    def cover_item(self) -> Optional[ManifestItem]:
        if self.cover_id is None:
            return None
        return self.manifest.get(self.cover_id)


@dataclass(frozen=True)
class CoverReference:
    """A cover image candidate declared by <meta name="cover">."""

    manifest_id: str
    resolved_path: str
    media_type: str = ""


@dataclass
class ParsedChapter:
    """A chapter ready to be persisted."""

    number: int
    title: str
    content: str  # HTML fragment
    images: list[str] = field(default_factory=list)  # Public URLs, in order
    source_path: str = ""  # Archive path of the source document


@dataclass
class ParsedEpub:
    """Result of a complete extraction pass."""

    metadata: PackageMetadata
    chapters: list[ParsedChapter] = field(default_factory=list)
    cover_url: Optional[str] = None
    # True when chapters came from the flat-file scan instead of the spine.
    # Ordering is then lexicographic by path and only best-effort.
    used_fallback: bool = False
