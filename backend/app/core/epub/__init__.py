"""EPUB ingestion package."""

from .archive import EpubArchive
from .assets import (
    AssetRehoster,
    AssetSink,
    DataUriAssetSink,
    NullAssetSink,
    UploadResult,
    try_upload,
)
from .container import resolve_package_location
from .errors import (
    EpubError,
    InvalidArchive,
    EntryDecodeError,
    MissingPackageDocument,
    StorageError,
    ImageUploadFailure,
)
from .extractor import ChapterExtractor, extract_epub, parse_epub_file
from .models import (
    ManifestItem,
    PackageDocument,
    PackageLocation,
    PackageMetadata,
    ParsedChapter,
    ParsedEpub,
)
from .package import parse_package_document

__all__ = [
    "EpubArchive",
    "AssetRehoster",
    "AssetSink",
    "DataUriAssetSink",
    "NullAssetSink",
    "UploadResult",
    "try_upload",
    "resolve_package_location",
    "EpubError",
    "InvalidArchive",
    "EntryDecodeError",
    "MissingPackageDocument",
    "StorageError",
    "ImageUploadFailure",
    "ChapterExtractor",
    "extract_epub",
    "parse_epub_file",
    "ManifestItem",
    "PackageDocument",
    "PackageLocation",
    "PackageMetadata",
    "ParsedChapter",
    "ParsedEpub",
    "parse_package_document",
]
