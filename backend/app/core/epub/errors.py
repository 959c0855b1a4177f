"""Exceptions raised by the EPUB ingestion pipeline.

Only ``InvalidArchive`` aborts an ingestion. Every other error here is
caught inside the pipeline and degrades to a best-effort result.
"""

from typing import Optional


class EpubError(Exception):
    """Base exception for EPUB ingestion errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class InvalidArchive(EpubError):
    """The uploaded blob is not a readable ZIP container."""


class EntryDecodeError(EpubError):
    """An archive entry exists but is not valid UTF-8."""

    def __init__(self, path: str, reason: str = ""):
        details = {"path": path}
        if reason:
            details["reason"] = reason
        super().__init__("Archive entry is not valid UTF-8", details)
        self.path = path


class MissingPackageDocument(EpubError):
    """The package document (OPF) could not be found or read."""

    def __init__(self, path: str):
        super().__init__("Package document not found", {"path": path})
        self.path = path


class StorageError(EpubError):
    """Writing an object to the object store failed."""


class ImageUploadFailure(StorageError):
    """A single image or cover could not be re-hosted."""

    def __init__(self, path: str, reason: str = ""):
        details = {"path": path}
        if reason:
            details["reason"] = reason
        super().__init__("Image upload failed", details)
        self.path = path
