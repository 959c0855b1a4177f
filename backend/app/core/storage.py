"""Object storage for re-hosted covers and chapter images.

Objects live on the local filesystem under a bucket directory and are served
by the application's static mount:

storage/{bucket}/
├── covers/{novel_id}_cover.{ext}
└── images/{novel_id}/{timestamp}_{token}.{ext}
"""

import asyncio
import logging
from pathlib import Path, PurePosixPath

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import settings
from app.core.epub.assets import AssetSink
from app.core.epub.errors import ImageUploadFailure, StorageError

logger = logging.getLogger(__name__)

# URL prefix the storage directory is mounted under
STORAGE_MOUNT = "/storage"


def validate_object_name(name: str) -> str:
    """Reject names that would escape the bucket directory.

    Raises:
        StorageError: If the name is empty, absolute or contains ``..``
    """
    path = PurePosixPath(name)
    if not name or path.is_absolute() or ".." in path.parts or "\\" in name:
        raise StorageError("Invalid object name", {"name": name})
    return str(path)


def _write_file(dest_path: Path, data: bytes) -> None:
    """Write object bytes (blocking, run in executor)."""
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = dest_path.with_name(dest_path.name + ".part")
    with open(tmp_path, "wb") as buffer:
        buffer.write(data)
    tmp_path.replace(dest_path)


class ObjectStorage:
    """Filesystem-backed object store returning public URLs."""

    def __init__(
        self,
        base_dir: Path,
        bucket: str,
        public_base_url: str,
        max_retries: int = 3,
    ):
        self.base_dir = Path(base_dir)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.max_retries = max(1, max_retries)

    @property
    def bucket_dir(self) -> Path:
        return self.base_dir / self.bucket

    def get_path(self, name: str) -> Path:
        """Filesystem path of an object."""
        return self.bucket_dir / validate_object_name(name)

    def get_public_url(self, name: str) -> str:
        """Public URL of an object."""
        return f"{self.public_base_url}{STORAGE_MOUNT}/{self.bucket}/{validate_object_name(name)}"

    def exists(self, name: str) -> bool:
        return self.get_path(name).is_file()

    def read(self, name: str) -> bytes:
        return self.get_path(name).read_bytes()

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``name`` (overwriting) and return its URL.

        Raises:
            StorageError: If the name is invalid or the write keeps failing
        """
        dest_path = self.get_path(name)

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        async def _write() -> None:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, _write_file, dest_path, data)

        try:
            await _write()
        except OSError as e:
            raise StorageError("Failed to store object", {"name": name, "reason": str(e)}) from e

        logger.debug("Stored %s (%s, %d bytes)", name, content_type, len(data))
        return self.get_public_url(name)


class ObjectStoreAssetSink(AssetSink):
    """Asset sink uploading into an ``ObjectStorage``."""

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        try:
            return await self.storage.put(name, data, content_type)
        except StorageError as e:
            raise ImageUploadFailure(name, str(e)) from e


def get_object_storage() -> ObjectStorage:
    """Object store configured from application settings."""
    return ObjectStorage(
        base_dir=settings.storage_dir,
        bucket=settings.storage_bucket,
        public_base_url=settings.public_base_url,
        max_retries=settings.storage_max_retries,
    )
