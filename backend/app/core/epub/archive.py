"""In-memory access to the entries of an EPUB (ZIP) container."""

import io
import logging
import lzma
import struct
import zipfile
import zlib
from typing import Iterator, Optional
from urllib.parse import unquote

from .errors import EntryDecodeError, InvalidArchive

logger = logging.getLogger(__name__)


class EpubArchive:
    """Decompressed name -> bytes view of an EPUB.

    The archive is read completely on construction so that a corrupt
    container fails fast, before any chapter is processed.
    """

    def __init__(self, entries: dict[str, bytes]):
        self._entries = entries

    @classmethod
    def from_bytes(cls, data: bytes) -> "EpubArchive":
        """Decompress a ZIP byte buffer.

        Raises:
            InvalidArchive: If the buffer is not a readable ZIP stream
        """
        if not data:
            raise InvalidArchive("Empty upload")

        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                entries = {
                    info.filename: zf.read(info)
                    for info in zf.infolist()
                    if not info.is_dir()
                }
        except (
            zipfile.BadZipFile,
            zlib.error,
            lzma.LZMAError,
            struct.error,
            EOFError,
            NotImplementedError,
            RuntimeError,  # encrypted entries
            ValueError,  # negative seeks from damaged offsets
            OverflowError,
            OSError,
        ) as e:
            raise InvalidArchive("Could not unzip EPUB", {"reason": str(e)}) from e

        logger.debug("Unzipped EPUB with %d entries", len(entries))
        return cls(entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> Iterator[str]:
        """Entry names in archive order."""
        return iter(self._entries)

    def lookup(self, path: str) -> Optional[str]:
        """Return the entry name for ``path``, trying its percent-decoded form.

        Hrefs inside OPF and XHTML files are URL-encoded while ZIP entry
        names are not, so ``chapter%201.xhtml`` must find ``chapter 1.xhtml``.
        """
        if path in self._entries:
            return path
        decoded = unquote(path)
        if decoded in self._entries:
            return decoded
        return None

    def entry(self, path: str) -> Optional[bytes]:
        """Raw bytes of an entry, or None if it does not exist."""
        name = self.lookup(path)
        if name is None:
            return None
        return self._entries[name]

    def entry_text(self, path: str) -> Optional[str]:
        """Entry decoded as UTF-8, or None if it does not exist.

        Raises:
            EntryDecodeError: If the entry exists but is not valid UTF-8
        """
        data = self.entry(path)
        if data is None:
            return None
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise EntryDecodeError(path, str(e)) from e
