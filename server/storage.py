"""Blob storage on local disk, published under the server's /files URL."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator
from urllib.parse import unquote, urlparse

from common.exceptions import UpstreamFailureError
from common.logging_config import get_logger

logger = get_logger(__name__)

STREAM_PIECE_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredObject:
    url: str
    size: int


class LocalBlobStorage:
    """
    Stores uploaded bytes as files and hands out public URLs for them.

    The metadata layer only keeps the URL; resolving a URL back to a file is
    limited to names directly inside the storage directory.
    """

    def __init__(self, root: Path, public_url: str):
        """
        Args:
            root: Directory the blobs are written to
            public_url: Base URL of the server (blobs are served at <public_url>/files/<name>)
        """
        self.root = Path(root)
        self.public_url = public_url.rstrip('/')

    def ensure_directory(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def url_for(self, filename: str) -> str:
        return f"{self.public_url}/files/{filename}"

    def path_for(self, filename: str) -> Path:
        """
        Get the on-disk path of a stored blob.

        Raises:
            UpstreamFailureError: If the name would escape the storage directory
        """
        candidate = (self.root / filename).resolve()
        if candidate.parent != self.root.resolve() or not filename:
            raise UpstreamFailureError(f"Invalid blob name: {filename!r}")
        return candidate

    def _filename_from_url(self, url: str) -> str:
        parsed = urlparse(url)
        path = unquote(parsed.path)
        if not path.startswith(urlparse(self.public_url).path.rstrip('/') + "/files/"):
            raise UpstreamFailureError(f"URL is not served by this storage: {url}")
        return path.rsplit('/', 1)[-1]

    def upload(self, filename: str, data: bytes) -> StoredObject:
        """
        Write a blob.

        Args:
            filename: Storage-side name (file ID plus extension)
            data: File contents

        Returns:
            StoredObject with the public URL and byte count

        Raises:
            UpstreamFailureError: If the write fails
        """
        try:
            self.ensure_directory()
            path = self.path_for(filename)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store blob {filename}: {e}")
            raise UpstreamFailureError(f"Upload failed: {e}")

        logger.info(f"Stored blob {filename} ({len(data)} bytes)")
        return StoredObject(url=self.url_for(filename), size=len(data))

    def open_stream(self, url: str) -> Iterator[bytes]:
        """
        Open a stored blob for streaming.

        The blob's existence is checked before the iterator is returned, so
        a missing file fails before any response has started.

        Args:
            url: Public URL returned by upload()

        Returns:
            Iterator over the blob's bytes

        Raises:
            UpstreamFailureError: If the blob does not exist or cannot be read
        """
        path = self.path_for(self._filename_from_url(url))
        if not path.is_file():
            raise UpstreamFailureError(f"Failed to fetch file: {url}")

        try:
            handle = open(path, 'rb')
        except OSError as e:
            raise UpstreamFailureError(f"Failed to fetch file: {e}")

        def stream() -> Iterator[bytes]:
            with handle:
                while True:
                    piece = handle.read(STREAM_PIECE_SIZE)
                    if not piece:
                        break
                    yield piece

        return stream()

    def delete(self, url: str) -> bool:
        """
        Remove a stored blob.

        Returns:
            True if the file was deleted, False if it didn't exist
        """
        path = self.path_for(self._filename_from_url(url))
        if path.exists():
            path.unlink()
            logger.info(f"Deleted blob {path.name}")
            return True
        return False
