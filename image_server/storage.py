# image_server/storage.py
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Tuple

from image_server.core.config import settings
from image_server.core.errors import BlobStoreError

logger = logging.getLogger(__name__)

BLOB_PREFIX = "upload-"


def derive_extension(filename: str) -> str:
    """Return the suffix of the last path element, dot included ("cat.jpg" -> ".jpg")."""
    for i in range(len(filename) - 1, -1, -1):
        ch = filename[i]
        if ch in "/\\":
            break
        if ch == ".":
            return filename[i:]
    return ""


class BlobStore:
    """
    Local-disk store for uploaded bytes.

    Every create() gets its own file under ``root``; mkstemp opens with
    O_EXCL so concurrent uploads never share a name.
    """

    def __init__(self, root):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def create(self, extension: str = "") -> Tuple[BinaryIO, str]:
        try:
            fd, path = tempfile.mkstemp(prefix=BLOB_PREFIX, suffix=extension, dir=self.root)
        except OSError as e:
            raise BlobStoreError(f"Could not create upload destination: {e}") from e
        return os.fdopen(fd, "wb"), path

    def write(self, handle: BinaryIO, data: bytes) -> None:
        try:
            handle.write(data)
        except OSError as e:
            raise BlobStoreError(f"Could not write upload: {e}") from e

    def close(self, handle: BinaryIO) -> None:
        try:
            handle.close()
        except OSError as e:
            raise BlobStoreError(f"Could not write upload: {e}") from e

    def remove(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove blob %s", path, exc_info=True)


def get_blob_store() -> BlobStore:
    return BlobStore(settings.UPLOAD_DIR)
