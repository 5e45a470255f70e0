"""
Public object storage.

Objects live on disk under `STORAGE_ROOT/<bucket>/<key>` and the API serves that
directory at `/storage`, so every upload gets a durable public URL. Keys are
new per upload (timestamp + random suffix); only callers that ask for `upsert`
may overwrite a key.
"""

import asyncio
import logging
import os
import random
import string
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlparse

from listingreel import config
from listingreel.core.errors import StorageError

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class UploadFile:
    data: bytes
    filename: str
    content_type: Optional[str] = None


def object_key(folder: str, filename: str) -> str:
    """`folder/<epoch ms>-<6 random chars>.<ext>`, extension taken from the name."""
    timestamp = int(time.time() * 1000)
    random_id = "".join(random.choices(_SUFFIX_ALPHABET, k=6))
    _, dot, extension = filename.rpartition(".")
    if not dot or not extension:
        extension = "jpg"
    return f"{folder.strip('/')}/{timestamp}-{random_id}.{extension.lower()}"


class ObjectStorage:
    def __init__(
        self,
        root: str = config.STORAGE_ROOT,
        public_base_url: str = config.PUBLIC_BASE_URL,
        bucket: str = config.STORAGE_BUCKET,
    ):
        self.root = root
        self.public_base_url = public_base_url.rstrip("/")
        self.bucket = bucket

    def public_url(self, key: str, bucket: Optional[str] = None) -> str:
        return f"{self.public_base_url}/storage/{bucket or self.bucket}/{key}"

    def _path(self, key: str, bucket: Optional[str] = None) -> str:
        bucket_root = os.path.abspath(os.path.join(self.root, bucket or self.bucket))
        path = os.path.abspath(os.path.join(bucket_root, key))
        if not path.startswith(bucket_root + os.sep):
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def _write(self, path: str, data: bytes, upsert: bool):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if upsert else "xb"
        try:
            with open(path, mode) as f:
                f.write(data)
        except FileExistsError as e:
            raise StorageError(f"Storage object already exists: {path}") from e
        except OSError as e:
            raise StorageError(f"Storage upload failed: {e}") from e

    async def put(
        self, key: str, data: bytes, upsert: bool = False, bucket: Optional[str] = None
    ) -> str:
        """Write `data` at a fixed key and return its public URL."""
        path = self._path(key, bucket)
        await asyncio.to_thread(self._write, path, data, upsert)
        logger.info(f"Stored {len(data)} bytes at {bucket or self.bucket}/{key}")
        return self.public_url(key, bucket)

    async def upload(self, file: UploadFile, folder: str = "uploads") -> str:
        """Upload under a fresh timestamped key."""
        return await self.put(object_key(folder, file.filename), file.data)

    async def upload_many(
        self,
        files: Sequence[UploadFile],
        folder: str = "uploads",
        batch_size: int = 3,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[str]:
        """
        Upload in concurrent batches of `batch_size`.

        `on_progress(completed, total)` runs after each batch. The first failure
        aborts the whole upload.
        """
        urls: List[str] = []
        completed = 0
        for start in range(0, len(files), batch_size):
            batch = files[start:start + batch_size]
            urls.extend(await asyncio.gather(*(self.upload(f, folder) for f in batch)))
            completed += len(batch)
            if on_progress:
                on_progress(completed, len(files))
        return urls

    def resolve_local(self, url: str) -> Optional[str]:
        """Disk path behind one of our public URLs, or None for foreign URLs."""
        prefix = f"{self.public_base_url}/storage/"
        if not url.startswith(prefix):
            return None
        relative = urlparse(url).path.split("/storage/", 1)[1]
        bucket, _, key = relative.partition("/")
        if not key:
            return None
        try:
            path = self._path(key, bucket)
        except StorageError:
            return None
        return path if os.path.exists(path) else None

    async def read(self, url: str) -> Optional[bytes]:
        path = self.resolve_local(url)
        if path is None:
            return None
        return await asyncio.to_thread(_read_file, path)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()
