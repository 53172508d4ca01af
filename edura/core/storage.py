"""Blob storage for uploaded files."""

import uuid
from pathlib import Path
from typing import Protocol

from edura.core.config import settings


class BlobStorage(Protocol):
    """Minimal put/delete contract of a public blob store."""

    def put(self, filename: str, content: bytes, content_type: str | None = None) -> str: ...

    def delete(self, url: str) -> None: ...


class LocalBlobStorage:
    """
    Stores blobs on the local filesystem.

    Files are saved under ``upload_dir`` with a unique prefix and addressed
    by the URL ``/<upload_dir>/<key>``.
    """

    def __init__(self, upload_dir: str) -> None:
        self.upload_dir = upload_dir

    def _url_for(self, key: str) -> str:
        return f"/{self.upload_dir.strip('/')}/{key}"

    def _path_for(self, url: str) -> Path:
        prefix = f"/{self.upload_dir.strip('/')}/"
        if not url.startswith(prefix):
            raise ValueError(f"URL is not managed by this storage: {url}")
        key = url[len(prefix):]
        if "/" in key or key in ("", ".", ".."):
            raise ValueError(f"Invalid blob key: {key}")
        return Path(self.upload_dir) / key

    def put(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        upload_dir = Path(self.upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)

        safe_name = Path(filename or "file").name
        key = f"{uuid.uuid4().hex}-{safe_name}"
        with open(upload_dir / key, "wb") as f:
            f.write(content)

        return self._url_for(key)

    def delete(self, url: str) -> None:
        # Raises FileNotFoundError when the blob is already gone
        self._path_for(url).unlink()


def get_storage() -> BlobStorage:
    """Dependency for getting the blob storage."""
    return LocalBlobStorage(settings.UPLOAD_DIR)
