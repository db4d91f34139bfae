"""Attachment upload collaborator.

``LocalBucketUploader`` stores files under ``<root>/<bucket>/<path>`` and
returns a public URL built from the configured base URL.
"""

from __future__ import annotations

from typing import Protocol
import logging
import re

import anyio

logger = logging.getLogger(__name__)

GOVERNMENT_ID_BUCKET = "government-ids"
SELFIE_BUCKET = "id-selfie"

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class UploadError(Exception):
    pass


class Uploader(Protocol):
    async def upload(self, content: bytes, filename: str, bucket: str) -> str: ...


def safe_name(name: str) -> str:
    """Flatten a client-supplied name into a single object-name segment.

    Path separators are replaced like any other unsafe character, so no part
    of the name is dropped and the result never leaves the bucket directory.
    """
    cleaned = _UNSAFE.sub("_", name).strip("._")
    return cleaned or "upload"


class LocalBucketUploader:
    def __init__(self, root_dir: str, base_url: str) -> None:
        self.root_dir = root_dir
        self.base_url = base_url.rstrip("/")

    async def upload(self, content: bytes, filename: str, bucket: str) -> str:
        if not content:
            raise UploadError(f"empty upload for {filename}")
        key = f"public/{safe_name(filename)}"
        target = anyio.Path(self.root_dir) / bucket / key
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            await target.write_bytes(content)
        except OSError as exc:
            logger.error("upload_write_failed bucket=%s key=%s", bucket, key, exc_info=True)
            raise UploadError(str(exc)) from exc
        logger.info("upload_stored bucket=%s key=%s bytes=%s", bucket, key, len(content))
        return f"{self.base_url}/{bucket}/{key}"


__all__ = [
    "GOVERNMENT_ID_BUCKET",
    "SELFIE_BUCKET",
    "UploadError",
    "Uploader",
    "LocalBucketUploader",
    "safe_name",
]
