"""Media upload coordination for avatars and cover images."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile
from minio import Minio

from .storage import delete_object, ensure_bucket, upload_file

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatars"
COVER_IMAGE_FOLDER = "covers"
UPLOAD_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an incoming file exceeds the configured byte limit."""


@dataclass(frozen=True, slots=True)
class UploadedMedia:
    url: str
    external_id: str


def _discard_local_copy(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(
            "Failed to delete local temporary upload",
            extra={"path": str(path)},
            exc_info=exc,
        )


async def stage_upload_file(upload: UploadFile, directory: Path, max_bytes: int) -> Path:
    """Stream an incoming multipart file to a temporary local path."""
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower()
    target = directory / f"{uuid4().hex}{suffix}"
    written = 0
    try:
        with target.open("wb") as file_handle:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(f"File exceeds {max_bytes} bytes")
                file_handle.write(chunk)
    except BaseException:
        _discard_local_copy(target)
        raise
    return target


class MediaUploadCoordinator:
    """Push staged local files to the object store and remove them again.

    The local temporary copy is deleted on every exit path of `upload`, and
    neither `upload` nor `remove` propagate storage errors: a failed upload is
    reported as None, a failed delete as False.
    """

    def __init__(self, client: Minio | None = None, *, ensure_bucket_exists: bool = True) -> None:
        self._client = client
        self._ensure_bucket_exists = ensure_bucket_exists
        self._bucket_ready = False

    async def _prepare_bucket(self) -> None:
        if self._bucket_ready or not self._ensure_bucket_exists:
            return
        await asyncio.to_thread(ensure_bucket, self._client)
        self._bucket_ready = True

    async def upload(self, local_path: str | Path | None, *, folder: str) -> UploadedMedia | None:
        if not local_path:
            return None

        path = Path(local_path)
        object_key = f"{folder}/{uuid4().hex}{path.suffix.lower()}"
        try:
            await self._prepare_bucket()
            url = await asyncio.to_thread(upload_file, path, object_key, client=self._client)
        except Exception as exc:
            logger.warning(
                "Failed to upload media to object storage",
                extra={"path": str(path), "object_key": object_key},
                exc_info=exc,
            )
            return None
        finally:
            _discard_local_copy(path)

        logger.info("Uploaded media", extra={"object_key": object_key})
        return UploadedMedia(url=url, external_id=object_key)

    async def remove(self, external_id: str) -> bool:
        try:
            await asyncio.to_thread(delete_object, external_id, self._client)
        except Exception as exc:
            logger.warning(
                "Failed to delete media from object storage",
                extra={"object_key": external_id},
                exc_info=exc,
            )
            return False
        return True

    def discard(self, *paths: str | Path | None) -> None:
        for path in paths:
            if path:
                _discard_local_copy(Path(path))
