"""MinIO client utilities."""

from __future__ import annotations

import mimetypes
from functools import lru_cache
from pathlib import Path

from minio import Minio
from minio.error import S3Error

from core import settings

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached MinIO client configured from settings."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio | None = None) -> None:
    """Ensure the configured bucket exists."""
    client = client or get_minio_client()
    bucket_name = settings.minio_bucket

    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - handle race conditions
        allowed_codes = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
        if exc.code not in allowed_codes:
            raise


def build_object_url(object_key: str) -> str:
    """Return the public URL under which an uploaded object is served."""
    base_url = settings.media_public_base_url.rstrip("/")
    return f"{base_url}/{settings.minio_bucket}/{object_key.lstrip('/')}"


def upload_file(
    local_path: Path,
    object_key: str,
    *,
    client: Minio | None = None,
) -> str:
    """Upload a local file to the configured bucket and return its URL."""
    normalized_object_key = object_key.strip()
    if not normalized_object_key:
        raise ValueError("object_key must not be empty")

    client = client or get_minio_client()
    content_type = mimetypes.guess_type(local_path.name)[0] or DEFAULT_CONTENT_TYPE
    client.fput_object(
        settings.minio_bucket,
        normalized_object_key,
        str(local_path),
        content_type=content_type,
    )  # pragma: no cover - network call
    return build_object_url(normalized_object_key)


def delete_object(object_key: str, client: Minio | None = None) -> None:
    """Delete an object from the configured bucket when it exists."""
    client = client or get_minio_client()
    try:
        client.remove_object(settings.minio_bucket, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        if exc.code not in MISSING_OBJECT_CODES:
            raise
