"""Staging of multipart uploads to the local temp directory."""

from __future__ import annotations

from pathlib import Path

from fastapi import UploadFile

from core import AccountError, ErrorKind, settings
from services import UploadTooLargeError, stage_upload_file


async def stage_optional_upload(upload: UploadFile | None) -> Path | None:
    if upload is None or not upload.filename:
        return None
    try:
        return await stage_upload_file(
            upload,
            Path(settings.upload_temp_dir),
            settings.upload_max_bytes,
        )
    except UploadTooLargeError as exc:
        raise AccountError(ErrorKind.UPLOAD_TOO_LARGE, str(exc)) from exc
    finally:
        await upload.close()
