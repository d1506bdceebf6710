"""Business logic services."""

from .media import (
    AVATAR_FOLDER,
    COVER_IMAGE_FOLDER,
    MediaUploadCoordinator,
    UploadedMedia,
    UploadTooLargeError,
    stage_upload_file,
)
from .profile import (
    ProfileMediaKind,
    change_password,
    replace_profile_media,
    update_account_details,
)
from .registration import RegistrationForm, RegistrationWorkflow
from .storage import (
    build_object_url,
    delete_object,
    ensure_bucket,
    get_minio_client,
    upload_file,
)

__all__ = [
    "AVATAR_FOLDER",
    "COVER_IMAGE_FOLDER",
    "MediaUploadCoordinator",
    "UploadedMedia",
    "UploadTooLargeError",
    "stage_upload_file",
    "ProfileMediaKind",
    "change_password",
    "replace_profile_media",
    "update_account_details",
    "RegistrationForm",
    "RegistrationWorkflow",
    "build_object_url",
    "delete_object",
    "ensure_bucket",
    "get_minio_client",
    "upload_file",
]
