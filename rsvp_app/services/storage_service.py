"""
Invitation media (images and PDFs) per event and language.

Objects live at ``<event_id>/<language>-<image|pdf>.<ext>``, in Firebase
Storage when enabled and under ``UPLOAD_DIR/invitations`` otherwise.
"""

import logging
import os
import re
from typing import Optional

from rsvp_app.core.config import settings
from rsvp_app.core.errors import ValidationError
from rsvp_app.services.firebase_client import get_storage_bucket

logger = logging.getLogger(__name__)

MEDIA_KINDS = {
    "image": {"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png", "webp": "image/webp"},
    "pdf": {"pdf": "application/pdf"},
}
LOCAL_PREFIX = "invitations"
MEDIA_URL_PATH = "/media"
LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Za-z]{2})?$")


class StorageService:
    """Service for invitation media files"""

    @staticmethod
    def object_path(event_id: str, language: str, kind: str, ext: str) -> str:
        return f"{event_id}/{language}-{kind}.{ext}"

    @staticmethod
    def _local_root() -> str:
        return os.path.join(settings.UPLOAD_DIR, LOCAL_PREFIX)

    @staticmethod
    def upload(event_id: str, language: str, kind: str, filename: str, content: bytes) -> str:
        """Store a file, replacing any previous file of the same kind and language"""
        if kind not in MEDIA_KINDS:
            raise ValidationError(f"Unknown media kind '{kind}'")
        if not LANGUAGE_PATTERN.match(language or ""):
            raise ValidationError(f"Invalid language code '{language}'")
        ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
        if ext not in MEDIA_KINDS[kind]:
            allowed = ", ".join(sorted(MEDIA_KINDS[kind]))
            raise ValidationError(f"Invalid file type for {kind}. Allowed: {allowed}")
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError("Uploaded file is too large")

        StorageService.delete(event_id, language, kind)
        path = StorageService.object_path(event_id, language, kind, ext)

        bucket = get_storage_bucket()
        if bucket is not None:
            blob = bucket.blob(path)
            blob.upload_from_string(content, content_type=MEDIA_KINDS[kind][ext])
            blob.make_public()
        else:
            local_path = os.path.join(StorageService._local_root(), path)
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            with open(local_path, "wb") as f:
                f.write(content)

        logger.info(f"Stored invitation {kind} for event {event_id} ({language}) at {path}")
        return path

    @staticmethod
    def find(event_id: str, language: str, kind: str) -> Optional[str]:
        """Object path of the stored file, if any"""
        if not LANGUAGE_PATTERN.match(language or ""):
            return None
        prefix = f"{event_id}/{language}-{kind}."
        bucket = get_storage_bucket()
        if bucket is not None:
            for blob in bucket.list_blobs(prefix=prefix, max_results=1):
                return blob.name
            return None

        folder = os.path.join(StorageService._local_root(), event_id)
        if not os.path.isdir(folder):
            return None
        for name in sorted(os.listdir(folder)):
            if name.startswith(f"{language}-{kind}."):
                return f"{event_id}/{name}"
        return None

    @staticmethod
    def delete(event_id: str, language: str, kind: str) -> bool:
        path = StorageService.find(event_id, language, kind)
        if not path:
            return False
        bucket = get_storage_bucket()
        if bucket is not None:
            bucket.blob(path).delete()
        else:
            os.remove(os.path.join(StorageService._local_root(), path))
        return True

    @staticmethod
    def public_url(path: str) -> str:
        bucket = get_storage_bucket()
        if bucket is not None:
            return bucket.blob(path).public_url
        return f"{settings.BASE_URL.rstrip('/')}{MEDIA_URL_PATH}/{path}"

    @staticmethod
    def invitation_image_url(event_id: str, language: str) -> str:
        """Image for the language, else the default language's, else the site default"""
        for candidate in dict.fromkeys([language, settings.DEFAULT_LANGUAGE]):
            path = StorageService.find(event_id, candidate, "image")
            if path:
                return StorageService.public_url(path)
        return f"{settings.BASE_URL.rstrip('/')}/static/{settings.DEFAULT_INVITATION_IMAGE}"
