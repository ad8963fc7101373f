"""
Firebase initialization and helpers
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any
import base64
import os

import firebase_admin
from firebase_admin import credentials, storage

from rsvp_app.core.config import settings


@lru_cache(maxsize=1)
def get_firebase_app():
    """Initialize and return the cached Firebase app if Firebase is enabled.

    Expects credentials via one of: FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64, FIREBASE_CREDENTIALS_FILE.
    """
    if not settings.USE_FIREBASE:
        return None

    if not firebase_admin._apps:
        info: dict[str, Any] | None = None
        if settings.FIREBASE_CREDENTIALS_JSON:
            info = json.loads(settings.FIREBASE_CREDENTIALS_JSON)
        elif settings.FIREBASE_CREDENTIALS_B64:
            decoded = base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8")
            info = json.loads(decoded)
        elif settings.FIREBASE_CREDENTIALS_FILE and os.path.exists(settings.FIREBASE_CREDENTIALS_FILE):
            with open(settings.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
                info = json.load(f)

        if not info:
            raise RuntimeError("Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64")
        if not settings.FIREBASE_STORAGE_BUCKET:
            raise RuntimeError("FIREBASE_STORAGE_BUCKET must be set when USE_FIREBASE is enabled")

        cred = credentials.Certificate(info)
        firebase_admin.initialize_app(cred, {"storageBucket": settings.FIREBASE_STORAGE_BUCKET})

    return firebase_admin.get_app()


def get_storage_bucket():
    """Invitation media bucket, or None when Firebase is disabled"""
    if get_firebase_app() is None:
        return None
    return storage.bucket()
