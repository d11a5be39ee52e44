"""
Uploads to the hosted storage buckets.

Files are uploaded with ``upsert`` off, so an existing object at the same
path is an error rather than being overwritten. Object paths are always
prefixed with the owner's id or a folder name and stamped with the upload
time in milliseconds.
"""

import logging
import re
import time

from django.conf import settings
from django.core.exceptions import ValidationError

from .backend import backend_call

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")
CACHE_CONTROL_SECONDS = "3600"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def timestamp_ms():
    return int(time.time() * 1000)


def file_extension(name):
    _, dot, ext = (name or "").rpartition(".")
    return ext.lower() if dot else ""


def safe_filename(name):
    return _UNSAFE_CHARS.sub("_", name)


def validate_image(upload):
    if upload is None or not getattr(upload, "size", 0):
        raise ValidationError("Invalid file provided", code="empty")
    if file_extension(upload.name) not in IMAGE_EXTENSIONS:
        raise ValidationError(
            "Invalid file type. Only JPG, PNG, GIF, and WebP are allowed.",
            code="file_type",
        )


def _read(upload):
    if hasattr(upload, "chunks"):
        return b"".join(upload.chunks())
    return upload.read()


@backend_call
def upload_file(client, bucket, path, upload):
    """Upload ``upload`` to ``bucket``/``path`` and return its public URL."""
    options = {
        "content-type": getattr(upload, "content_type", None) or "application/octet-stream",
        "cache-control": CACHE_CONTROL_SECONDS,
        "upsert": "false",
    }
    client.storage.from_(bucket).upload(path, _read(upload), options)
    logger.info("Uploaded %s/%s", bucket, path)
    return client.storage.from_(bucket).get_public_url(path)


@backend_call
def remove_file(client, bucket, path):
    client.storage.from_(bucket).remove([path])
    logger.info("Removed %s/%s", bucket, path)


def upload_social_image(client, upload, user_id):
    validate_image(upload)
    path = f"{user_id}/{timestamp_ms()}_{safe_filename(upload.name)}"
    return upload_file(client, settings.SOCIAL_BUCKET, path, upload)
