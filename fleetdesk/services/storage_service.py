# fleetdesk/services/storage_service.py
"""
Uploads to the hosted object storage.

Photos:    {STORAGE_BUCKET}/maintenance-photos/<random>-<ms>.<ext>   (JPEG/PNG/WebP, ≤ 5 MB)
Documents: {DOCUMENTS_BUCKET}/booking-documents/<booking>/<ms>.<ext> (PDF or image, ≤ 10 MB)

Type and size are checked before anything is sent.
Returns the public URL of the stored object.
"""

import secrets
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from fleetdesk.config import settings
from fleetdesk.exceptions import BackendError, ValidationError
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

PHOTO_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
DOCUMENT_CONTENT_TYPES = PHOTO_CONTENT_TYPES | {"application/pdf"}


@dataclass
class StoredObject:
    bucket: str
    path: str
    public_url: str
    size: int


def public_url(bucket: str, path: str) -> str:
    return f"{settings.storage_url}/object/public/{bucket}/{path}"


def validate_photo(content_type: Optional[str], size: int):
    if size > settings.MAX_PHOTO_BYTES:
        raise ValidationError(f"File size must be {settings.MAX_PHOTO_BYTES // (1024 * 1024)}MB or less")
    if (content_type or "").lower() not in PHOTO_CONTENT_TYPES:
        raise ValidationError("Only JPEG, PNG, and WebP images are allowed")


def validate_document(content_type: Optional[str], size: int):
    if size == 0:
        raise ValidationError("File is empty")
    if size > settings.MAX_DOCUMENT_BYTES:
        raise ValidationError(f"File size must be {settings.MAX_DOCUMENT_BYTES // (1024 * 1024)}MB or less")
    if (content_type or "").lower() not in DOCUMENT_CONTENT_TYPES:
        raise ValidationError("Only PDF, JPEG, PNG, and WebP files are allowed")


EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


def _extension(content_type: str) -> str:
    """From the validated content type; the client's file name is never trusted."""
    return EXTENSIONS[(content_type or "").lower()]


async def _put_object(bucket: str, path: str, content: bytes, content_type: str,
                      access_token: Optional[str] = None) -> StoredObject:
    url = f"{settings.storage_url}/object/{bucket}/{path}"
    headers = {
        "apikey": settings.SUPABASE_ANON_KEY,
        "Authorization": f"Bearer {access_token or settings.SUPABASE_ANON_KEY}",
        "Content-Type": content_type,
        "Cache-Control": "3600",
        "x-upsert": "false",
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(url, content=content, headers=headers)
    except httpx.TimeoutException as e:
        logger.error(f"[STORAGE] Upload to {bucket}/{path} timed out: {e}")
        raise BackendError("File upload timed out", status_code=504)
    except httpx.HTTPError as e:
        logger.error(f"[STORAGE] Upload to {bucket}/{path} failed: {e}")
        raise BackendError("Failed to upload file")

    if response.status_code >= 400:
        logger.error(f"[STORAGE] {bucket}/{path} returned HTTP {response.status_code}: {response.text}")
        raise BackendError(f"Failed to upload file (HTTP {response.status_code})")

    logger.info(f"[STORAGE] Stored {bucket}/{path} ({len(content)} bytes)")
    return StoredObject(bucket=bucket, path=path, public_url=public_url(bucket, path), size=len(content))


async def upload_photo(content: bytes, filename: str, content_type: str,
                       access_token: Optional[str] = None) -> StoredObject:
    validate_photo(content_type, len(content))
    name = f"{secrets.token_hex(6)}-{int(time.time() * 1000)}.{_extension(content_type)}"
    path = f"{settings.PHOTO_PATH_PREFIX}/{name}"
    logger.debug(f"[STORAGE] Photo {filename!r} → {path}")
    return await _put_object(settings.STORAGE_BUCKET, path, content, content_type, access_token)


async def upload_document(booking_id: str, content: bytes, filename: str, content_type: str,
                          access_token: Optional[str] = None) -> StoredObject:
    validate_document(content_type, len(content))
    name = f"{int(time.time() * 1000)}.{_extension(content_type)}"
    path = f"{settings.DOCUMENT_PATH_PREFIX}/{booking_id}/{name}"
    logger.debug(f"[STORAGE] Document {filename!r} → {path}")
    return await _put_object(settings.DOCUMENTS_BUCKET, path, content, content_type, access_token)


async def remove_object(bucket: str, path: str, access_token: Optional[str] = None) -> bool:
    """Delete a stored object. Returns False (and logs) instead of raising."""
    url = f"{settings.storage_url}/object/{bucket}"
    headers = {
        "apikey": settings.SUPABASE_ANON_KEY,
        "Authorization": f"Bearer {access_token or settings.SUPABASE_ANON_KEY}",
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.request("DELETE", url, json={"prefixes": [path]}, headers=headers)
    except httpx.HTTPError as e:
        logger.warning(f"[STORAGE] Could not remove {bucket}/{path}: {e}")
        return False
    if response.status_code >= 400:
        logger.warning(f"[STORAGE] Remove {bucket}/{path} returned HTTP {response.status_code}")
        return False
    return True
