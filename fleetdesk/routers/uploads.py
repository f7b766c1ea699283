# fleetdesk/routers/uploads.py
"""
Photo upload for snags, resolutions and maintenance logs.
The returned URL goes into the photo_urls of the later submission.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from fleetdesk.deps import get_current_session
from fleetdesk.schemas.snag import UploadOut
from fleetdesk.services import storage_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()


@router.post("/uploads/photos", response_model=UploadOut, status_code=201,
             summary="Upload a photo (JPEG/PNG/WebP, ≤ 5 MB)")
async def upload_photo(file: UploadFile = File(...), session: AuthSession = Depends(get_current_session)):
    if file.size is not None:
        storage_service.validate_photo(file.content_type, file.size)
    content = await file.read()
    stored = await storage_service.upload_photo(content, file.filename, file.content_type, session.access_token)
    return UploadOut(url=stored.public_url, path=stored.path, size=stored.size)
