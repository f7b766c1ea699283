# fleetdesk/routers/documents.py
"""Files attached to bookings."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.booking import BookingDocumentOut
from fleetdesk.services import document_service, storage_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/bookings")


@router.get("/bookings/{booking_id}/documents", response_model=list[BookingDocumentOut],
            summary="List a booking's documents")
def list_documents(booking_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return document_service.list_documents(db, session, booking_id)


@router.post("/bookings/{booking_id}/documents", response_model=BookingDocumentOut, status_code=201,
             summary="Upload a document (PDF or image, ≤ 10 MB)")
async def upload_document(
    booking_id: str,
    file: UploadFile = File(...),
    document_type: str = Form(...),
    notes: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(guard),
):
    if file.size is not None:
        storage_service.validate_document(file.content_type, file.size)
    content = await file.read()
    return await document_service.upload_document(
        db, session, booking_id, content, file.filename, file.content_type, document_type, notes,
    )


@router.delete("/documents/{document_id}", summary="Delete a booking document")
async def delete_document(document_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    await document_service.delete_document(db, session, document_id)
    return {"status": "deleted", "id": document_id}
