# fleetdesk/services/document_service.py
"""
Documents attached to a booking (licence, contract, ID, insurance).
The file goes to object storage first; the row is written after, and the
stored object is removed again if the row can't be committed.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetdesk.config import settings
from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.booking_document import BookingDocument, DOCUMENT_TYPES
from fleetdesk.services import storage_service
from fleetdesk.services.booking_service import get_booking
from fleetdesk.services.permissions import require_branch_action
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)


def list_documents(db: Session, session, booking_id: str):
    booking = get_booking(db, booking_id, session)
    return (
        db.query(BookingDocument)
        .filter(BookingDocument.booking_id == booking.id)
        .order_by(BookingDocument.uploaded_at.desc())
        .all()
    )


def get_document(db: Session, document_id: str) -> BookingDocument:
    document = db.query(BookingDocument).filter(BookingDocument.id == document_id).first()
    if not document:
        raise NotFoundError(f"Document '{document_id}' not found")
    return document


async def upload_document(db: Session, session, booking_id: str, content: bytes, filename: str,
                          content_type: str, document_type: str, notes: Optional[str] = None) -> BookingDocument:
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError(f"Invalid document type '{document_type}'")
    storage_service.validate_document(content_type, len(content))
    booking = get_booking(db, booking_id)
    require_branch_action(session, booking.branch_id, "edit", "this booking")

    stored = await storage_service.upload_document(
        booking.id, content, filename, content_type, access_token=session.access_token
    )
    document = BookingDocument(
        booking_id=booking.id,
        document_type=document_type,
        document_name=filename or stored.path.rsplit("/", 1)[-1],
        document_url=stored.public_url,
        storage_path=stored.path,
        file_size=stored.size,
        uploaded_by=session.user_id,
        notes=(notes or "").strip() or None,
    )
    db.add(document)
    try:
        commit_or_rollback(db, "save document")
    except (SQLAlchemyError, ConflictError):
        await storage_service.remove_object(stored.bucket, stored.path, session.access_token)
        raise
    db.refresh(document)
    logger.info(f"[DOCUMENTS] {document.document_type} '{document.document_name}' "
                f"added to booking {booking.booking_reference}")
    return document


async def delete_document(db: Session, session, document_id: str):
    document = get_document(db, document_id)
    booking = get_booking(db, document.booking_id)
    require_branch_action(session, booking.branch_id, "delete", "documents on this booking")
    path = document.storage_path
    db.delete(document)
    commit_or_rollback(db, "delete document")
    if not await storage_service.remove_object(settings.DOCUMENTS_BUCKET, path, session.access_token):
        logger.warning(f"[DOCUMENTS] Row deleted but stored file {path} remains")
    logger.info(f"[DOCUMENTS] Deleted '{document.document_name}' from booking {booking.booking_reference}")
