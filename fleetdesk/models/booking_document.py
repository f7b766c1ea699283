# fleetdesk/models/booking_document.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

DOCUMENT_TYPES = ("license", "contract", "id_document", "insurance", "other")


class BookingDocument(Base):
    __tablename__ = "booking_documents"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    document_type = Column(String(30), nullable=False)
    document_name = Column(String(300), nullable=False)
    document_url = Column(Text, nullable=False)
    storage_path = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False)
    uploaded_by = Column(String(36), ForeignKey("users.id"))
    notes = Column(Text)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<BookingDocument {self.document_name} booking={self.booking_id}>"
