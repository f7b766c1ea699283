# fleetdesk/schemas/booking.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class BookingCreate(BaseModel):
    vehicle_id: str
    branch_id: Optional[str] = None
    client_name: str
    contact: str
    client_email: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None


class BookingUpdate(BaseModel):
    client_name: Optional[str] = None
    contact: Optional[str] = None
    client_email: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None


class BookingOut(BaseModel):
    id: str
    booking_reference: Optional[str]
    vehicle_id: str
    branch_id: str
    client_name: str
    contact: str
    client_email: Optional[str]
    start_datetime: datetime
    end_datetime: datetime
    start_location: Optional[str]
    end_location: Optional[str]
    notes: Optional[str]
    health_at_booking: Optional[str]
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BookingDocumentOut(BaseModel):
    id: str
    booking_id: str
    document_type: str
    document_name: str
    document_url: str
    file_size: int
    uploaded_by: Optional[str]
    notes: Optional[str]
    uploaded_at: datetime

    class Config:
        from_attributes = True
