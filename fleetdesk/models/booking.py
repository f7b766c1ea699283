# fleetdesk/models/booking.py
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

BOOKING_STATUSES = ("Draft", "Advance Payment Not Paid", "Active", "Completed", "Cancelled")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_reference = Column(String(50), index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
    client_name = Column(String(200), nullable=False)
    contact = Column(String(100), nullable=False)
    client_email = Column(String(255))
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False)
    start_location = Column(String(300))
    end_location = Column(String(300))
    notes = Column(Text)
    health_at_booking = Column(String(20))
    status = Column(String(40), default="Draft", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Booking {self.booking_reference} vehicle={self.vehicle_id} status={self.status}>"
