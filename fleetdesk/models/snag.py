# fleetdesk/models/snag.py
"""
Snags table: reported vehicle defects tracked to resolution.
Lifecycle: Open → Assigned → Resolved (terminal). Driven by snag_workflow.
assigned_to / assignment_deadline mirror the latest SnagAssignment.
Deletes are soft (deleted_at + reason) so the audit trail survives.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, JSON, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

SNAG_PRIORITIES = ("Dangerous", "Important", "Nice to Fix", "Aesthetic")
SNAG_STATUSES = ("Open", "Assigned", "Resolved")


class Snag(Base):
    __tablename__ = "snags"

    id = Column(String(36), primary_key=True, default=new_id)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    priority = Column(String(20))                    # NULL = unallocated
    status = Column(String(20), default="Open", nullable=False, index=True)
    date_opened = Column(Date, nullable=False)
    date_closed = Column(Date)
    mileage_reported = Column(Integer)
    photo_urls = Column(JSON, default=list)
    assigned_to = Column(String(36), ForeignKey("users.id"))
    assignment_deadline = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)
    deleted_by = Column(String(36), ForeignKey("users.id"))
    deletion_reason = Column(Text)

    def __repr__(self):
        return f"<Snag {self.id} vehicle={self.vehicle_id} status={self.status} priority={self.priority}>"
