# fleetdesk/models/snag_assignment.py
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Text, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

ASSIGNMENT_STATUSES = ("assigned", "completed", "overdue", "reassigned")
OPEN_ASSIGNMENT_STATUSES = ("assigned", "overdue")


class SnagAssignment(Base):
    __tablename__ = "snag_assignments"

    id = Column(String(36), primary_key=True, default=new_id)
    snag_id = Column(String(36), ForeignKey("snags.id"), nullable=False, index=True)
    assigned_to = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deadline = Column(Date)
    assignment_notes = Column(Text)
    status = Column(String(20), default="assigned", nullable=False, index=True)
    completed_at = Column(DateTime)

    def __repr__(self):
        return f"<SnagAssignment snag={self.snag_id} to={self.assigned_to} status={self.status}>"
