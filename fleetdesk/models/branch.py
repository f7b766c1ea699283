# fleetdesk/models/branch.py
"""
Branches table: operational locations that vehicles, users and snags
are scoped to. Deletion is guarded in branch_service while vehicles or
users still reference a branch.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id


class Branch(Base):
    __tablename__ = "branches"

    id = Column(String(36), primary_key=True, default=new_id)
    branch_name = Column(String(200), nullable=False, index=True)
    location = Column(String(300), nullable=False)
    contact_info = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Branch {self.branch_name}>"
