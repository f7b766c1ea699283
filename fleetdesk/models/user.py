# fleetdesk/models/user.py
"""
Application users. id is the hosted auth service's user id.
Admins carry no branch_id (global scope); every other role has one.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from fleetdesk.database import Base

ROLES = ("admin", "manager", "mechanic", "driver")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), index=True)
    phone_number = Column(String(50))
    full_name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), index=True)
    status = Column(String(20), default="active", nullable=False)   # active | inactive
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime)

    def __repr__(self):
        return f"<User {self.full_name} role={self.role} branch={self.branch_id}>"
