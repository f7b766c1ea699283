# fleetdesk/models/vehicle.py
"""
Fleet vehicles table.
branch_id is nullable: a vehicle can sit "unassigned" between branches.
health_flag is recomputed from open snags unless health_override is set.
Personal-use vehicles (is_personal) are excluded from operational lists.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

HEALTH_FLAGS = ("Excellent", "OK", "Grounded")
VEHICLE_STATUSES = ("Available", "On Hire", "Grounded")


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=new_id)
    reg_number = Column(String(50), unique=True, nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("vehicle_categories.id"), index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), index=True)   # NULL = unassigned
    status = Column(String(30), default="Available", nullable=False)
    health_flag = Column(String(20), default="Excellent", nullable=False)
    health_override = Column(Boolean, default=False, nullable=False)
    current_mileage = Column(Integer, default=0, nullable=False)
    last_mileage_update = Column(DateTime)
    make = Column(String(100))
    model = Column(String(100))
    colour = Column(String(50))
    fuel_type = Column(String(50))
    insurance_expiry = Column(Date)
    mot_expiry = Column(Date)
    is_personal = Column(Boolean, default=False, nullable=False)
    is_draft = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    def __repr__(self):
        return f"<Vehicle {self.reg_number} branch={self.branch_id} health={self.health_flag}>"
