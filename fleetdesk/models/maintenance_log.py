# fleetdesk/models/maintenance_log.py
"""
Maintenance log: service history per vehicle.
performed_by is free text (a registered user's name or an external garage);
performed_by_user_id / checked_by_user_id optionally reference users.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, JSON, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

WORK_CATEGORIES = ("Engine / Fuel", "Gearbox", "Suspension", "Electrical", "Body", "Accessories")


class MaintenanceLog(Base):
    __tablename__ = "maintenance_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
    service_date = Column(Date, nullable=False, index=True)
    mileage = Column(Integer, nullable=False)
    work_done = Column(Text, nullable=False)
    performed_by = Column(String(200), nullable=False)
    performed_by_user_id = Column(String(36), ForeignKey("users.id"))
    checked_by_user_id = Column(String(36), ForeignKey("users.id"))
    work_category = Column(String(50))
    notes = Column(Text)
    photo_urls = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<MaintenanceLog vehicle={self.vehicle_id} date={self.service_date} mileage={self.mileage}>"
