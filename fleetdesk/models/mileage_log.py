# fleetdesk/models/mileage_log.py
"""
Odometer readings. Each row stores the distance and days since the
previous reading and the resulting average per day.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id


class MileageLog(Base):
    __tablename__ = "mileage_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), index=True)
    reading_datetime = Column(DateTime, nullable=False, index=True)
    mileage_reading = Column(Integer, nullable=False)
    km_since_last = Column(Integer)
    days_since_last = Column(Integer)
    km_per_day = Column(Float)
    recorded_by = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<MileageLog {self.vehicle_id} {self.mileage_reading} @ {self.reading_datetime}>"
