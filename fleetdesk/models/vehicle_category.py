# fleetdesk/models/vehicle_category.py
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id


class VehicleCategory(Base):
    __tablename__ = "vehicle_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    category_name = Column(String(200), nullable=False, index=True)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<VehicleCategory {self.category_name}>"
