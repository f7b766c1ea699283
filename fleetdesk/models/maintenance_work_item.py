# fleetdesk/models/maintenance_work_item.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id


class MaintenanceWorkItem(Base):
    """One categorised job within a maintenance log, in the order it was entered."""
    __tablename__ = "maintenance_work_items"

    id = Column(String(36), primary_key=True, default=new_id)
    maintenance_log_id = Column(String(36), ForeignKey("maintenance_logs.id"), nullable=False, index=True)
    work_description = Column(Text, nullable=False)
    work_category = Column(String(50))
    photo_urls = Column(JSON, default=list)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<MaintenanceWorkItem log={self.maintenance_log_id} #{self.order_index} {self.work_category}>"
