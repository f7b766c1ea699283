# fleetdesk/models/vehicle_activity_log.py
"""
Audit trail per vehicle: who changed which field, from what to what.
Written on manual health changes, branch moves and deletes.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id


class VehicleActivityLog(Base):
    __tablename__ = "vehicle_activity_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"))
    user_name = Column(String(200))
    user_role = Column(String(20))
    field_changed = Column(String(50), nullable=False, index=True)   # health_flag | branch_id | deleted_at
    old_value = Column(Text)
    new_value = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<VehicleActivityLog {self.vehicle_id} {self.field_changed}: {self.old_value} → {self.new_value}>"
