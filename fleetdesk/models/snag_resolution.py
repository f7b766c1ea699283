# fleetdesk/models/snag_resolution.py
"""
One resolution per snag (snag_id is unique). Optionally linked to the
maintenance log created alongside it.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey
from fleetdesk.database import Base
from fleetdesk.models._ids import new_id

RESOLUTION_METHODS = ("Repaired", "Replaced Part", "Third Party Service", "No Action Needed", "Other")


class SnagResolution(Base):
    __tablename__ = "snag_resolutions"

    id = Column(String(36), primary_key=True, default=new_id)
    snag_id = Column(String(36), ForeignKey("snags.id"), unique=True, nullable=False)
    resolution_method = Column(String(50), nullable=False)
    resolution_notes = Column(Text, nullable=False)
    resolved_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    resolved_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    photo_urls = Column(JSON, default=list)
    maintenance_log_id = Column(String(36), ForeignKey("maintenance_logs.id"))

    def __repr__(self):
        return f"<SnagResolution snag={self.snag_id} method={self.resolution_method}>"
