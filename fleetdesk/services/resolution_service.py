# fleetdesk/services/resolution_service.py
from sqlalchemy.orm import Session

from fleetdesk.exceptions import NotFoundError
from fleetdesk.models.maintenance_log import MaintenanceLog
from fleetdesk.models.snag_resolution import SnagResolution


def resolution_for_snag(db: Session, snag_id: str) -> SnagResolution:
    resolution = db.query(SnagResolution).filter(SnagResolution.snag_id == snag_id).first()
    if not resolution:
        raise NotFoundError(f"Snag '{snag_id}' has not been resolved")
    return resolution


def linked_maintenance_log(db: Session, resolution: SnagResolution):
    if not resolution.maintenance_log_id:
        return None
    return db.query(MaintenanceLog).filter(MaintenanceLog.id == resolution.maintenance_log_id).first()
