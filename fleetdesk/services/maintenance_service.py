# fleetdesk/services/maintenance_service.py
"""
Maintenance logs: service history per vehicle.
Created directly from the maintenance page, or as a side effect of
resolving a snag (see snag_workflow.resolve_snag).
"""

from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import NotFoundError, ValidationError
from fleetdesk.models._ids import new_id
from fleetdesk.models.maintenance_log import MaintenanceLog, WORK_CATEGORIES
from fleetdesk.models.maintenance_work_item import MaintenanceWorkItem
from fleetdesk.services.permissions import in_scope, require_branch_action, scope_branch
from fleetdesk.services.vehicle_service import get_vehicle
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = {
    "vehicle_id": "Vehicle",
    "branch_id": "Branch",
    "service_date": "Service date",
    "mileage": "Mileage",
    "work_done": "Work done",
    "performed_by": "Performed by",
}


def validate_log_fields(data: dict) -> dict:
    """Check a maintenance-log payload without touching the database."""
    missing = []
    for key, label in REQUIRED_FIELDS.items():
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(label)
    if missing:
        raise ValidationError(f"Maintenance log is missing: {', '.join(missing)}")
    if not isinstance(data["service_date"], date):
        raise ValidationError("Service date must be a date")
    if data["mileage"] < 0:
        raise ValidationError("Mileage cannot be negative")
    if data.get("work_category") and data["work_category"] not in WORK_CATEGORIES:
        raise ValidationError(f"Invalid work category '{data['work_category']}'")
    for position, item in enumerate(data.get("work_items") or [], start=1):
        if not (item.get("work_description") or "").strip():
            raise ValidationError(f"Work item {position} needs a description")
        if item.get("work_category") and item["work_category"] not in WORK_CATEGORIES:
            raise ValidationError(f"Invalid work category '{item['work_category']}'")
    return data


def build_log(data: dict) -> MaintenanceLog:
    return MaintenanceLog(
        id=new_id(),
        vehicle_id=data["vehicle_id"],
        branch_id=data["branch_id"],
        service_date=data["service_date"],
        mileage=data["mileage"],
        work_done=data["work_done"].strip(),
        performed_by=data["performed_by"].strip(),
        performed_by_user_id=data.get("performed_by_user_id"),
        checked_by_user_id=data.get("checked_by_user_id"),
        work_category=data.get("work_category"),
        notes=data.get("notes") or None,
        photo_urls=list(data.get("photo_urls") or []),
    )


def build_work_items(log: MaintenanceLog, data: dict) -> list:
    return [
        MaintenanceWorkItem(
            maintenance_log_id=log.id,
            work_description=item["work_description"].strip(),
            work_category=item.get("work_category") or None,
            photo_urls=list(item.get("photo_urls") or []),
            order_index=index,
        )
        for index, item in enumerate(data.get("work_items") or [])
    ]


def add_log(db: Session, data: dict) -> MaintenanceLog:
    """Stage a validated log and its work items. Caller commits."""
    log = build_log(data)
    db.add(log)
    for item in build_work_items(log, data):
        db.add(item)
    return log


def list_logs(db: Session, session, vehicle_id: Optional[str] = None):
    q = db.query(MaintenanceLog)
    branch_id = scope_branch(session)
    if branch_id:
        q = q.filter(MaintenanceLog.branch_id == branch_id)
    if vehicle_id:
        q = q.filter(MaintenanceLog.vehicle_id == vehicle_id)
    return q.order_by(MaintenanceLog.service_date.desc()).all()


def create_log(db: Session, session, data: dict) -> MaintenanceLog:
    data = dict(data)
    if data.get("vehicle_id") and not data.get("branch_id"):
        data["branch_id"] = get_vehicle(db, data["vehicle_id"]).branch_id or session.branch_id
    validate_log_fields(data)
    require_branch_action(session, data["branch_id"], "create", "maintenance logs in this branch")
    log = add_log(db, data)
    commit_or_rollback(db, "create maintenance log")
    db.refresh(log)
    logger.info(f"[MAINTENANCE] Logged service for vehicle={log.vehicle_id} on {log.service_date}")
    return log


def list_work_items(db: Session, session, log_id: str):
    log = db.query(MaintenanceLog).filter(MaintenanceLog.id == log_id).first()
    if not log or not in_scope(session, log.branch_id):
        raise NotFoundError(f"Maintenance log '{log_id}' not found")
    return (
        db.query(MaintenanceWorkItem)
        .filter(MaintenanceWorkItem.maintenance_log_id == log.id)
        .order_by(MaintenanceWorkItem.order_index)
        .all()
    )
