# fleetdesk/services/vehicle_service.py
"""
Vehicle inventory: scoped listing, CRUD, health and mileage updates, and
the snag summary used by the snags board.
"""

import math
from datetime import datetime
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.booking import Booking
from fleetdesk.models.branch import Branch
from fleetdesk.models.mileage_log import MileageLog
from fleetdesk.models.snag import Snag
from fleetdesk.models.vehicle import Vehicle, HEALTH_FLAGS, VEHICLE_STATUSES
from fleetdesk.services.activity_service import record_activity
from fleetdesk.services.permissions import in_scope, require_branch_action, scope_branch
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = (
    "reg_number", "category_id", "branch_id", "status", "current_mileage", "make", "model",
    "colour", "fuel_type", "insurance_expiry", "mot_expiry", "is_personal", "is_draft",
)
OPEN_SNAG_STATUSES = ("Open", "Assigned")
LIVE_BOOKING_STATUSES = ("Active", "Advance Payment Not Paid")


def calculate_vehicle_health(snags) -> str:
    """Grounded on any open Dangerous snag, OK from 3 open Important ones, else Excellent."""
    open_snags = [s for s in snags if s.status in OPEN_SNAG_STATUSES and s.deleted_at is None]
    if any(s.priority == "Dangerous" for s in open_snags):
        return "Grounded"
    if sum(1 for s in open_snags if s.priority == "Important") >= 3:
        return "OK"
    return "Excellent"


def refresh_health_flag(db: Session, vehicle_id: str):
    """Recompute health from open snags. No-op when health was set by hand. Caller commits."""
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle or vehicle.health_override:
        return vehicle
    snags = db.query(Snag).filter(
        Snag.vehicle_id == vehicle_id,
        Snag.status.in_(OPEN_SNAG_STATUSES),
        Snag.deleted_at.is_(None),
    ).all()
    health = calculate_vehicle_health(snags)
    if vehicle.health_flag != health:
        logger.info(f"[HEALTH] {vehicle.reg_number}: {vehicle.health_flag} → {health}")
        vehicle.health_flag = health
    return vehicle


def list_vehicles(db: Session, session, include_drafts: bool = False, include_personal: bool = False):
    q = db.query(Vehicle).filter(Vehicle.deleted_at.is_(None))
    branch_id = scope_branch(session)
    if branch_id:
        q = q.filter(Vehicle.branch_id == branch_id)
    if not include_drafts:
        q = q.filter(Vehicle.is_draft.is_(False))
    if not include_personal:
        q = q.filter(Vehicle.is_personal.is_(False))
    return q.order_by(Vehicle.reg_number).all()


def get_vehicle(db: Session, vehicle_id: str, session=None) -> Vehicle:
    """With a session, vehicles outside the caller's branch scope are reported as missing."""
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.deleted_at.is_(None)).first()
    if not vehicle or (session is not None and not in_scope(session, vehicle.branch_id)):
        raise NotFoundError(f"Vehicle '{vehicle_id}' not found")
    return vehicle


def _branch_label(db: Session, branch_id) -> str:
    if not branch_id:
        return "Unassigned"
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    return branch.branch_name if branch else branch_id


def _clean(data: dict) -> dict:
    values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    if "reg_number" in values:
        reg = (values["reg_number"] or "").strip().upper()
        if not reg:
            raise ValidationError("Registration number is required")
        values["reg_number"] = reg
    if "status" in values and values["status"] not in VEHICLE_STATUSES:
        raise ValidationError(f"Invalid vehicle status '{values['status']}'")
    if values.get("current_mileage") is not None and values["current_mileage"] < 0:
        raise ValidationError("Mileage cannot be negative")
    return values


def create_vehicle(db: Session, session, data: dict) -> Vehicle:
    values = _clean(data)
    if "reg_number" not in values:
        raise ValidationError("Registration number is required")
    if not values.get("branch_id"):
        values["branch_id"] = session.branch_id
    require_branch_action(session, values.get("branch_id"), "create", "vehicles in this branch")
    if db.query(Vehicle).filter(Vehicle.reg_number == values["reg_number"], Vehicle.deleted_at.is_(None)).first():
        raise ConflictError(f"Vehicle {values['reg_number']} already exists")
    vehicle = Vehicle(**values)
    db.add(vehicle)
    commit_or_rollback(db, "create vehicle")
    db.refresh(vehicle)
    logger.info(f"[VEHICLE] Created {vehicle.reg_number} branch={vehicle.branch_id}")
    return vehicle


def update_vehicle(db: Session, session, vehicle_id: str, data: dict) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    values = _clean(data)
    require_branch_action(session, vehicle.branch_id, "edit", "this vehicle")
    moved = "branch_id" in values and values["branch_id"] != vehicle.branch_id
    if moved:
        require_branch_action(session, values["branch_id"], "edit", "vehicles in that branch")
        old, new = _branch_label(db, vehicle.branch_id), _branch_label(db, values["branch_id"])
        record_activity(db, session, vehicle.id, "branch_id", old, new, f"Vehicle moved from {old} to {new}")
    if "current_mileage" in values and values["current_mileage"] != vehicle.current_mileage:
        vehicle.last_mileage_update = datetime.utcnow()
    for key, value in values.items():
        setattr(vehicle, key, value)
    commit_or_rollback(db, "update vehicle")
    db.refresh(vehicle)
    return vehicle


def update_health(db: Session, session, vehicle_id: str, health_flag: str, notes: str = None) -> Vehicle:
    """Manual health override. Automatic recomputation stops once this is set."""
    if health_flag not in HEALTH_FLAGS:
        raise ValidationError(f"Invalid health flag '{health_flag}'")
    vehicle = get_vehicle(db, vehicle_id)
    require_branch_action(session, vehicle.branch_id, "edit", "this vehicle")
    logger.info(f"[HEALTH] {vehicle.reg_number}: {vehicle.health_flag} → {health_flag} "
                f"(manual, user={session.user_id})")
    record_activity(db, session, vehicle.id, "health_flag", vehicle.health_flag, health_flag, notes)
    vehicle.health_flag = health_flag
    vehicle.health_override = True
    commit_or_rollback(db, "update vehicle health")
    db.refresh(vehicle)
    return vehicle


def update_mileage(db: Session, session, vehicle_id: str, mileage: int) -> Vehicle:
    """Record an odometer reading, with distance and average per day since the last one."""
    if mileage is None or mileage < 0:
        raise ValidationError("Mileage cannot be negative")
    vehicle = get_vehicle(db, vehicle_id)
    require_branch_action(session, vehicle.branch_id, "edit", "this vehicle")
    if mileage < (vehicle.current_mileage or 0):
        raise ValidationError(f"Mileage cannot be lower than the current reading ({vehicle.current_mileage})")

    now = datetime.utcnow()
    reading = MileageLog(vehicle_id=vehicle.id, branch_id=vehicle.branch_id, reading_datetime=now,
                         mileage_reading=mileage, recorded_by=session.user_id)
    previous = list_mileage_logs(db, vehicle.id)
    if previous:
        latest = previous[0]
        reading.km_since_last = mileage - latest.mileage_reading
        reading.days_since_last = math.ceil((now - latest.reading_datetime).total_seconds() / 86400)
        reading.km_per_day = (reading.km_since_last / reading.days_since_last
                              if reading.days_since_last > 0 else 0.0)
    db.add(reading)
    vehicle.current_mileage = mileage
    vehicle.last_mileage_update = now
    commit_or_rollback(db, "update mileage")
    db.refresh(vehicle)
    return vehicle


def list_mileage_logs(db: Session, vehicle_id: str):
    return (
        db.query(MileageLog)
        .filter(MileageLog.vehicle_id == vehicle_id)
        .order_by(MileageLog.reading_datetime.desc())
        .all()
    )


def delete_vehicle(db: Session, session, vehicle_id: str):
    vehicle = get_vehicle(db, vehicle_id)
    require_branch_action(session, vehicle.branch_id, "delete", "this vehicle")
    live = db.query(Booking).filter(
        Booking.vehicle_id == vehicle.id,
        Booking.status.in_(LIVE_BOOKING_STATUSES),
    ).first()
    if live:
        raise ConflictError("Cannot delete vehicle with active or pending bookings")
    now = datetime.utcnow()
    upcoming = db.query(Booking).filter(
        Booking.vehicle_id == vehicle.id,
        Booking.status != "Cancelled",
        Booking.start_datetime >= now,
    ).first()
    if upcoming:
        raise ConflictError("Cannot delete vehicle with future bookings")
    record_activity(db, session, vehicle.id, "deleted_at", None, now.isoformat(), "Vehicle soft deleted")
    vehicle.deleted_at = now
    commit_or_rollback(db, "delete vehicle")
    logger.info(f"[VEHICLE] Deleted {vehicle.reg_number} (user={session.user_id})")


def vehicles_with_snag_counts(db: Session, session):
    """Each vehicle with counts of open snags per priority and its next booking."""
    vehicles = list_vehicles(db, session, include_drafts=True)
    ids = [v.id for v in vehicles]
    if not ids:
        return []

    snags = db.query(Snag).filter(
        Snag.vehicle_id.in_(ids),
        Snag.status.in_(OPEN_SNAG_STATUSES),
        Snag.deleted_at.is_(None),
    ).all()
    now = datetime.utcnow()
    bookings = db.query(Booking).filter(
        Booking.vehicle_id.in_(ids),
        Booking.status != "Cancelled",
        Booking.start_datetime > now,
    ).order_by(Booking.start_datetime).all()

    summary = []
    for vehicle in vehicles:
        mine = [s for s in snags if s.vehicle_id == vehicle.id]
        next_booking = next((b for b in bookings if b.vehicle_id == vehicle.id), None)
        days = None
        if next_booking:
            days = max(0, -(-int((next_booking.start_datetime - now).total_seconds()) // 86400))
        summary.append({
            "vehicle": vehicle,
            "snag_counts": {
                "total": len(mine),
                "dangerous": sum(1 for s in mine if s.priority == "Dangerous"),
                "important": sum(1 for s in mine if s.priority == "Important"),
                "nice_to_fix": sum(1 for s in mine if s.priority == "Nice to Fix"),
                "aesthetic": sum(1 for s in mine if s.priority == "Aesthetic"),
                "unallocated": sum(1 for s in mine if not s.priority),
            },
            "next_booking": next_booking,
            "days_to_next_booking": days,
        })
    return summary
