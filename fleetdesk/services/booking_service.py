# fleetdesk/services/booking_service.py
"""
Bookings/reservations. Plain CRUD scoped by branch, plus the overlap check:
a vehicle can't hold two non-cancelled bookings over the same period.
"""

from datetime import datetime
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.booking import Booking, BOOKING_STATUSES
from fleetdesk.services.permissions import in_scope, require_branch_action, scope_branch
from fleetdesk.services.vehicle_service import get_vehicle
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = (
    "client_name", "contact", "client_email", "start_datetime", "end_datetime",
    "start_location", "end_location", "notes", "status",
)


def has_conflict(bookings, start: datetime, end: datetime, exclude_id: str = None) -> bool:
    for booking in bookings:
        if booking.status == "Cancelled":
            continue
        if exclude_id and booking.id == exclude_id:
            continue
        if start < booking.end_datetime and end > booking.start_datetime:
            return True
    return False


def _next_reference(db: Session) -> str:
    count = db.query(Booking).count()
    return f"BK-{datetime.utcnow():%Y%m}-{count + 1:04d}"


def _check_period(start: datetime, end: datetime):
    if not start or not end:
        raise ValidationError("Start and end date/time are required")
    if end <= start:
        raise ValidationError("End date/time must be after the start")


def _check_overlap(db: Session, vehicle_id: str, start: datetime, end: datetime, exclude_id: str = None):
    existing = db.query(Booking).filter(
        Booking.vehicle_id == vehicle_id,
        Booking.status != "Cancelled",
        Booking.start_datetime < end,
        Booking.end_datetime > start,
    ).all()
    if has_conflict(existing, start, end, exclude_id):
        raise ConflictError("This vehicle is already booked for the selected period")


def list_bookings(db: Session, session, vehicle_id: str = None, status: str = None):
    q = db.query(Booking)
    branch_id = scope_branch(session)
    if branch_id:
        q = q.filter(Booking.branch_id == branch_id)
    if vehicle_id:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.start_datetime.desc()).all()


def get_booking(db: Session, booking_id: str, session=None) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking or (session is not None and not in_scope(session, booking.branch_id)):
        raise NotFoundError(f"Booking '{booking_id}' not found")
    return booking


def create_booking(db: Session, session, data: dict) -> Booking:
    for key in ("vehicle_id", "client_name", "contact"):
        if not data.get(key):
            raise ValidationError(f"{key.replace('_', ' ').capitalize()} is required")
    start, end = data.get("start_datetime"), data.get("end_datetime")
    _check_period(start, end)
    status = data.get("status") or "Draft"
    if status not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid booking status '{status}'")

    vehicle = get_vehicle(db, data["vehicle_id"])
    branch_id = data.get("branch_id") or vehicle.branch_id or session.branch_id
    if not branch_id:
        raise ValidationError("Please select a branch for this booking")
    require_branch_action(session, branch_id, "create", "bookings in this branch")
    _check_overlap(db, vehicle.id, start, end)

    values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    values["status"] = status
    booking = Booking(
        vehicle_id=vehicle.id,
        branch_id=branch_id,
        booking_reference=_next_reference(db),
        health_at_booking=vehicle.health_flag,
        **values,
    )
    db.add(booking)
    commit_or_rollback(db, "create booking")
    db.refresh(booking)
    logger.info(f"[BOOKING] {booking.booking_reference} created for {vehicle.reg_number}")
    return booking


def update_booking(db: Session, session, booking_id: str, data: dict) -> Booking:
    booking = get_booking(db, booking_id)
    require_branch_action(session, booking.branch_id, "edit", "this booking")
    values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    if "status" in values and values["status"] not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid booking status '{values['status']}'")

    start = values.get("start_datetime", booking.start_datetime)
    end = values.get("end_datetime", booking.end_datetime)
    moved = "start_datetime" in values or "end_datetime" in values
    if moved:
        _check_period(start, end)
    # A reactivated booking takes its slot back, so it is checked like a new one
    reactivated = booking.status == "Cancelled"
    if values.get("status", booking.status) != "Cancelled" and (moved or reactivated):
        _check_overlap(db, booking.vehicle_id, start, end, exclude_id=booking.id)

    for key, value in values.items():
        setattr(booking, key, value)
    commit_or_rollback(db, "update booking")
    db.refresh(booking)
    return booking


def cancel_booking(db: Session, session, booking_id: str) -> Booking:
    return update_booking(db, session, booking_id, {"status": "Cancelled"})
