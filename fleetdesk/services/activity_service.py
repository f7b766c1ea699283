# fleetdesk/services/activity_service.py
"""
Vehicle activity trail. Entries are added to the caller's unit of work
and committed together with the change they describe.
"""

from typing import Optional
from sqlalchemy.orm import Session

from fleetdesk.models.vehicle_activity_log import VehicleActivityLog


def _actor_name(session) -> Optional[str]:
    user = getattr(session, "user", None) or {}
    metadata = user.get("user_metadata") or {}
    return metadata.get("full_name") or user.get("email")


def record_activity(db: Session, session, vehicle_id: str, field_changed: str,
                    old_value=None, new_value=None, notes: Optional[str] = None) -> VehicleActivityLog:
    """Caller commits."""
    entry = VehicleActivityLog(
        vehicle_id=vehicle_id,
        user_id=getattr(session, "user_id", None),
        user_name=_actor_name(session),
        user_role=getattr(session, "role", None),
        field_changed=field_changed,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        notes=notes or None,
    )
    db.add(entry)
    return entry


def list_activity(db: Session, vehicle_id: str, field_changed: Optional[str] = None, limit: Optional[int] = None):
    q = db.query(VehicleActivityLog).filter(VehicleActivityLog.vehicle_id == vehicle_id)
    if field_changed:
        q = q.filter(VehicleActivityLog.field_changed == field_changed)
    q = q.order_by(VehicleActivityLog.created_at.desc())
    if limit:
        q = q.limit(limit)
    return q.all()
