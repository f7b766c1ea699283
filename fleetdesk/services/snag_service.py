# fleetdesk/services/snag_service.py
"""
Snag reads, edits and soft deletes.
Lifecycle transitions (report / assign / resolve) live in snag_workflow.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.snag import Snag, SNAG_PRIORITIES, SNAG_STATUSES
from fleetdesk.services.permissions import in_scope, require_branch_action, scope_branch
from fleetdesk.services.vehicle_service import refresh_health_flag
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_priority(priority: Optional[str]) -> Optional[str]:
    """Empty means unallocated."""
    if priority is None or not str(priority).strip():
        return None
    if priority not in SNAG_PRIORITIES:
        raise ValidationError(f"Invalid priority '{priority}'")
    return priority


def list_snags(db: Session, session, vehicle_id: str = None, status: str = None,
               include_deleted: bool = False):
    q = db.query(Snag)
    branch_id = scope_branch(session)
    if branch_id:
        q = q.filter(Snag.branch_id == branch_id)
    if vehicle_id:
        q = q.filter(Snag.vehicle_id == vehicle_id)
    if status:
        if status not in SNAG_STATUSES:
            raise ValidationError(f"Invalid snag status '{status}'")
        q = q.filter(Snag.status == status)
    if not include_deleted:
        q = q.filter(Snag.deleted_at.is_(None))
    return q.order_by(Snag.date_opened.desc()).all()


def get_snag(db: Session, snag_id: str, include_deleted: bool = False, session=None) -> Snag:
    snag = db.query(Snag).filter(Snag.id == snag_id).first()
    if (not snag or (snag.deleted_at is not None and not include_deleted)
            or (session is not None and not in_scope(session, snag.branch_id))):
        raise NotFoundError(f"Snag '{snag_id}' not found")
    return snag


def edit_snag(db: Session, session, snag_id: str, description: str = None, priority: str = "") -> Snag:
    """Change description and/or priority. priority=None clears it; "" leaves it untouched."""
    snag = get_snag(db, snag_id)
    require_branch_action(session, snag.branch_id, "edit", "this snag")
    if snag.status == "Resolved":
        raise ConflictError("Resolved snags cannot be edited")
    if description is not None:
        if not description.strip():
            raise ValidationError("Description is required")
        snag.description = description.strip()
    if priority != "":
        snag.priority = normalize_priority(priority)
    refresh_health_flag(db, snag.vehicle_id)
    commit_or_rollback(db, "update snag")
    db.refresh(snag)
    return snag


def delete_snag(db: Session, session, snag_id: str, reason: str) -> Snag:
    if not (reason or "").strip():
        raise ValidationError("Please give a reason for deleting this snag")
    snag = get_snag(db, snag_id)
    require_branch_action(session, snag.branch_id, "delete", "this snag")
    snag.deleted_at = datetime.utcnow()
    snag.deleted_by = session.user_id
    snag.deletion_reason = reason.strip()
    refresh_health_flag(db, snag.vehicle_id)
    commit_or_rollback(db, "delete snag")
    logger.info(f"[SNAG] {snag.id} deleted by user={session.user_id}: {snag.deletion_reason}")
    return snag
