# fleetdesk/services/branch_service.py
"""
Branch settings: CRUD plus the referential guard on delete.
A branch cannot be removed while live vehicles or users point at it; the
guard runs before the DELETE is issued.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdesk.models.branch import Branch
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.services.permissions import require
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = ("branch_name", "location", "contact_info")


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def branch_delete_blocker(vehicle_count: int, user_count: int):
    """Message explaining why a branch can't be deleted, or None if it can."""
    parts = []
    if vehicle_count > 0:
        parts.append(_plural(vehicle_count, "vehicle"))
    if user_count > 0:
        parts.append(_plural(user_count, "user"))
    if not parts:
        return None
    return f"Cannot delete branch: {' and '.join(parts)} assigned to this branch. Please reassign them first."


def list_branches(db: Session):
    return db.query(Branch).order_by(Branch.branch_name).all()


def get_branch(db: Session, branch_id: str) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if not branch:
        raise NotFoundError(f"Branch '{branch_id}' not found")
    return branch


def dependent_counts(db: Session, branch_id: str):
    vehicles = db.query(Vehicle).filter(Vehicle.branch_id == branch_id, Vehicle.deleted_at.is_(None)).count()
    users = db.query(User).filter(User.branch_id == branch_id, User.deleted_at.is_(None)).count()
    return vehicles, users


def usage_by_branch(db: Session) -> dict:
    """{branch_id: {"vehicles": n, "users": m}} for the settings page."""
    usage = {}
    vehicle_rows = (
        db.query(Vehicle.branch_id, func.count(Vehicle.id))
        .filter(Vehicle.deleted_at.is_(None), Vehicle.branch_id.isnot(None))
        .group_by(Vehicle.branch_id)
        .all()
    )
    for branch_id, count in vehicle_rows:
        usage.setdefault(branch_id, {"vehicles": 0, "users": 0})["vehicles"] = count
    user_rows = (
        db.query(User.branch_id, func.count(User.id))
        .filter(User.deleted_at.is_(None), User.branch_id.isnot(None))
        .group_by(User.branch_id)
        .all()
    )
    for branch_id, count in user_rows:
        usage.setdefault(branch_id, {"vehicles": 0, "users": 0})["users"] = count
    return usage


def _clean(data: dict) -> dict:
    values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    for key in ("branch_name", "location"):
        if key in values and not (values[key] or "").strip():
            raise ValidationError(f"{key.replace('_', ' ').capitalize()} is required")
    return values


def create_branch(db: Session, session, data: dict) -> Branch:
    require(session, "can_manage_branches")
    values = _clean(data)
    if "branch_name" not in values or "location" not in values:
        raise ValidationError("Branch name and location are required")
    branch = Branch(**values)
    db.add(branch)
    commit_or_rollback(db, "add branch")
    db.refresh(branch)
    logger.info(f"[SETTINGS] Branch created: {branch.branch_name}")
    return branch


def update_branch(db: Session, session, branch_id: str, data: dict) -> Branch:
    require(session, "can_manage_branches")
    values = _clean(data)
    branch = get_branch(db, branch_id)
    for key, value in values.items():
        setattr(branch, key, value)
    commit_or_rollback(db, "update branch")
    db.refresh(branch)
    return branch


def delete_branch(db: Session, session, branch_id: str):
    require(session, "can_manage_branches")
    branch = get_branch(db, branch_id)
    vehicles, users = dependent_counts(db, branch_id)
    blocker = branch_delete_blocker(vehicles, users)
    if blocker:
        logger.warning(f"[SETTINGS] Delete of branch {branch.branch_name} blocked: {vehicles} vehicles, {users} users")
        raise ConflictError(blocker)
    db.delete(branch)
    commit_or_rollback(db, "delete branch")
    logger.info(f"[SETTINGS] Branch deleted: {branch.branch_name}")
