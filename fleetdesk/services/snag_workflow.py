# fleetdesk/services/snag_workflow.py
"""
Snag lifecycle: report → assign → resolve.

  Open ──assign──▶ Assigned ──resolve──▶ Resolved (terminal)
    └────────────resolve─────────────────▲

Every check that can fail without the database (empty report, missing
resolution notes, incomplete maintenance log, missing capability) runs
before the first query, so a rejected submission never reaches storage.

Resolving with a maintenance log is two commits: the resolution (snag →
Resolved, open assignment → completed) first, then the log. If only the
log fails the resolution stands and the outcome carries a warning, so the
caller can tell the user not to resolve again.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import ConflictError, PermissionDeniedError, ValidationError
from fleetdesk.models.maintenance_log import MaintenanceLog
from fleetdesk.models.snag import Snag
from fleetdesk.models.snag_assignment import SnagAssignment
from fleetdesk.models.snag_resolution import SnagResolution, RESOLUTION_METHODS
from fleetdesk.models.user import User
from fleetdesk.services.assignment_service import close_assignment, open_assignment
from fleetdesk.services.maintenance_service import add_log, validate_log_fields
from fleetdesk.services.permissions import permissions_for, require_branch_action
from fleetdesk.services.snag_service import get_snag, normalize_priority
from fleetdesk.services.vehicle_service import get_vehicle, refresh_health_flag
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

PARTIAL_LOG_WARNING = (
    "Snag resolved, but the maintenance log could not be saved. "
    "Add it from the maintenance page instead of resolving the snag again."
)


@dataclass
class IssueEntry:
    description: str
    priority: Optional[str] = None
    photo_urls: List[str] = field(default_factory=list)


@dataclass
class ResolutionOutcome:
    snag: Snag
    resolution: SnagResolution
    maintenance_log: Optional[MaintenanceLog] = None
    warning: Optional[str] = None

    @property
    def partial(self) -> bool:
        return self.warning is not None


def _require_any(session, action: str):
    permissions = permissions_for(getattr(session, "role", None))
    if not (getattr(permissions, f"can_{action}_global") or getattr(permissions, f"can_{action}_in_branch")):
        logger.warning(f"[SNAG] {action} denied for user={getattr(session, 'user_id', None)} "
                       f"role={getattr(session, 'role', None)}")
        raise PermissionDeniedError(f"You don't have permission to {action} snags")


# ── Report ───────────────────────────────────────────────────────────────────
def report_snags(db: Session, session, vehicle_id: str, issues: List[IssueEntry],
                 branch_id: Optional[str] = None, mileage: Optional[int] = None) -> List[Snag]:
    """
    One Snag per issue with a non-blank description, all sharing the same
    vehicle, branch, mileage and opening date.
    Branch: the caller's, else the vehicle's, else the explicit `branch_id`.
    """
    entries = [i for i in issues if (i.description or "").strip()]
    if not entries:
        raise ValidationError("Please describe at least one issue")
    if not vehicle_id:
        raise ValidationError("Please select a vehicle")
    if mileage is not None and mileage < 0:
        raise ValidationError("Mileage cannot be negative")
    priorities = [normalize_priority(i.priority) for i in entries]
    _require_any(session, "create")

    vehicle = get_vehicle(db, vehicle_id)
    snag_branch = session.branch_id or vehicle.branch_id or branch_id
    if not snag_branch:
        raise ValidationError("Please select a branch: this vehicle is not assigned to one")
    require_branch_action(session, snag_branch, "create", "snags in this branch")

    today = date.today()
    snags = []
    for entry, priority in zip(entries, priorities):
        snag = Snag(
            vehicle_id=vehicle.id,
            branch_id=snag_branch,
            description=entry.description.strip(),
            priority=priority,
            status="Open",
            date_opened=today,
            mileage_reported=mileage,
            photo_urls=list(entry.photo_urls or []),
        )
        db.add(snag)
        snags.append(snag)

    db.flush()
    refresh_health_flag(db, vehicle.id)
    commit_or_rollback(db, "create snags")
    for snag in snags:
        db.refresh(snag)

    logger.info(f"[SNAG] {len(snags)} snag(s) reported on {vehicle.reg_number} "
                f"branch={snag_branch} by user={session.user_id}")
    return snags


# ── Assign ───────────────────────────────────────────────────────────────────
def assign_snag(db: Session, session, snag_id: str, assigned_to: str,
                deadline: Optional[date] = None, notes: Optional[str] = None) -> SnagAssignment:
    """Assign (or reassign) a snag. A previous open assignment becomes 'reassigned'."""
    if not assigned_to:
        raise ValidationError("Please choose who to assign this snag to")
    _require_any(session, "edit")

    snag = get_snag(db, snag_id)
    require_branch_action(session, snag.branch_id, "edit", "this snag")
    if snag.status == "Resolved":
        raise ConflictError("This snag has already been resolved")

    assignee = db.query(User).filter(User.id == assigned_to, User.deleted_at.is_(None)).first()
    if not assignee or assignee.status != "active":
        raise ValidationError("Snags can only be assigned to active users")

    previous = open_assignment(db, snag.id)
    if previous:
        close_assignment(previous, "reassigned")

    assignment = SnagAssignment(
        snag_id=snag.id,
        assigned_to=assignee.id,
        assigned_by=session.user_id,
        assigned_at=datetime.utcnow(),
        deadline=deadline,
        assignment_notes=(notes or "").strip() or None,
        status="assigned",
    )
    db.add(assignment)
    snag.status = "Assigned"
    snag.assigned_to = assignee.id
    snag.assignment_deadline = deadline
    commit_or_rollback(db, "assign snag")
    db.refresh(assignment)

    logger.info(f"[SNAG] {snag.id} assigned to {assignee.full_name} by user={session.user_id}"
                f"{' (reassigned)' if previous else ''}")
    return assignment


# ── Resolve ──────────────────────────────────────────────────────────────────
def resolve_snag(db: Session, session, snag_id: str, method: str, notes: str,
                 photo_urls: Optional[List[str]] = None,
                 maintenance_log: Optional[dict] = None) -> ResolutionOutcome:
    """
    Close a snag with a resolution record, optionally logging the work.
    `maintenance_log` needs vehicle_id, branch_id, service_date, mileage,
    work_done and performed_by; its photos are separate from `photo_urls`.
    """
    if method not in RESOLUTION_METHODS:
        raise ValidationError(f"Invalid resolution method '{method}'")
    if not (notes or "").strip():
        raise ValidationError("Please describe how the snag was resolved")
    if maintenance_log is not None:
        validate_log_fields(maintenance_log)
    _require_any(session, "edit")

    snag = get_snag(db, snag_id)
    require_branch_action(session, snag.branch_id, "edit", "this snag")
    if maintenance_log is not None:
        require_branch_action(session, maintenance_log["branch_id"], "create", "maintenance logs in this branch")
    if snag.status == "Resolved":
        raise ConflictError("This snag has already been resolved")

    resolution = SnagResolution(
        snag_id=snag.id,
        resolution_method=method,
        resolution_notes=notes.strip(),
        resolved_by=session.user_id,
        resolved_at=datetime.utcnow(),
        photo_urls=list(photo_urls or []),
    )
    db.add(resolution)
    snag.status = "Resolved"
    snag.date_closed = date.today()
    assignment = open_assignment(db, snag.id)
    if assignment:
        close_assignment(assignment)
    db.flush()
    refresh_health_flag(db, snag.vehicle_id)
    commit_or_rollback(db, "resolve snag")
    db.refresh(resolution)
    logger.info(f"[SNAG] {snag.id} resolved ({method}) by user={session.user_id}")

    outcome = ResolutionOutcome(snag=snag, resolution=resolution)
    if maintenance_log is None:
        return outcome

    try:
        log = add_log(db, maintenance_log)
        resolution.maintenance_log_id = log.id
        commit_or_rollback(db, "create maintenance log")
        db.refresh(log)
        outcome.maintenance_log = log
        logger.info(f"[MAINTENANCE] Logged work for snag {snag.id} on vehicle={log.vehicle_id}")
    except (SQLAlchemyError, ConflictError) as e:
        db.rollback()
        outcome.warning = PARTIAL_LOG_WARNING
        logger.warning(f"[SNAG] {snag.id} resolved but maintenance log failed: {e}")
    return outcome
