# fleetdesk/routers/snags.py
"""
Snag board: report → assign → resolve, plus edit and soft delete.

POST /snags/{id}/resolve answers 201 even when the optional maintenance
log could not be saved; in that case `warning` is set and
`maintenance_log` is null, and the snag is already Resolved.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.snag import (
    AssignmentOut, ResolutionOut, ResolveResult, SnagAssign, SnagEdit, SnagOut, SnagReport, SnagResolve,
)
from fleetdesk.schemas.maintenance import MaintenanceLogOut
from fleetdesk.services import assignment_service, resolution_service, snag_service
from fleetdesk.services.auth_service import AuthSession
from fleetdesk.services.snag_workflow import IssueEntry, assign_snag, report_snags, resolve_snag

router = APIRouter()
guard = require_route("/snags")


def _result(snag, resolution, log=None, warning=None) -> ResolveResult:
    return ResolveResult(
        snag=SnagOut.model_validate(snag),
        resolution=ResolutionOut.model_validate(resolution),
        maintenance_log=MaintenanceLogOut.model_validate(log) if log else None,
        warning=warning,
    )


@router.get("/snags", response_model=list[SnagOut], summary="List snags in scope")
def list_snags(vehicle_id: Optional[str] = None, status: Optional[str] = None, include_deleted: bool = False,
               db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return snag_service.list_snags(db, session, vehicle_id, status, include_deleted)


@router.get("/snags/{snag_id}", response_model=SnagOut, summary="Get one snag")
def get_snag(snag_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return snag_service.get_snag(db, snag_id, session=session)


@router.post("/snags", response_model=list[SnagOut], status_code=201, summary="Report one or more snags")
def report(body: SnagReport, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    """One snag per issue with a description; blank issues are ignored."""
    issues = [IssueEntry(i.description, i.priority, i.photo_urls) for i in body.issues]
    return report_snags(db, session, body.vehicle_id, issues, body.branch_id, body.mileage)


@router.patch("/snags/{snag_id}", response_model=SnagOut, summary="Edit description or priority")
def edit(snag_id: str, body: SnagEdit, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    changes = body.model_dump(exclude_unset=True)
    return snag_service.edit_snag(db, session, snag_id, changes.get("description"), changes.get("priority", ""))


@router.delete("/snags/{snag_id}", response_model=SnagOut, summary="Delete a snag (reason required)")
def delete(snag_id: str, reason: str = "", db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return snag_service.delete_snag(db, session, snag_id, reason)


@router.post("/snags/{snag_id}/assign", response_model=AssignmentOut, status_code=201, summary="Assign a snag")
def assign(snag_id: str, body: SnagAssign, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return assign_snag(db, session, snag_id, body.assigned_to, body.deadline, body.notes)


@router.get("/snags/{snag_id}/assignments", response_model=list[AssignmentOut], summary="Assignment history")
def assignment_history(snag_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    snag = snag_service.get_snag(db, snag_id, include_deleted=True, session=session)
    return assignment_service.assignments_for_snag(db, snag.id)


@router.post("/snags/{snag_id}/resolve", response_model=ResolveResult, status_code=201, summary="Resolve a snag")
def resolve(snag_id: str, body: SnagResolve, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    log = body.maintenance_log.model_dump() if body.maintenance_log else None
    outcome = resolve_snag(db, session, snag_id, body.resolution_method, body.resolution_notes,
                           body.photo_urls, log)
    return _result(outcome.snag, outcome.resolution, outcome.maintenance_log, outcome.warning)


@router.get("/snags/{snag_id}/resolution", response_model=ResolveResult, summary="How a snag was resolved")
def resolution(snag_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    snag = snag_service.get_snag(db, snag_id, include_deleted=True, session=session)
    record = resolution_service.resolution_for_snag(db, snag.id)
    return _result(snag, record, resolution_service.linked_maintenance_log(db, record))
