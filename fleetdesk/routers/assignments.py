# fleetdesk/routers/assignments.py
"""The caller's own open work, and the people snags can be assigned to."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.snag import AssignmentOut
from fleetdesk.schemas.user import UserOut
from fleetdesk.services import assignment_service, user_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/snags")


@router.get("/assignments/mine", response_model=list[AssignmentOut], summary="My open assignments")
def my_assignments(db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return assignment_service.assignments_for_user(db, session.user_id)


@router.get("/assignments/assignees", response_model=list[UserOut], summary="Active users in scope")
def assignees(db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return user_service.list_users(db, session, include_inactive=False)
