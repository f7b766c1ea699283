# fleetdesk/routers/branches.py
"""
Branch settings. Listing is open (the sign-up form needs it);
changes are limited to roles that may open /settings.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import require_route
from fleetdesk.schemas.branch import BranchIn, BranchOut, BranchUpdate
from fleetdesk.services import branch_service
from fleetdesk.services.auth_service import AuthSession

router = APIRouter()
guard = require_route("/settings")


def _with_usage(branch, usage: dict) -> BranchOut:
    out = BranchOut.model_validate(branch)
    counts = usage.get(branch.id, {})
    out.vehicles = counts.get("vehicles", 0)
    out.users = counts.get("users", 0)
    return out


@router.get("/branches", response_model=list[BranchOut], summary="List branches with usage counts")
def list_branches(db: Session = Depends(get_db)):
    usage = branch_service.usage_by_branch(db)
    return [_with_usage(b, usage) for b in branch_service.list_branches(db)]


@router.post("/branches", response_model=BranchOut, status_code=201, summary="Add a branch")
def create_branch(body: BranchIn, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return branch_service.create_branch(db, session, body.model_dump())


@router.patch("/branches/{branch_id}", response_model=BranchOut, summary="Edit a branch")
def update_branch(branch_id: str, body: BranchUpdate, db: Session = Depends(get_db),
                  session: AuthSession = Depends(guard)):
    return branch_service.update_branch(db, session, branch_id, body.model_dump(exclude_unset=True))


@router.delete("/branches/{branch_id}", summary="Delete an unused branch")
def delete_branch(branch_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    branch_service.delete_branch(db, session, branch_id)
    return {"status": "deleted", "id": branch_id}
