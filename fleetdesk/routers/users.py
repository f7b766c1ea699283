# fleetdesk/routers/users.py
"""User management (administrators)."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import get_auth_client, require_route
from fleetdesk.schemas.user import UserCreate, UserOut, UserStatsOut, UserUpdate
from fleetdesk.services import user_service
from fleetdesk.services.auth_service import AuthClient, AuthSession

router = APIRouter()
guard = require_route("/users")


@router.get("/users", response_model=list[UserOut], summary="List users")
def list_users(role: Optional[str] = None, db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return user_service.list_users(db, session, role=role)


@router.get("/users/stats", response_model=UserStatsOut, summary="User counts by status and role")
def user_stats(db: Session = Depends(get_db), session: AuthSession = Depends(guard)):
    return user_service.user_stats(db, session)


@router.post("/users", response_model=UserOut, status_code=201, summary="Create a user")
async def create_user(body: UserCreate, db: Session = Depends(get_db), session: AuthSession = Depends(guard),
                      client: AuthClient = Depends(get_auth_client)):
    return await user_service.create_user(db, session, client, body.model_dump())


@router.patch("/users/{user_id}", response_model=UserOut, summary="Change role, branch or status")
async def update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db),
                      session: AuthSession = Depends(guard), client: AuthClient = Depends(get_auth_client)):
    return await user_service.update_user(db, session, client, user_id, body.model_dump(exclude_unset=True))


@router.delete("/users/{user_id}", summary="Delete a user")
async def delete_user(user_id: str, db: Session = Depends(get_db), session: AuthSession = Depends(guard),
                      client: AuthClient = Depends(get_auth_client)):
    await user_service.delete_user(db, session, client, user_id)
    return {"status": "deleted", "id": user_id}
