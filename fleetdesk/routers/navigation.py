# fleetdesk/routers/navigation.py
"""Route gating for the dashboard: which pages the caller may open."""

from fastapi import APIRouter, Depends

from fleetdesk.deps import get_current_session, get_optional_session
from fleetdesk.schemas.auth import RoleOut, RouteCheckOut
from fleetdesk.services.auth_service import AuthSession
from fleetdesk.services.permissions import (
    ROLES, permissions_for, resolve_route, role_description, role_label,
)

router = APIRouter()


@router.get("/navigation/check", response_model=RouteCheckOut, summary="May the caller open this page?")
async def check_route(path: str, session: AuthSession = Depends(get_optional_session)):
    decision = resolve_route(session, path)
    return RouteCheckOut(path=path, allowed=decision.allowed,
                         redirect_to=decision.redirect_to, reason=decision.reason)


@router.get("/navigation/roles", response_model=list[RoleOut], summary="Role → capability matrix")
async def list_roles(session: AuthSession = Depends(get_current_session)):
    return [
        RoleOut(role=role, label=role_label(role), description=role_description(role),
                permissions=permissions_for(role).as_dict())
        for role in ROLES
    ]
