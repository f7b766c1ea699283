# fleetdesk/routers/auth.py
"""
Sign-in / sign-up / refresh / sign-out against the hosted auth service.
Tokens are returned to the dashboard, which sends them back as
`Authorization: Bearer <access_token>` on every other call.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetdesk.database import get_db
from fleetdesk.deps import get_auth_client, get_current_session, get_optional_session
from fleetdesk.schemas.auth import RefreshRequest, SessionOut, SignInRequest, SignUpRequest
from fleetdesk.schemas.user import UserOut
from fleetdesk.services.auth_service import AuthClient, AuthSession
from fleetdesk.services.user_service import register_pending_user

router = APIRouter()


def _session_out(session: AuthSession, include_tokens: bool = True) -> SessionOut:
    data = session.as_dict()
    if include_tokens:
        data["access_token"] = session.access_token
        data["refresh_token"] = session.refresh_token
    return SessionOut(**data)


@router.post("/auth/sign-in", response_model=SessionOut, summary="Sign in with e-mail or phone")
async def sign_in(body: SignInRequest, client: AuthClient = Depends(get_auth_client)):
    session = AuthSession(client)
    await session.sign_in(body.identifier, body.password, body.contact_type)
    return _session_out(session)


@router.post("/auth/sign-up", response_model=UserOut, status_code=201, summary="Request an account")
async def sign_up(body: SignUpRequest, db: Session = Depends(get_db),
                  client: AuthClient = Depends(get_auth_client)):
    """The account stays inactive, with no role, until an administrator activates it."""
    return await register_pending_user(
        db, AuthSession(client), body.identifier, body.password, body.confirm_password,
        body.full_name, body.role, body.branch_id, body.contact_type,
    )


@router.post("/auth/refresh", response_model=SessionOut, summary="Exchange a refresh token")
async def refresh(body: RefreshRequest, client: AuthClient = Depends(get_auth_client)):
    session = AuthSession(client)
    session.refresh_token = body.refresh_token
    await session.refresh()
    return _session_out(session)


@router.post("/auth/sign-out", summary="Sign out (best effort)")
async def sign_out(session: AuthSession = Depends(get_optional_session)):
    await session.sign_out()
    return {"status": "signed_out"}


@router.get("/auth/session", response_model=SessionOut, summary="Current user, role, branch and permissions")
async def current_session(session: AuthSession = Depends(get_current_session)):
    return _session_out(session, include_tokens=False)
