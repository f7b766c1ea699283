# fleetdesk/deps.py
"""
FastAPI dependencies for the signed-in caller.

The AuthSession is built per request from the `Authorization: Bearer`
header; route gating reuses permissions.can_access_route so the API and the
dashboard navigation agree on who may open what.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from fleetdesk.exceptions import AuthenticationError, PermissionDeniedError
from fleetdesk.services.auth_service import AuthClient, AuthSession
from fleetdesk.services.permissions import can_access_route


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_optional_session(
    authorization: Optional[str] = Header(None),
    x_refresh_token: Optional[str] = Header(None),
    client: AuthClient = Depends(get_auth_client),
) -> AuthSession:
    session = AuthSession(client)
    await session.initialize(_bearer_token(authorization), x_refresh_token)
    return session


async def get_current_session(session: AuthSession = Depends(get_optional_session)) -> AuthSession:
    if not session.is_authenticated:
        raise AuthenticationError("Please sign in to continue")
    return session


def require_route(path: str):
    """Router-level guard: the caller's role must be allowed on `path`."""

    async def _guard(session: AuthSession = Depends(get_current_session)) -> AuthSession:
        if not can_access_route(session.role, path):
            raise PermissionDeniedError("You don't have permission to access this page")
        return session

    return _guard
