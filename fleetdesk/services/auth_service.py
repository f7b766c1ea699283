# fleetdesk/services/auth_service.py
"""
Auth/session holder over the hosted auth service (GoTrue-style REST API).

AuthClient:  one per process. Created on startup, closed on shutdown
              (see main.py). Every call has an explicit timeout.
AuthSession: owned context for one signed-in client: user, role, branch,
              tokens. Built per request from the bearer token, or by the
              /auth routes when signing in.

The role is read only from app_metadata (set by admins through the service
key). A missing or unrecognised role leaves the session with no capability.
"""

import re
from typing import Optional

import httpx

from fleetdesk.config import settings
from fleetdesk.exceptions import AuthenticationError, BackendError, ValidationError
from fleetdesk.services.permissions import ROLES, NO_PERMISSIONS, PermissionSet, permissions_for
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

CONTACT_TYPES = ("email", "phone")

# Auth-state notifications that carry a usable session
SESSION_EVENTS = {"INITIAL_SESSION", "SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED"}


def normalize_identifier(identifier: str, contact_type: str = "email") -> str:
    """
    Phone numbers sign in through a synthetic e-mail (<digits>@phone.local)
    so no SMS verification is needed.
    """
    if contact_type not in CONTACT_TYPES:
        raise ValidationError(f"Unknown contact type '{contact_type}'")
    identifier = (identifier or "").strip()
    if not identifier:
        raise ValidationError(f"Please enter your {contact_type}")
    if contact_type == "phone":
        digits = re.sub(r"[^0-9+]", "", identifier)
        if not digits:
            raise ValidationError("Please enter a valid phone number")
        return f"{digits}@{settings.PHONE_LOGIN_DOMAIN}"
    return identifier.lower()


def derive_role(user: Optional[dict]) -> Optional[str]:
    if not user:
        return None
    role = (user.get("app_metadata") or {}).get("role")
    if role not in ROLES:
        logger.warning(f"[AUTH] User {user.get('id')} has no recognised role claim ({role!r}); no access granted")
        return None
    return role


def derive_branch(user: Optional[dict], role: Optional[str]) -> Optional[str]:
    if not user or role == "admin":
        return None
    return (user.get("app_metadata") or {}).get("branch_id")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class AuthClient:
    """Thin async wrapper around the hosted auth endpoints."""

    def __init__(self, base_url: str = None, api_key: str = None, service_key: str = None,
                 timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or settings.auth_url).rstrip("/")
        self.api_key = api_key or settings.SUPABASE_ANON_KEY
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_KEY
        self._http = httpx.AsyncClient(
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
            headers={"apikey": self.api_key},
        )

    async def close(self):
        await self._http.aclose()

    async def _request(self, method: str, path: str, token: str = None, **kwargs) -> dict:
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = await self._http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"[AUTH] {method} {path} timed out: {e}")
            raise BackendError("Authentication service timed out", status_code=504)
        except httpx.HTTPError as e:
            logger.error(f"[AUTH] {method} {path} failed: {e}")
            raise BackendError("Authentication service unavailable")

        if response.status_code in (400, 401, 403, 422):
            message = _error_message(response)
            logger.info(f"[AUTH] {method} {path} rejected ({response.status_code}): {message}")
            raise AuthenticationError(message)
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"[AUTH] {method} {path} returned HTTP {response.status_code}: {message}")
            raise BackendError(message)
        if not response.content:
            return {}
        return response.json()

    def _admin_headers(self) -> dict:
        if not self.service_key:
            raise BackendError("User administration is not configured (missing service key)", status_code=503)
        return {"apikey": self.service_key, "Authorization": f"Bearer {self.service_key}"}

    async def sign_up(self, email: str, password: str, metadata: dict) -> dict:
        return await self._request("POST", "/signup", json={"email": email, "password": password, "data": metadata})

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        return await self._request("POST", "/token", params={"grant_type": "password"},
                                   json={"email": email, "password": password})

    async def refresh_session(self, refresh_token: str) -> dict:
        return await self._request("POST", "/token", params={"grant_type": "refresh_token"},
                                   json={"refresh_token": refresh_token})

    async def sign_out(self, access_token: str):
        await self._request("POST", "/logout", token=access_token, params={"scope": "local"})

    async def get_user(self, access_token: str) -> dict:
        return await self._request("GET", "/user", token=access_token)

    async def admin_create_user(self, email: str, password: str, user_metadata: dict, app_metadata: dict) -> dict:
        return await self._request("POST", "/admin/users", headers=self._admin_headers(), json={
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": user_metadata,
            "app_metadata": app_metadata,
        })

    async def admin_update_user(self, user_id: str, app_metadata: dict = None, user_metadata: dict = None) -> dict:
        body = {}
        if app_metadata is not None:
            body["app_metadata"] = app_metadata
        if user_metadata is not None:
            body["user_metadata"] = user_metadata
        return await self._request("PUT", f"/admin/users/{user_id}", headers=self._admin_headers(), json=body)

    async def admin_delete_user(self, user_id: str):
        await self._request("DELETE", f"/admin/users/{user_id}", headers=self._admin_headers())


class AuthSession:
    """Current user, role and branch for one client, plus its tokens."""

    def __init__(self, client: AuthClient):
        self.client = client
        self._clear()

    def _clear(self):
        self.user: Optional[dict] = None
        self.role: Optional[str] = None
        self.branch_id: Optional[str] = None
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

    def _apply_user(self, user: dict):
        self.user = user
        self.role = derive_role(user)
        self.branch_id = derive_branch(user, self.role)

    def _apply_session(self, payload: dict):
        user = payload.get("user")
        if not user:
            self._clear()
            return
        self.access_token = payload.get("access_token", self.access_token)
        self.refresh_token = payload.get("refresh_token", self.refresh_token)
        self._apply_user(user)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.get("id") if self.user else None

    @property
    def permissions(self) -> PermissionSet:
        return permissions_for(self.role) if self.is_authenticated else NO_PERMISSIONS

    async def initialize(self, access_token: Optional[str], refresh_token: Optional[str] = None):
        """Load the user behind `access_token`. Errors leave the session logged out."""
        self._clear()
        if not access_token:
            return self
        try:
            user = await self.client.get_user(access_token)
        except (AuthenticationError, BackendError) as e:
            logger.info(f"[AUTH] Session lookup failed, treating as logged out: {e.message}")
            return self
        self.on_auth_state_change("INITIAL_SESSION", {
            "user": user, "access_token": access_token, "refresh_token": refresh_token,
        })
        return self

    async def sign_up(self, identifier: str, password: str, full_name: str, role: str,
                      branch_id: Optional[str] = None, contact_type: str = "email") -> dict:
        email = normalize_identifier(identifier, contact_type)
        payload = await self.client.sign_up(email, password, {
            "full_name": full_name,
            "role": role,
            "branch_id": branch_id or None,
            "phone_number": identifier if contact_type == "phone" else None,
            "login_type": contact_type,
        })
        logger.info(f"[AUTH] Signed up {email} (requested role={role})")
        if payload.get("access_token"):
            self.on_auth_state_change("SIGNED_IN", payload)
        return payload.get("user") or payload

    async def sign_in(self, identifier: str, password: str, contact_type: str = "email"):
        email = normalize_identifier(identifier, contact_type)
        payload = await self.client.sign_in_with_password(email, password)
        self.on_auth_state_change("SIGNED_IN", payload)
        if not self.is_authenticated:
            raise AuthenticationError("Invalid login credentials")
        logger.info(f"[AUTH] Signed in user={self.user_id} role={self.role}")
        return self

    async def sign_out(self):
        """Best effort: the local session is cleared even if the remote call fails."""
        token = self.access_token
        user_id = self.user_id
        try:
            if token:
                await self.client.sign_out(token)
        except (AuthenticationError, BackendError) as e:
            logger.warning(f"[AUTH] Remote sign-out failed for user={user_id}: {e.message}")
        finally:
            self.on_auth_state_change("SIGNED_OUT", None)
        logger.info(f"[AUTH] Signed out user={user_id}")

    async def refresh(self):
        if not self.refresh_token:
            raise AuthenticationError("No session to refresh")
        payload = await self.client.refresh_session(self.refresh_token)
        self.on_auth_state_change("TOKEN_REFRESHED", payload)
        return self

    def on_auth_state_change(self, event: str, payload: Optional[dict]):
        """Apply a notification from the auth service. No session or an error means logged out."""
        if event in SESSION_EVENTS and payload and payload.get("user"):
            self._apply_session(payload)
        else:
            self._clear()
        logger.debug(f"[AUTH] {event} → authenticated={self.is_authenticated} role={self.role}")

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.user.get("email") if self.user else None,
            "role": self.role,
            "branch_id": self.branch_id,
            "permissions": self.permissions.as_dict(),
        }
