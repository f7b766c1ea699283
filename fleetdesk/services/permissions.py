# fleetdesk/services/permissions.py
"""
Role → capability matrix and route gating.

This is the single authorization decision point: routers gate paths through
can_access_route / resolve_route, and services gate actions through
require / can_act_on_branch. Unknown or missing roles get no capability.
"""

from dataclasses import dataclass, fields
from typing import Optional
from urllib.parse import quote

from fleetdesk.exceptions import PermissionDeniedError
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

ROLES = ("admin", "manager", "mechanic", "driver")

LOGIN_PATH = "/login"
PUBLIC_PATHS = {LOGIN_PATH, "/signup", "/oauth/callback"}


@dataclass(frozen=True)
class PermissionSet:
    can_view_all: bool = False
    can_create_global: bool = False
    can_edit_global: bool = False
    can_delete_global: bool = False
    can_create_in_branch: bool = False
    can_edit_in_branch: bool = False
    can_delete_in_branch: bool = False
    can_manage_users: bool = False
    can_manage_branches: bool = False
    can_view_reports: bool = False

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


NO_PERMISSIONS = PermissionSet()

_MATRIX = {
    "admin": PermissionSet(
        can_view_all=True,
        can_create_global=True,
        can_edit_global=True,
        can_delete_global=True,
        can_create_in_branch=True,
        can_edit_in_branch=True,
        can_delete_in_branch=True,
        can_manage_users=True,
        can_manage_branches=True,
        can_view_reports=True,
    ),
    "manager": PermissionSet(
        can_create_in_branch=True,
        can_edit_in_branch=True,
        can_delete_in_branch=True,
        can_view_reports=True,
    ),
    "mechanic": PermissionSet(
        can_create_in_branch=True,
        can_edit_in_branch=True,
    ),
    "driver": PermissionSet(
        can_edit_in_branch=True,
    ),
}

_LABELS = {
    "admin": "Administrator",
    "manager": "Manager",
    "mechanic": "Mechanic",
    "driver": "Driver",
}

_DESCRIPTIONS = {
    "admin": "Full access to all features and data across all branches. Can manage users and system settings.",
    "manager": "Full access to their assigned branch. Can create, edit, and delete data within their branch.",
    "mechanic": "Can perform maintenance work, update vehicle health, and report snags within their assigned branch.",
    "driver": "Can update mileage, view bookings, and update location information for vehicles they operate.",
}

# Per-route role allow-lists, checked after the capability special cases.
# Keys are path prefixes; the longest matching prefix wins.
ROUTE_ROLES = {
    "/bookings": {"admin", "manager"},
    "/quotation": {"admin", "manager"},
    "/quotes": {"admin", "manager"},
    "/invoices": {"admin", "manager"},
    "/pricing": {"admin"},
    "/users": {"admin"},
    "/settings": {"admin"},
}

# Capability required for a path prefix, independent of the allow-lists.
ROUTE_CAPABILITIES = {
    "/users": "can_manage_users",
    "/user-management": "can_manage_users",
    "/settings": "can_manage_branches",
    "/reports": "can_view_reports",
}


def permissions_for(role: Optional[str]) -> PermissionSet:
    """Capabilities of a role. Anything outside ROLES gets NO_PERMISSIONS."""
    return _MATRIX.get(role, NO_PERMISSIONS) if isinstance(role, str) else NO_PERMISSIONS


def role_label(role: Optional[str]) -> str:
    return _LABELS.get(role, role or "")


def role_description(role: Optional[str]) -> str:
    return _DESCRIPTIONS.get(role, "")


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _longest_prefix(path: str, table: dict) -> Optional[str]:
    matches = [p for p in table if _matches(path, p)]
    return max(matches, key=len) if matches else None


def can_access_route(role: Optional[str], path: str) -> bool:
    """
    True when `role` may open `path`.
    /users* needs can_manage_users, /settings* needs can_manage_branches,
    /reports* needs can_view_reports; then ROUTE_ROLES applies; any other
    path is open to every recognised role.
    """
    permissions = permissions_for(role)
    if permissions == NO_PERMISSIONS:
        return False

    path = "/" + path.strip().strip("/").split("?")[0]

    capability_prefix = _longest_prefix(path, ROUTE_CAPABILITIES)
    if capability_prefix and not getattr(permissions, ROUTE_CAPABILITIES[capability_prefix]):
        return False

    roles_prefix = _longest_prefix(path, ROUTE_ROLES)
    if roles_prefix and role not in ROUTE_ROLES[roles_prefix]:
        return False

    return True


@dataclass(frozen=True)
class RouteDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None


def resolve_route(session, path: str) -> RouteDecision:
    """
    Navigation decision for the dashboard router.
    Unauthenticated callers on a gated path are sent to the login page with
    the original path carried in ?redirect=.
    """
    clean = "/" + path.strip().strip("/")
    if clean.split("?")[0] in PUBLIC_PATHS:
        return RouteDecision(allowed=True)

    if session is None or not session.is_authenticated:
        return RouteDecision(
            allowed=False,
            redirect_to=f"{LOGIN_PATH}?redirect={quote(clean, safe='/')}",
            reason="Sign in required",
        )

    if not can_access_route(session.role, clean):
        return RouteDecision(allowed=False, reason="You don't have permission to access this page")

    return RouteDecision(allowed=True)


def require(session, capability: str, message: Optional[str] = None) -> PermissionSet:
    """Raise PermissionDeniedError unless the session holds `capability`."""
    permissions = permissions_for(getattr(session, "role", None))
    if not getattr(permissions, capability, False):
        user_id = getattr(session, "user_id", None)
        logger.warning(f"[AUTHZ] Denied {capability} for user={user_id} role={getattr(session, 'role', None)}")
        raise PermissionDeniedError(message or "You don't have permission to perform this action")
    return permissions


def can_act_on_branch(session, branch_id: Optional[str], action: str) -> bool:
    """
    action is one of "create", "edit", "delete".
    Global capability covers any branch and unassigned records (branch_id
    None); the in-branch capability only covers the caller's own branch.
    """
    permissions = permissions_for(getattr(session, "role", None))
    if getattr(permissions, f"can_{action}_global", False):
        return True
    if not getattr(permissions, f"can_{action}_in_branch", False):
        return False
    own_branch = getattr(session, "branch_id", None)
    return own_branch is not None and branch_id == own_branch


def require_branch_action(session, branch_id: Optional[str], action: str, what: str = "this record"):
    if not can_act_on_branch(session, branch_id, action):
        logger.warning(
            f"[AUTHZ] Denied {action} on {what} branch={branch_id} "
            f"for user={getattr(session, 'user_id', None)} role={getattr(session, 'role', None)}"
        )
        raise PermissionDeniedError(f"You don't have permission to {action} {what}")


def scope_branch(session) -> Optional[str]:
    """Branch filter for list queries. None means every branch."""
    if permissions_for(getattr(session, "role", None)).can_view_all:
        return None
    return getattr(session, "branch_id", None) or "__no_branch__"


def in_scope(session, branch_id: Optional[str]) -> bool:
    """Whether a record in `branch_id` is visible to the caller. Mirrors scope_branch."""
    scope = scope_branch(session)
    return scope is None or branch_id == scope
