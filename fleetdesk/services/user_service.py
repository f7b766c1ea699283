# fleetdesk/services/user_service.py
"""
User management.

Every account lives in two places: the hosted auth service (credentials,
plus the role/branch claims in app_metadata that sessions are built from)
and the local `users` table (profile, status, branch scoping for lists).
Admin operations change the auth service first, so a remote failure leaves
the local row untouched.

Public sign-up creates an *inactive* row and no claims: the account has no
capability until an admin activates it through update_user.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleetdesk.config import settings
from fleetdesk.database import commit_or_rollback
from fleetdesk.exceptions import BackendError, ConflictError, NotFoundError, ValidationError
from fleetdesk.models.branch import Branch
from fleetdesk.models.user import User, ROLES
from fleetdesk.services.auth_service import normalize_identifier
from fleetdesk.services.permissions import require, scope_branch
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)

USER_STATUSES = ("active", "inactive")


def validate_password(password: Optional[str], confirm: Optional[str] = None):
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match")


def _check_role_branch(db: Session, role: str, branch_id: Optional[str]) -> Optional[str]:
    """Admins are global; every other role needs an existing branch."""
    if role not in ROLES:
        raise ValidationError(f"Invalid role '{role}'")
    if role == "admin":
        return None
    if not branch_id:
        raise ValidationError("Please select a branch for this user")
    if not db.query(Branch).filter(Branch.id == branch_id).first():
        raise NotFoundError(f"Branch '{branch_id}' not found")
    return branch_id


def list_users(db: Session, session, role: str = None, include_inactive: bool = True):
    q = db.query(User).filter(User.deleted_at.is_(None))
    branch_id = scope_branch(session)
    if branch_id:
        q = q.filter(User.branch_id == branch_id)
    if role:
        q = q.filter(User.role == role)
    if not include_inactive:
        q = q.filter(User.status == "active")
    return q.order_by(User.full_name).all()


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if not user:
        raise NotFoundError(f"User '{user_id}' not found")
    return user


def user_stats(db: Session, session) -> dict:
    """Counts for the user-management header: total, active, per role."""
    require(session, "can_manage_users")
    rows = (
        db.query(User.role, User.status, func.count(User.id))
        .filter(User.deleted_at.is_(None))
        .group_by(User.role, User.status)
        .all()
    )
    stats = {"total": 0, "active": 0, "inactive": 0, "by_role": {role: 0 for role in ROLES}}
    for role, status, count in rows:
        stats["total"] += count
        stats["active" if status == "active" else "inactive"] += count
        if role in stats["by_role"]:
            stats["by_role"][role] += count
    return stats


async def create_user(db: Session, session, auth_client, data: dict) -> User:
    """Admin-created account: active immediately, claims set at creation."""
    require(session, "can_manage_users")
    full_name = (data.get("full_name") or "").strip()
    if not full_name:
        raise ValidationError("Full name is required")
    contact_type = data.get("contact_type") or "email"
    identifier = data.get("email") if contact_type == "email" else data.get("phone_number")
    email = normalize_identifier(identifier, contact_type)
    validate_password(data.get("password"), data.get("confirm_password"))
    role = data.get("role")
    branch_id = _check_role_branch(db, role, data.get("branch_id"))

    remote = await auth_client.admin_create_user(
        email,
        data["password"],
        user_metadata={
            "full_name": full_name,
            "phone_number": data.get("phone_number"),
            "login_type": contact_type,
        },
        app_metadata={"role": role, "branch_id": branch_id},
    )
    remote_user = remote.get("user", remote)

    user = User(
        id=remote_user["id"],
        email=email,
        phone_number=data.get("phone_number"),
        full_name=full_name,
        role=role,
        branch_id=branch_id,
        status="active",
    )
    db.add(user)
    try:
        commit_or_rollback(db, "create user")
    except (SQLAlchemyError, ConflictError):
        logger.error(f"[USERS] Local row for {email} failed; removing auth account {user.id}")
        try:
            await auth_client.admin_delete_user(user.id)
        except BackendError as e:
            logger.error(f"[USERS] Could not remove orphaned auth account {user.id}: {e.message}")
        raise
    db.refresh(user)
    logger.info(f"[USERS] Created {email} role={role} branch={branch_id} by user={session.user_id}")
    return user


def _claims(role: Optional[str], branch_id: Optional[str], status: str) -> dict:
    """Inactive accounts keep no role claim."""
    return {"role": role if status == "active" else None, "branch_id": branch_id}


async def update_user(db: Session, session, auth_client, user_id: str, data: dict) -> User:
    require(session, "can_manage_users")
    user = get_user(db, user_id)

    role = data.get("role") or user.role
    if user.id == session.user_id and role != user.role:
        raise ValidationError("You cannot change your own role")
    status = data.get("status") or user.status
    if status not in USER_STATUSES:
        raise ValidationError(f"Invalid status '{status}'")
    if user.id == session.user_id and status != "active":
        raise ValidationError("You cannot deactivate your own account")
    branch_id = _check_role_branch(db, role, data.get("branch_id", user.branch_id))
    if "full_name" in data and not (data["full_name"] or "").strip():
        raise ValidationError("Full name is required")

    previous_claims = _claims(user.role, user.branch_id, user.status)
    claims_changed = (role, branch_id, status) != (user.role, user.branch_id, user.status)
    if claims_changed:
        await auth_client.admin_update_user(user.id, app_metadata=_claims(role, branch_id, status))

    if "full_name" in data:
        user.full_name = data["full_name"].strip()
    if "phone_number" in data:
        user.phone_number = data["phone_number"] or None
    user.role = role
    user.branch_id = branch_id
    user.status = status
    try:
        commit_or_rollback(db, "update user")
    except (SQLAlchemyError, ConflictError):
        if claims_changed:
            logger.error(f"[USERS] Local update of {user_id} failed; restoring its previous claims")
            try:
                await auth_client.admin_update_user(user_id, app_metadata=previous_claims)
            except BackendError as e:
                logger.error(f"[USERS] Could not restore claims for {user_id}: {e.message}")
        raise
    db.refresh(user)
    logger.info(f"[USERS] Updated {user.id} role={role} branch={branch_id} status={status} "
                f"by user={session.user_id}")
    return user


async def delete_user(db: Session, session, auth_client, user_id: str):
    """Remove the auth account, keep the row (soft delete) for history."""
    require(session, "can_manage_users")
    user = get_user(db, user_id)
    if user.id == session.user_id:
        raise ValidationError("You cannot delete your own account")
    await auth_client.admin_delete_user(user.id)
    user.deleted_at = datetime.utcnow()
    user.status = "inactive"
    commit_or_rollback(db, "delete user")
    logger.info(f"[USERS] Deleted {user.id} ({user.full_name}) by user={session.user_id}")


async def register_pending_user(db: Session, auth_session, identifier: str, password: str,
                                confirm_password: str, full_name: str, role: str,
                                branch_id: Optional[str] = None, contact_type: str = "email") -> User:
    """Public sign-up. The requested role is recorded but grants nothing until an admin activates it."""
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("Full name is required")
    validate_password(password, confirm_password)
    if role not in ROLES:
        raise ValidationError(f"Invalid role '{role}'")
    if role == "admin":
        raise ValidationError("Administrator accounts can only be created by an administrator")
    if not branch_id:
        raise ValidationError("Please select your branch")

    remote_user = await auth_session.sign_up(identifier, password, full_name, role, branch_id, contact_type)
    user = User(
        id=remote_user["id"],
        email=normalize_identifier(identifier, contact_type),
        phone_number=identifier if contact_type == "phone" else None,
        full_name=full_name,
        role=role,
        branch_id=branch_id,
        status="inactive",
    )
    db.add(user)
    commit_or_rollback(db, "register user")
    db.refresh(user)
    logger.info(f"[USERS] {user.email} signed up (pending activation, requested role={role})")
    return user
