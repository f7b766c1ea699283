# fleetdesk/schemas/auth.py
from pydantic import BaseModel
from typing import Dict, Optional


class SignInRequest(BaseModel):
    identifier: str                   # e-mail address or phone number
    password: str
    contact_type: str = "email"


class SignUpRequest(BaseModel):
    identifier: str
    password: str
    confirm_password: str
    full_name: str
    role: str
    branch_id: Optional[str] = None
    contact_type: str = "email"


class RefreshRequest(BaseModel):
    refresh_token: str


class SessionOut(BaseModel):
    user_id: Optional[str]
    email: Optional[str]
    role: Optional[str]
    branch_id: Optional[str]
    permissions: Dict[str, bool]
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class RouteCheckOut(BaseModel):
    path: str
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None


class RoleOut(BaseModel):
    role: str
    label: str
    description: str
    permissions: Dict[str, bool]
