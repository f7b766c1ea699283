# fleetdesk/schemas/user.py
from pydantic import BaseModel
from datetime import datetime
from typing import Dict, Optional


class UserCreate(BaseModel):
    full_name: str
    contact_type: str = "email"       # email | phone
    email: Optional[str] = None
    phone_number: Optional[str] = None
    password: str
    confirm_password: str
    role: str
    branch_id: Optional[str] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: Optional[str] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: Optional[str]
    phone_number: Optional[str]
    full_name: str
    role: str
    branch_id: Optional[str]
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class UserStatsOut(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: Dict[str, int]
