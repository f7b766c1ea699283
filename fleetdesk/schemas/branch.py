# fleetdesk/schemas/branch.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class BranchIn(BaseModel):
    branch_name: str
    location: str
    contact_info: Optional[str] = None


class BranchUpdate(BaseModel):
    branch_name: Optional[str] = None
    location: Optional[str] = None
    contact_info: Optional[str] = None


class BranchOut(BaseModel):
    id: str
    branch_name: str
    location: str
    contact_info: Optional[str]
    created_at: Optional[datetime]
    vehicles: int = 0
    users: int = 0

    class Config:
        from_attributes = True
