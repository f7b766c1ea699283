# fleetdesk/schemas/snag.py
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional
from fleetdesk.schemas.maintenance import MaintenanceLogIn, MaintenanceLogOut


class IssueIn(BaseModel):
    description: str = ""
    priority: Optional[str] = None    # Dangerous | Important | Nice to Fix | Aesthetic | none
    photo_urls: List[str] = Field(default_factory=list)


class SnagReport(BaseModel):
    vehicle_id: str
    issues: List[IssueIn]
    branch_id: Optional[str] = None
    mileage: Optional[int] = None


class SnagEdit(BaseModel):
    description: Optional[str] = None
    priority: Optional[str] = None


class SnagAssign(BaseModel):
    assigned_to: str
    deadline: Optional[date] = None
    notes: Optional[str] = None


class SnagResolve(BaseModel):
    resolution_method: str
    resolution_notes: str
    photo_urls: List[str] = Field(default_factory=list)
    maintenance_log: Optional[MaintenanceLogIn] = None


class SnagOut(BaseModel):
    id: str
    vehicle_id: str
    branch_id: str
    description: str
    priority: Optional[str]
    status: str
    date_opened: date
    date_closed: Optional[date]
    mileage_reported: Optional[int]
    photo_urls: Optional[List[str]]
    assigned_to: Optional[str]
    assignment_deadline: Optional[date]
    deleted_at: Optional[datetime] = None
    deletion_reason: Optional[str] = None

    class Config:
        from_attributes = True


class AssignmentOut(BaseModel):
    id: str
    snag_id: str
    assigned_to: str
    assigned_by: str
    assigned_at: datetime
    deadline: Optional[date]
    assignment_notes: Optional[str]
    status: str
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class ResolutionOut(BaseModel):
    id: str
    snag_id: str
    resolution_method: str
    resolution_notes: str
    resolved_by: str
    resolved_at: datetime
    photo_urls: Optional[List[str]]
    maintenance_log_id: Optional[str]

    class Config:
        from_attributes = True


class ResolveResult(BaseModel):
    snag: SnagOut
    resolution: ResolutionOut
    maintenance_log: Optional[MaintenanceLogOut] = None
    warning: Optional[str] = None


class UploadOut(BaseModel):
    url: str
    path: str
    size: int
