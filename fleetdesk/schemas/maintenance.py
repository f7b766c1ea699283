# fleetdesk/schemas/maintenance.py
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional


class WorkItemIn(BaseModel):
    work_description: str = ""
    work_category: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list)


class MaintenanceLogIn(BaseModel):
    vehicle_id: Optional[str] = None
    branch_id: Optional[str] = None
    service_date: Optional[date] = None
    mileage: Optional[int] = None
    work_done: Optional[str] = None
    performed_by: Optional[str] = None
    performed_by_user_id: Optional[str] = None
    checked_by_user_id: Optional[str] = None
    work_category: Optional[str] = None
    notes: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list)
    work_items: List[WorkItemIn] = Field(default_factory=list)


class MaintenanceLogOut(BaseModel):
    id: str
    vehicle_id: str
    branch_id: str
    service_date: date
    mileage: int
    work_done: str
    performed_by: str
    performed_by_user_id: Optional[str]
    checked_by_user_id: Optional[str]
    work_category: Optional[str]
    notes: Optional[str]
    photo_urls: Optional[List[str]]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class WorkItemOut(BaseModel):
    id: str
    maintenance_log_id: str
    work_description: str
    work_category: Optional[str]
    photo_urls: Optional[List[str]]
    order_index: int

    class Config:
        from_attributes = True
