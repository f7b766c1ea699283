# fleetdesk/schemas/vehicle.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class VehicleCreate(BaseModel):
    reg_number: str
    category_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: str = "Available"
    current_mileage: int = 0
    make: Optional[str] = None
    model: Optional[str] = None
    colour: Optional[str] = None
    fuel_type: Optional[str] = None
    insurance_expiry: Optional[date] = None
    mot_expiry: Optional[date] = None
    is_personal: bool = False
    is_draft: bool = False


class VehicleUpdate(BaseModel):
    reg_number: Optional[str] = None
    category_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None
    current_mileage: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    colour: Optional[str] = None
    fuel_type: Optional[str] = None
    insurance_expiry: Optional[date] = None
    mot_expiry: Optional[date] = None
    is_personal: Optional[bool] = None
    is_draft: Optional[bool] = None


class HealthUpdate(BaseModel):
    health_flag: str          # Excellent | OK | Grounded
    notes: Optional[str] = None


class MileageUpdate(BaseModel):
    mileage: int


class VehicleOut(BaseModel):
    id: str
    reg_number: str
    category_id: Optional[str]
    branch_id: Optional[str]
    status: str
    health_flag: str
    health_override: bool
    current_mileage: int
    last_mileage_update: Optional[datetime]
    make: Optional[str]
    model: Optional[str]
    colour: Optional[str]
    fuel_type: Optional[str]
    insurance_expiry: Optional[date]
    mot_expiry: Optional[date]
    is_personal: bool
    is_draft: bool

    class Config:
        from_attributes = True


class SnagCounts(BaseModel):
    total: int
    dangerous: int
    important: int
    nice_to_fix: int
    aesthetic: int
    unallocated: int


class VehicleSnagSummary(BaseModel):
    vehicle: VehicleOut
    snag_counts: SnagCounts
    next_booking_id: Optional[str] = None
    next_booking_start: Optional[datetime] = None
    days_to_next_booking: Optional[int] = None


class ActivityOut(BaseModel):
    id: str
    vehicle_id: str
    user_id: Optional[str]
    user_name: Optional[str]
    user_role: Optional[str]
    field_changed: str
    old_value: Optional[str]
    new_value: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class MileageLogOut(BaseModel):
    id: str
    vehicle_id: str
    reading_datetime: datetime
    mileage_reading: int
    km_since_last: Optional[int]
    days_since_last: Optional[int]
    km_per_day: Optional[float]

    class Config:
        from_attributes = True
