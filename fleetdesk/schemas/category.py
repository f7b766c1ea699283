# fleetdesk/schemas/category.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class CategoryIn(BaseModel):
    category_name: str
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    category_name: Optional[str] = None
    description: Optional[str] = None


class CategoryOut(BaseModel):
    id: str
    category_name: str
    description: Optional[str]
    created_at: Optional[datetime]
    vehicles: int = 0

    class Config:
        from_attributes = True
