# backend/scheduler/schemas/therapists.py

from datetime import date
from typing import Optional
from pydantic import BaseModel


class TherapistCreate(BaseModel):
    name: str
    specialty: str
    color: str = "#3b82f6"
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class TherapistUpdate(BaseModel):
    name: Optional[str] = None
    specialty: Optional[str] = None
    color: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None

    model_config = {"from_attributes": True}


class TherapistRead(BaseModel):
    id: int
    name: str
    specialty: str
    color: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class TherapistStatsRead(BaseModel):
    therapist_id: int
    week_start: date
    availability: int
    occupancy: int
