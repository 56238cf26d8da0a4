from __future__ import annotations
from datetime import date as dt_date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from models.laundry_slot import WINDOWS_BY_LABEL

# ---------- Booking ----------
class BookingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    machine_number: StrictInt = Field(ge=1)
    date: dt_date
    time_slot: StrictStr

    @field_validator("date", mode="before")
    @classmethod
    def _iso_string_only(cls, v):
        # только "YYYY-MM-DD", без timestamp-чисел
        if not isinstance(v, str):
            raise ValueError("iso_date_required")
        return v

    @field_validator("time_slot")
    @classmethod
    def _known_window(cls, v: str):
        v = v.strip()
        if v not in WINDOWS_BY_LABEL:
            raise ValueError("unknown_time_slot")
        return v

# ---------- Catalog filters ----------
class SlotQuery(BaseModel):
    date: Optional[dt_date] = None

# ---------- Output ----------
class OccupantOut(BaseModel):
    user_id: int
    student_id: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None

class HostelOut(BaseModel):
    name: str
    code: str

class SlotOut(BaseModel):
    id: int
    hostel_id: int
    machine_number: int
    date: dt_date
    time_slot: str
    status: str
    student_id: Optional[int] = None
    student: Optional[OccupantOut] = None
    hostel: Optional[HostelOut] = None
    created_at: str
    updated_at: str
