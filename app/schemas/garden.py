import uuid
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class GardenRead(BaseModel):
    id: uuid.UUID
    name: str
    join_code: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class BedRead(BaseModel):
    id: uuid.UUID
    garden_id: uuid.UUID
    name: str
    width_cm: int
    length_cm: int
    segments: int
    is_greenhouse: bool
    location_x: float
    location_y: float
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SeedRead(BaseModel):
    id: uuid.UUID
    garden_id: Optional[uuid.UUID]
    name: str
    in_stock: bool
    purchase_date: Optional[date]
    sowing_type: str
    greenhouse_compatible: bool
    presow_duration_weeks: Optional[int]
    grow_duration_weeks: Optional[int]
    harvest_duration_weeks: Optional[int]
    presow_months: Optional[list[int]]
    direct_plant_months: Optional[list[int]]
    greenhouse_months: Optional[list[int]]
    harvest_months: Optional[list[int]]
    row_spacing_cm: Optional[int]
    plant_spacing_cm: Optional[int]
    default_color: Optional[str]
    notes: Optional[str]

    model_config = {"from_attributes": True}


class BedOccupancyRead(BaseModel):
    garden_bed_id: uuid.UUID
    week_start: date
    occupancy_pct: float

    model_config = {"from_attributes": True}
