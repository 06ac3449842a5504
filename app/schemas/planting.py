import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PlantingMethod(str, Enum):
    direct = "direct"
    presow = "presow"


class AnchorType(str, Enum):
    presow = "presow"
    ground = "ground"
    harvest_start = "harvest_start"
    harvest_end = "harvest_end"


class PlantingCreate(BaseModel):
    garden_bed_id: uuid.UUID
    seed_id: uuid.UUID
    method: Optional[PlantingMethod] = None  # defaults to the seed's sowing type
    start_segment: int = Field(0, ge=0)
    segments_used: int = Field(1, ge=1)
    anchor_type: Optional[AnchorType] = None
    anchor_date: date
    color: Optional[str] = None
    notes: Optional[str] = None


class PlantingUpdate(BaseModel):
    color: Optional[str] = None
    notes: Optional[str] = None


class PlantingMove(BaseModel):
    garden_bed_id: Optional[uuid.UUID] = None
    start_segment: int = Field(ge=0)
    segments_used: Optional[int] = Field(None, ge=1)


class PlantingReschedule(BaseModel):
    anchor_type: AnchorType
    anchor_date: date
    method: Optional[PlantingMethod] = None


class EarliestFitRequest(BaseModel):
    start_date: Optional[date] = None  # defaults to the planting's current ground date


class PlantingRead(BaseModel):
    id: uuid.UUID
    garden_id: uuid.UUID
    garden_bed_id: uuid.UUID
    seed_id: uuid.UUID
    method: Optional[str]
    status: str
    start_segment: Optional[int]
    segments_used: Optional[int]
    planned_presow_date: Optional[date]
    planned_date: Optional[date]
    planned_harvest_start: Optional[date]
    planned_harvest_end: Optional[date]
    actual_presow_date: Optional[date]
    actual_ground_date: Optional[date]
    actual_harvest_start: Optional[date]
    actual_harvest_end: Optional[date]
    color: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlantingRef(BaseModel):
    id: uuid.UUID
    garden_bed_id: uuid.UUID
    seed_id: uuid.UUID
    start_segment: Optional[int]
    segments_used: Optional[int]
    planned_date: Optional[date]
    planned_harvest_end: Optional[date]

    model_config = {"from_attributes": True}


class FittingSegmentsRead(BaseModel):
    garden_bed_id: uuid.UUID
    segments: list[int]


class EarliestFitRead(BaseModel):
    found: bool
    garden_bed_id: Optional[uuid.UUID] = None
    start_segment: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class RecommendationRead(BaseModel):
    type: str
    description: str
    feasible: bool
    target_bed_id: Optional[uuid.UUID] = None
    target_segment: Optional[int] = None
    target_date: Optional[date] = None

    model_config = {"from_attributes": True}


class PlantingConflictsRead(BaseModel):
    planting_id: uuid.UUID
    conflicts_with: list[PlantingRef]
    likely_to_fix: bool
    recommendations: list[RecommendationRead]


class GardenConflictsRead(BaseModel):
    conflicts: dict[uuid.UUID, list[uuid.UUID]]
    unique_count: int


class PlantingRescheduleResult(BaseModel):
    planting: PlantingRead
    conflicts: list[PlantingRef]
