import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel

from app.schemas.planting import PlantingRead, PlantingRef


class TaskRead(BaseModel):
    id: uuid.UUID
    garden_id: uuid.UUID
    planting_id: uuid.UUID
    type: Literal["sow", "plant_out", "harvest_start", "harvest_end"]
    due_date: date
    status: Literal["pending", "done", "skipped"]
    completed_at: Optional[datetime]
    assignee_user_id: Optional[uuid.UUID]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskComplete(BaseModel):
    performed_date: Optional[date] = None  # defaults to today


class TaskCompleteResult(BaseModel):
    task: TaskRead
    planting: PlantingRead
    conflicts: list[PlantingRef]


class TaskNotify(BaseModel):
    user_id: Optional[uuid.UUID] = None  # defaults to the caller
