import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Planting(Base):
    __tablename__ = "plantings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    garden_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    garden_bed_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("garden_beds.id", ondelete="CASCADE"), index=True)
    seed_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("seeds.id", ondelete="CASCADE"), index=True)

    method: Mapped[Optional[str]] = mapped_column(
        Enum("direct", "presow", name="planting_method", native_enum=False)
    )
    status: Mapped[str] = mapped_column(
        Enum(
            "planned", "sown", "planted", "growing", "harvesting", "completed",
            name="planting_status", native_enum=False,
        ),
        default="planned",
    )

    # Placement: closed segment range [start_segment, start_segment + segments_used - 1]
    start_segment: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    segments_used: Mapped[Optional[int]] = mapped_column(Integer, default=1)

    # Planned milestones (planned_date is the ground date)
    planned_presow_date: Mapped[Optional[date]] = mapped_column(Date)
    planned_date: Mapped[Optional[date]] = mapped_column(Date, index=True)
    planned_harvest_start: Mapped[Optional[date]] = mapped_column(Date)
    planned_harvest_end: Mapped[Optional[date]] = mapped_column(Date)

    # What really happened
    actual_presow_date: Mapped[Optional[date]] = mapped_column(Date)
    actual_ground_date: Mapped[Optional[date]] = mapped_column(Date)
    actual_harvest_start: Mapped[Optional[date]] = mapped_column(Date)
    actual_harvest_end: Mapped[Optional[date]] = mapped_column(Date)

    color: Mapped[Optional[str]] = mapped_column(String(20))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    bed: Mapped["GardenBed"] = relationship(back_populates="plantings")
    seed: Mapped["Seed"] = relationship(back_populates="plantings")
    tasks: Mapped[list["Task"]] = relationship(back_populates="planting", cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    garden_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    planting_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("plantings.id", ondelete="CASCADE"), index=True)

    type: Mapped[str] = mapped_column(
        Enum("sow", "plant_out", "harvest_start", "harvest_end", name="task_type", native_enum=False)
    )
    due_date: Mapped[date] = mapped_column(Date, index=True)
    status: Mapped[str] = mapped_column(
        Enum("pending", "done", "skipped", name="task_status", native_enum=False), default="pending"
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    assignee_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    planting: Mapped["Planting"] = relationship(back_populates="tasks")
