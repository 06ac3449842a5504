import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import ARRAY, JSON, Boolean, Date, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

# int[] on Postgres, JSON elsewhere (test databases)
MonthList = JSON().with_variant(ARRAY(Integer), "postgresql")


class Seed(Base):
    __tablename__ = "seeds"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    garden_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("gardens.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(200))
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True)
    purchase_date: Mapped[Optional[date]] = mapped_column(Date)

    sowing_type: Mapped[str] = mapped_column(
        Enum("direct", "presow", name="sowing_type", native_enum=False), default="direct"
    )
    greenhouse_compatible: Mapped[bool] = mapped_column(Boolean, default=False)

    # Durations driving the schedule
    presow_duration_weeks: Mapped[Optional[int]] = mapped_column(Integer)
    grow_duration_weeks: Mapped[Optional[int]] = mapped_column(Integer)
    harvest_duration_weeks: Mapped[Optional[int]] = mapped_column(Integer)

    # Month eligibility (UI filtering only)
    presow_months: Mapped[Optional[list[int]]] = mapped_column(MonthList)
    direct_plant_months: Mapped[Optional[list[int]]] = mapped_column(MonthList)
    greenhouse_months: Mapped[Optional[list[int]]] = mapped_column(MonthList)
    harvest_months: Mapped[Optional[list[int]]] = mapped_column(MonthList)

    row_spacing_cm: Mapped[Optional[int]] = mapped_column(Integer)
    plant_spacing_cm: Mapped[Optional[int]] = mapped_column(Integer)
    default_color: Mapped[Optional[str]] = mapped_column(String(20))
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
    garden: Mapped[Optional["Garden"]] = relationship(back_populates="seeds")
    plantings: Mapped[list["Planting"]] = relationship(back_populates="seed")
