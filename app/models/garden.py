import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Garden(Base):
    __tablename__ = "gardens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100))
    join_code: Mapped[Optional[str]] = mapped_column(String(20), unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    members: Mapped[list["GardenUser"]] = relationship(back_populates="garden", cascade="all, delete-orphan")
    beds: Mapped[list["GardenBed"]] = relationship(back_populates="garden", cascade="all, delete-orphan")
    seeds: Mapped[list["Seed"]] = relationship(back_populates="garden", cascade="all, delete-orphan")


class GardenUser(Base):
    __tablename__ = "garden_users"
    __table_args__ = (UniqueConstraint("garden_id", "user_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    garden_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    role: Mapped[str] = mapped_column(
        Enum("owner", "member", name="garden_role", native_enum=False), default="member"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    garden: Mapped["Garden"] = relationship(back_populates="members")
    profile: Mapped["Profile"] = relationship(back_populates="memberships")


class GardenBed(Base):
    __tablename__ = "garden_beds"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    garden_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    width_cm: Mapped[int] = mapped_column(Integer, default=100)
    length_cm: Mapped[int] = mapped_column(Integer, default=100)
    segments: Mapped[int] = mapped_column(Integer, default=1)
    is_greenhouse: Mapped[bool] = mapped_column(Boolean, default=False)

    # Layout only, not used for scheduling
    location_x: Mapped[float] = mapped_column(Float, default=0)
    location_y: Mapped[float] = mapped_column(Float, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    garden: Mapped["Garden"] = relationship(back_populates="beds")
    plantings: Mapped[list["Planting"]] = relationship(back_populates="bed", cascade="all, delete-orphan")
