import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import CurrentUser, get_db
from app.models.garden import Garden, GardenUser
from app.models.seed import Seed
from app.schemas.garden import BedOccupancyRead, BedRead, GardenRead, SeedRead
from app.schemas.planting import GardenConflictsRead, PlantingRead
from app.services.fit import build_conflicts_map, count_unique_conflicts
from app.services.occupancy import bed_occupancy_by_week
from app.services.planting_service import load_garden_beds, load_garden_plantings

router = APIRouter(prefix="/gardens", tags=["gardens"])


# ── Gardens ──────────────────────────────────────────────────────────────────


@router.get("", response_model=list[GardenRead])
async def list_gardens(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Garden)
        .join(GardenUser, GardenUser.garden_id == Garden.id)
        .where(GardenUser.user_id == current_user.id)
        .order_by(Garden.created_at)
    )
    return result.scalars().all()


@router.get("/{garden_id}", response_model=GardenRead)
async def get_garden(garden_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await _get_member_garden(db, garden_id, current_user.id)


# ── Beds, seeds, plantings ───────────────────────────────────────────────────


@router.get("/{garden_id}/beds", response_model=list[BedRead])
async def list_beds(garden_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await _get_member_garden(db, garden_id, current_user.id)
    return await load_garden_beds(db, garden_id)


@router.get("/{garden_id}/seeds", response_model=list[SeedRead])
async def list_seeds(
    garden_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    in_stock: Optional[bool] = Query(None),
):
    await _get_member_garden(db, garden_id, current_user.id)
    q = select(Seed).where(or_(Seed.garden_id == garden_id, Seed.garden_id.is_(None)))
    if in_stock is not None:
        q = q.where(Seed.in_stock.is_(in_stock))
    result = await db.execute(q.order_by(Seed.name))
    return result.scalars().all()


@router.get("/{garden_id}/plantings", response_model=list[PlantingRead])
async def list_plantings(garden_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await _get_member_garden(db, garden_id, current_user.id)
    return await load_garden_plantings(db, garden_id)


# ── Planning views ───────────────────────────────────────────────────────────


@router.get("/{garden_id}/conflicts", response_model=GardenConflictsRead)
async def get_garden_conflicts(
    garden_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await _get_member_garden(db, garden_id, current_user.id)
    conflicts = build_conflicts_map(await load_garden_plantings(db, garden_id))
    return GardenConflictsRead(
        conflicts={pid: [p.id for p in others] for pid, others in conflicts.items()},
        unique_count=count_unique_conflicts(conflicts),
    )


@router.get("/{garden_id}/occupancy", response_model=list[BedOccupancyRead])
async def get_bed_occupancy(
    garden_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    start: Optional[date] = Query(None, description="Any day in the first week; defaults to today"),
    weeks: int = Query(8, ge=1, le=104),
):
    await _get_member_garden(db, garden_id, current_user.id)
    beds = await load_garden_beds(db, garden_id)
    plantings = await load_garden_plantings(db, garden_id)
    return bed_occupancy_by_week(beds, plantings, start or date.today(), weeks)


# ── Helpers ───────────────────────────────────────────────────────────────────


async def _get_member_garden(db: AsyncSession, garden_id: uuid.UUID, user_id: uuid.UUID) -> Garden:
    result = await db.execute(
        select(Garden)
        .join(GardenUser, GardenUser.garden_id == Garden.id)
        .where(Garden.id == garden_id, GardenUser.user_id == user_id)
    )
    garden = result.scalar_one_or_none()
    if not garden:
        raise HTTPException(status_code=404, detail="Garden not found")
    return garden
