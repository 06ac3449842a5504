import uuid
from datetime import date
from types import SimpleNamespace
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.deps import CurrentUser, get_db
from app.models.garden import GardenBed, GardenUser
from app.models.schedule import Planting
from app.models.seed import Seed
from app.schemas.planting import (
    EarliestFitRead,
    EarliestFitRequest,
    FittingSegmentsRead,
    PlantingConflictsRead,
    PlantingCreate,
    PlantingMove,
    PlantingRead,
    PlantingRef,
    PlantingReschedule,
    PlantingRescheduleResult,
    PlantingUpdate,
    RecommendationRead,
)
from app.services.conflict_resolution import conflict_details
from app.services.fit import (
    all_fitting_segments_in_bed,
    bed_segments,
    build_conflicts_map,
    find_earliest_fit_across_beds,
    fits_in_bed_at_segment,
    has_date_range,
)
from app.services.planting_service import (
    apply_schedule,
    load_garden_beds,
    load_garden_plantings,
    reschedule,
    sync_planting_tasks,
)
from app.services.schedule import default_anchor, method_for_seed

router = APIRouter(prefix="/plantings", tags=["plantings"])


# ── Plantings ─────────────────────────────────────────────────────────────────


@router.post("", response_model=PlantingRead, status_code=status.HTTP_201_CREATED)
async def create_planting(
    data: PlantingCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    bed = await _get_member_bed(db, data.garden_bed_id, current_user.id)
    seed = await db.scalar(
        select(Seed).where(
            Seed.id == data.seed_id,
            or_(Seed.garden_id == bed.garden_id, Seed.garden_id.is_(None)),
        )
    )
    if not seed:
        raise HTTPException(status_code=404, detail="Seed not found")

    method = data.method.value if data.method else method_for_seed(seed)
    anchor = data.anchor_type.value if data.anchor_type else default_anchor(method)

    planting = Planting(
        garden_id=bed.garden_id,
        garden_bed_id=bed.id,
        seed_id=seed.id,
        method=method,
        start_segment=data.start_segment,
        segments_used=data.segments_used,
        color=data.color or seed.default_color,
        notes=data.notes,
    )
    apply_schedule(planting, seed, anchor, data.anchor_date)

    plantings = await load_garden_plantings(db, bed.garden_id)
    _check_placement(bed, plantings, planting, data.start_segment)

    db.add(planting)
    await db.flush()
    await sync_planting_tasks(db, planting)
    await db.commit()
    await db.refresh(planting)
    return planting


@router.get("/{planting_id}", response_model=PlantingRead)
async def get_planting(
    planting_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    return await _get_member_planting(db, planting_id, current_user.id)


@router.patch("/{planting_id}", response_model=PlantingRead)
async def update_planting(
    planting_id: uuid.UUID,
    data: PlantingUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(planting, field, value)
    await db.commit()
    await db.refresh(planting)
    return planting


@router.delete("/{planting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_planting(
    planting_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    await db.delete(planting)
    await db.commit()


# ── Placement ─────────────────────────────────────────────────────────────────


@router.post("/{planting_id}/move", response_model=PlantingRead)
async def move_planting(
    planting_id: uuid.UUID,
    data: PlantingMove,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    bed = await _get_target_bed(db, planting, data.garden_bed_id, current_user.id)

    candidate = SimpleNamespace(
        id=planting.id,
        segments_used=data.segments_used or planting.segments_used,
        planned_date=planting.planned_date,
        planned_harvest_end=planting.planned_harvest_end,
    )
    plantings = await load_garden_plantings(db, planting.garden_id)
    _check_placement(bed, plantings, candidate, data.start_segment)

    planting.garden_bed_id = bed.id
    planting.start_segment = data.start_segment
    planting.segments_used = candidate.segments_used
    await db.commit()
    await db.refresh(planting)
    return planting


@router.post("/{planting_id}/reschedule", response_model=PlantingRescheduleResult)
async def reschedule_planting(
    planting_id: uuid.UUID,
    data: PlantingReschedule,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    conflicts = await reschedule(
        db,
        planting,
        data.anchor_type.value,
        data.anchor_date,
        method=data.method.value if data.method else None,
    )
    return PlantingRescheduleResult(
        planting=PlantingRead.model_validate(planting),
        conflicts=[PlantingRef.model_validate(p) for p in conflicts],
    )


@router.get("/{planting_id}/fitting-segments", response_model=FittingSegmentsRead)
async def get_fitting_segments(
    planting_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    bed_id: Optional[uuid.UUID] = Query(None, description="Defaults to the planting's current bed"),
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    bed = await _get_target_bed(db, planting, bed_id, current_user.id)
    plantings = await load_garden_plantings(db, planting.garden_id)
    return FittingSegmentsRead(
        garden_bed_id=bed.id,
        segments=all_fitting_segments_in_bed(bed, plantings, planting),
    )


@router.post("/{planting_id}/earliest-fit", response_model=EarliestFitRead)
async def get_earliest_fit(
    planting_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    data: EarliestFitRequest = EarliestFitRequest(),
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    beds = await load_garden_beds(db, planting.garden_id)
    plantings = await load_garden_plantings(db, planting.garden_id)
    start = data.start_date or planting.planned_date or date.today()

    fit = find_earliest_fit_across_beds(
        beds, plantings, planting, start, settings.FIT_SEARCH_HORIZON_DAYS
    )
    if fit is None:
        return EarliestFitRead(found=False)
    return EarliestFitRead(
        found=True,
        garden_bed_id=fit.bed_id,
        start_segment=fit.start_segment,
        start_date=fit.date,
        end_date=fit.end,
    )


@router.get("/{planting_id}/conflicts", response_model=PlantingConflictsRead)
async def get_planting_conflicts(
    planting_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    planting = await _get_member_planting(db, planting_id, current_user.id)
    beds = await load_garden_beds(db, planting.garden_id)
    plantings = await load_garden_plantings(db, planting.garden_id)

    detail = conflict_details(
        planting, planting.seed, beds, plantings, build_conflicts_map(plantings),
        settings.FIT_SEARCH_HORIZON_DAYS,
    )
    return PlantingConflictsRead(
        planting_id=planting.id,
        conflicts_with=[PlantingRef.model_validate(p) for p in detail.conflicts_with],
        likely_to_fix=detail.likely_to_fix,
        recommendations=[RecommendationRead.model_validate(r) for r in detail.recommendations],
    )


# ── Helpers ───────────────────────────────────────────────────────────────────


def _check_placement(bed: GardenBed, plantings: list[Planting], candidate, start_segment: int) -> None:
    """
    Raise 409 when `candidate` can't go at `start_segment` in `bed`. Plantings
    without a complete date range can't overlap anything, so only their bounds
    are checked.
    """
    used = candidate.segments_used or 1
    if has_date_range(candidate):
        if fits_in_bed_at_segment(bed, plantings, candidate, start_segment):
            return
        fitting = all_fitting_segments_in_bed(bed, plantings, candidate)
    else:
        if start_segment + used <= bed_segments(bed):
            return
        fitting = list(range(0, bed_segments(bed) - used + 1))

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": f"Planting does not fit in {bed.name} at segment {start_segment}",
            "fitting_segments": fitting,
        },
    )


async def _get_member_bed(db: AsyncSession, bed_id: uuid.UUID, user_id: uuid.UUID) -> GardenBed:
    result = await db.execute(
        select(GardenBed)
        .join(GardenUser, GardenUser.garden_id == GardenBed.garden_id)
        .where(GardenBed.id == bed_id, GardenUser.user_id == user_id)
    )
    bed = result.scalar_one_or_none()
    if not bed:
        raise HTTPException(status_code=404, detail="Bed not found")
    return bed


async def _get_target_bed(
    db: AsyncSession, planting: Planting, bed_id: Optional[uuid.UUID], user_id: uuid.UUID
) -> GardenBed:
    bed = await _get_member_bed(db, bed_id or planting.garden_bed_id, user_id)
    if bed.garden_id != planting.garden_id:
        raise HTTPException(status_code=404, detail="Bed not found")
    return bed


async def _get_member_planting(
    db: AsyncSession, planting_id: uuid.UUID, user_id: uuid.UUID
) -> Planting:
    result = await db.execute(
        select(Planting)
        .join(GardenUser, GardenUser.garden_id == Planting.garden_id)
        .where(Planting.id == planting_id, GardenUser.user_id == user_id)
        .options(selectinload(Planting.seed))
    )
    planting = result.scalar_one_or_none()
    if not planting:
        raise HTTPException(status_code=404, detail="Planting not found")
    return planting
