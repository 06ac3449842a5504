"""
Planting orchestration: applies derived schedules to stored plantings and
keeps their milestone tasks in step.

Commit boundaries live here; fit and conflict decisions are
made by the callers using app.services.fit.
"""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.garden import GardenBed
from app.models.schedule import Planting, Task
from app.models.seed import Seed
from app.services.fit import build_conflicts_map
from app.services.schedule import derive_schedule

logger = logging.getLogger(__name__)

TASK_ORDER: dict[str, int] = {"sow": 1, "plant_out": 2, "harvest_start": 3, "harvest_end": 4}

TASK_LABELS: dict[str, str] = {
    "sow": "Sow",
    "plant_out": "Plant out",
    "harvest_start": "Start harvest",
    "harvest_end": "End harvest",
}


# ── Task ↔ milestone mapping ──────────────────────────────────────────────────


def actual_field_for(task_type: str, method: Optional[str]) -> str:
    if task_type == "sow":
        return "actual_presow_date" if method == "presow" else "actual_ground_date"
    if task_type == "plant_out":
        return "actual_ground_date"
    if task_type == "harvest_start":
        return "actual_harvest_start"
    return "actual_harvest_end"


def anchor_for(task_type: str, method: Optional[str]) -> str:
    if task_type == "sow":
        return "presow" if method == "presow" else "ground"
    if task_type == "plant_out":
        return "ground"
    return task_type


def build_milestone_tasks(planting) -> list[tuple[str, date]]:
    """(task type, due date) for every milestone that has a planned date."""
    presow = planting.method == "presow"
    wanted = [
        ("sow", planting.planned_presow_date if presow else planting.planned_date),
        ("plant_out", planting.planned_date if presow else None),
        ("harvest_start", planting.planned_harvest_start),
        ("harvest_end", planting.planned_harvest_end),
    ]
    return [(t, d) for t, d in wanted if d is not None]


# ── Loading ───────────────────────────────────────────────────────────────────


async def load_garden_beds(db: AsyncSession, garden_id: uuid.UUID) -> list[GardenBed]:
    result = await db.execute(
        select(GardenBed)
        .where(GardenBed.garden_id == garden_id)
        .order_by(GardenBed.sort_order, GardenBed.name)
    )
    return list(result.scalars().all())


async def load_garden_plantings(db: AsyncSession, garden_id: uuid.UUID) -> list[Planting]:
    result = await db.execute(
        select(Planting)
        .where(Planting.garden_id == garden_id)
        .options(selectinload(Planting.seed))
        .order_by(Planting.planned_date)
    )
    return list(result.scalars().all())


async def load_task(db: AsyncSession, task_id: uuid.UUID) -> Optional[Task]:
    result = await db.execute(
        select(Task)
        .where(Task.id == task_id)
        .options(selectinload(Task.planting).selectinload(Planting.seed))
    )
    return result.scalar_one_or_none()


# ── Mutations ─────────────────────────────────────────────────────────────────


def apply_schedule(planting: Planting, seed: Seed, anchor_type: str, anchor_date: date) -> None:
    planned = derive_schedule(planting.method or "direct", seed, anchor_type, anchor_date)
    for field, value in planned.as_planting_fields().items():
        setattr(planting, field, value)


async def sync_planting_tasks(db: AsyncSession, planting: Planting) -> list[Task]:
    """
    Bring the planting's tasks in line with its planned dates. Pending tasks
    follow their milestone; a task whose actual date is recorded is done.
    Flushes, does not commit.
    """
    result = await db.execute(select(Task).where(Task.planting_id == planting.id))
    existing = {t.type: t for t in result.scalars().all()}
    wanted = dict(build_milestone_tasks(planting))

    for task_type, task in list(existing.items()):
        if task_type not in wanted:
            await db.delete(task)
            del existing[task_type]

    for task_type, due in wanted.items():
        task = existing.get(task_type)
        if task is None:
            task = Task(
                garden_id=planting.garden_id,
                planting_id=planting.id,
                type=task_type,
                due_date=due,
                status="pending",
            )
            db.add(task)
            existing[task_type] = task
        elif task.status == "pending":
            task.due_date = due

        performed = getattr(planting, actual_field_for(task_type, planting.method))
        if performed is not None and task.status != "done":
            task.status = "done"
            task.completed_at = task.completed_at or datetime.now(timezone.utc)
        elif performed is None and task.status == "done":
            # method switched, the milestone now maps to an empty actual
            task.status = "pending"
            task.completed_at = None
            task.due_date = due

    await db.flush()
    return sorted(existing.values(), key=lambda t: TASK_ORDER[t.type])


async def record_actual(db: AsyncSession, task: Task, performed: date) -> list[Planting]:
    """
    Record that the task's milestone happened on `performed`, replan the rest
    of the planting around it and return the plantings it now conflicts with.
    The write goes through even when a conflict results.
    """
    planting = task.planting
    setattr(planting, actual_field_for(task.type, planting.method), performed)
    task.status = "done"
    task.completed_at = datetime.combine(performed, datetime.min.time(), tzinfo=timezone.utc)

    apply_schedule(planting, planting.seed, anchor_for(task.type, planting.method), performed)
    await sync_planting_tasks(db, planting)
    await db.commit()
    return await _conflicts_after_replan(db, planting, "record_actual")


async def reschedule(
    db: AsyncSession,
    planting: Planting,
    anchor_type: str,
    anchor_date: date,
    method: Optional[str] = None,
) -> list[Planting]:
    """
    Re-derive planned dates from a new anchor, keep tasks in step and return
    the plantings it now conflicts with. Like record_actual, the write goes
    through even when a conflict results.
    """
    if method:
        planting.method = method
    apply_schedule(planting, planting.seed, anchor_type, anchor_date)
    await sync_planting_tasks(db, planting)
    await db.commit()
    return await _conflicts_after_replan(db, planting, "reschedule")


async def _conflicts_after_replan(db: AsyncSession, planting: Planting, action: str) -> list[Planting]:
    conflicts = build_conflicts_map(await load_garden_plantings(db, planting.garden_id))
    found = conflicts.get(planting.id, [])
    if found:
        logger.info("%s: planting %s now conflicts with %d planting(s)", action, planting.id, len(found))
    return found


async def clear_actual(db: AsyncSession, task: Task) -> None:
    planting = task.planting
    setattr(planting, actual_field_for(task.type, planting.method), None)
    task.status = "pending"
    task.completed_at = None
    await db.commit()


async def skip_task(db: AsyncSession, task: Task) -> None:
    task.status = "skipped"
    task.completed_at = datetime.now(timezone.utc)
    await db.commit()
