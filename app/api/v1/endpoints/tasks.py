import uuid
from datetime import date, timedelta
from typing import Literal, Optional

from arq.connections import ArqRedis
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.deps import CurrentUser, get_db
from app.models.garden import GardenUser
from app.models.schedule import Planting, Task
from app.schemas.planting import PlantingRead, PlantingRef
from app.schemas.schedule import TaskComplete, TaskCompleteResult, TaskNotify, TaskRead
from app.services.planting_service import clear_actual, record_actual, skip_task

router = APIRouter(prefix="/tasks", tags=["tasks"])
garden_tasks_router = APIRouter(prefix="/gardens", tags=["tasks"])


# ── Garden task lists ─────────────────────────────────────────────────────────


@garden_tasks_router.get("/{garden_id}/tasks", response_model=list[TaskRead])
async def list_tasks(
    garden_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    task_status: Optional[Literal["pending", "done", "skipped"]] = Query(None, alias="status"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
):
    await _require_membership(db, garden_id, current_user.id)
    q = select(Task).where(Task.garden_id == garden_id)
    if task_status:
        q = q.where(Task.status == task_status)
    if from_date:
        q = q.where(Task.due_date >= from_date)
    if to_date:
        q = q.where(Task.due_date <= to_date)
    result = await db.execute(q.order_by(Task.due_date, Task.type))
    return result.scalars().all()


@garden_tasks_router.get("/{garden_id}/tasks/upcoming", response_model=list[TaskRead])
async def list_upcoming_tasks(
    garden_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    days: int = Query(14, ge=1, le=365),
):
    """Pending tasks that are overdue or due within `days`."""
    await _require_membership(db, garden_id, current_user.id)
    horizon = date.today() + timedelta(days=days)
    result = await db.execute(
        select(Task)
        .where(Task.garden_id == garden_id, Task.status == "pending", Task.due_date <= horizon)
        .order_by(Task.due_date, Task.type)
    )
    return result.scalars().all()


# ── Task actions ──────────────────────────────────────────────────────────────


@router.post("/{task_id}/complete", response_model=TaskCompleteResult)
async def complete_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    data: TaskComplete = TaskComplete(),
):
    task = await _get_member_task(db, task_id, current_user.id)
    performed = data.performed_date or date.today()
    conflicts = await record_actual(db, task, performed)
    return TaskCompleteResult(
        task=TaskRead.model_validate(task),
        planting=PlantingRead.model_validate(task.planting),
        conflicts=[PlantingRef.model_validate(p) for p in conflicts],
    )


@router.post("/{task_id}/reopen", response_model=TaskRead)
async def reopen_task(task_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    task = await _get_member_task(db, task_id, current_user.id)
    await clear_actual(db, task)
    await db.refresh(task)
    return task


@router.post("/{task_id}/skip", response_model=TaskRead)
async def skip(task_id: uuid.UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    task = await _get_member_task(db, task_id, current_user.id)
    if task.status == "done":
        raise HTTPException(status_code=409, detail="Task is already done")
    await skip_task(db, task)
    await db.refresh(task)
    return task


@router.post("/{task_id}/notify", status_code=status.HTTP_202_ACCEPTED)
async def notify_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    data: TaskNotify = TaskNotify(),
) -> dict:
    task = await _get_member_task(db, task_id, current_user.id)
    user_id = data.user_id or current_user.id
    if user_id != current_user.id:
        await _require_membership(db, task.garden_id, user_id, detail="User not found")

    pool = await _get_arq_redis()
    try:
        await pool.enqueue_job("send_task_notification", str(task.id), str(user_id))
    finally:
        await pool.close()

    return {"status": "queued"}


# ── Helpers ───────────────────────────────────────────────────────────────────


async def _get_arq_redis() -> ArqRedis:
    """Create an ArqRedis instance from the same Redis URL the worker uses."""
    from arq.connections import RedisSettings, create_pool
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    return await create_pool(redis_settings)


async def _require_membership(
    db: AsyncSession, garden_id: uuid.UUID, user_id: uuid.UUID, detail: str = "Garden not found"
) -> None:
    found = await db.scalar(
        select(GardenUser.id).where(GardenUser.garden_id == garden_id, GardenUser.user_id == user_id)
    )
    if found is None:
        raise HTTPException(status_code=404, detail=detail)


async def _get_member_task(db: AsyncSession, task_id: uuid.UUID, user_id: uuid.UUID) -> Task:
    result = await db.execute(
        select(Task)
        .join(GardenUser, GardenUser.garden_id == Task.garden_id)
        .where(Task.id == task_id, GardenUser.user_id == user_id)
        .options(selectinload(Task.planting).selectinload(Planting.seed))
    )
    task = result.scalar_one_or_none()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
