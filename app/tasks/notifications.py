"""
ARQ notification tasks.

send_weekly_digest (hourly cron)
    Emails each opted-in user the first pending milestone of every planting in
    their gardens that is overdue or due within DIGEST_WINDOW_DAYS. A user is
    only processed in the hour of their chosen digest_day / digest_time
    (notification_prefs), unless the run is forced.

send_task_notification (enqueued on demand)
    Emails one user a reminder for one milestone task.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.db.session import AsyncSessionLocal
from app.models.garden import GardenUser
from app.models.schedule import Planting, Task
from app.models.user import Profile
from app.services.auth_admin import get_user_email
from app.services.notifications import dispatch_email
from app.services.planting_service import TASK_LABELS, TASK_ORDER

logger = logging.getLogger(__name__)

DEFAULT_DIGEST_DAY = 1  # Monday (0 = Sunday)
DEFAULT_DIGEST_TIME = "08:00"
DEFAULT_NAME = "Gardener"


@dataclass
class DigestItem:
    type: str
    label: str
    seed_name: str
    bed_name: str
    due_date: date
    is_overdue: bool


async def send_weekly_digest(ctx: dict, force: bool = False, now: Optional[datetime] = None) -> dict:
    """Email opted-in users their overdue and upcoming planting milestones."""
    logger.info("send_weekly_digest: starting (force=%s)", force)

    now = now or datetime.now(timezone.utc)
    today = now.date()
    horizon = today + timedelta(days=settings.DIGEST_WINDOW_DAYS)
    sent = 0
    errors = 0

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Profile))
        profiles = result.scalars().all()
        logger.info("send_weekly_digest: %d profiles to check", len(profiles))

        for profile in profiles:
            try:
                prefs = profile.notification_prefs or {}
                if not prefs.get("weekly_digest"):
                    continue
                if not force and not is_digest_due(prefs, now):
                    continue

                email = await get_user_email(profile.id)
                if not email:
                    logger.warning("send_weekly_digest: no email for user %s, skipping", profile.id)
                    errors += 1
                    continue

                tasks = await _get_user_tasks_due(db, profile.id, horizon)
                if not tasks:
                    logger.info("send_weekly_digest: no tasks for user %s, skipping", profile.id)
                    continue

                overdue, upcoming = build_digest_items(tasks, today)
                body = _build_digest_body(profile.display_name or DEFAULT_NAME, overdue, upcoming)
                subject = f"Seedplot: weekly garden agenda: {len(overdue) + len(upcoming)} actions"

                ok = await dispatch_email(
                    db, profile.id, email, "weekly_digest", subject, body,
                    tasks_count=len(overdue) + len(upcoming),
                    overdue_count=len(overdue),
                )
                if ok:
                    sent += 1
                    logger.info("send_weekly_digest: sent digest to user %s", profile.id)
                else:
                    errors += 1

            except Exception as exc:
                logger.exception("send_weekly_digest: failed for user %s: %s", profile.id, exc)
                errors += 1

    logger.info("send_weekly_digest: complete, %d sent, %d errors", sent, errors)
    return {"emails_sent": sent, "errors": errors}


async def send_task_notification(ctx: dict, task_id: str, user_id: str) -> bool:
    """Email one user a reminder for one task."""
    logger.info("send_task_notification: task %s for user %s", task_id, user_id)

    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(Task)
            .where(Task.id == uuid.UUID(str(task_id)))
            .options(
                selectinload(Task.planting).selectinload(Planting.seed),
                selectinload(Task.planting).selectinload(Planting.bed),
            )
        )
        task = result.scalar_one_or_none()
        if task is None:
            logger.warning("send_task_notification: task %s not found", task_id)
            return False

        profile = await db.get(Profile, uuid.UUID(str(user_id)))
        if profile is None:
            logger.warning("send_task_notification: profile %s not found", user_id)
            return False

        email = await get_user_email(profile.id)
        if not email:
            logger.warning("send_task_notification: no email for user %s", profile.id)
            return False

        item = _digest_item(task, date.today())
        body = _build_reminder_body(profile.display_name or DEFAULT_NAME, item)
        subject = f"Seedplot reminder: {item.label} for {item.seed_name}"
        return await dispatch_email(db, profile.id, email, "task_reminder", subject, body, tasks_count=1)


# ── Helpers ────────────────────────────────────────────────────────────────────


def is_digest_due(prefs: dict, now: datetime) -> bool:
    """True when `now` falls in the user's digest hour. digest_day: 0=Sunday … 6=Saturday."""
    digest_day = prefs.get("digest_day", DEFAULT_DIGEST_DAY)
    digest_time = prefs.get("digest_time") or DEFAULT_DIGEST_TIME
    try:
        target_hour = int(str(digest_time).split(":")[0])
    except ValueError:
        target_hour = int(DEFAULT_DIGEST_TIME.split(":")[0])
    return now.isoweekday() % 7 == int(digest_day) and now.hour == target_hour


async def _get_user_tasks_due(db, user_id: uuid.UUID, horizon: date) -> list[Task]:
    """Pending tasks due on or before `horizon` in every garden the user belongs to."""
    garden_ids = select(GardenUser.garden_id).where(GardenUser.user_id == user_id).scalar_subquery()
    result = await db.execute(
        select(Task)
        .where(
            Task.garden_id.in_(garden_ids),
            Task.status == "pending",
            Task.due_date <= horizon,
        )
        .options(
            selectinload(Task.planting).selectinload(Planting.seed),
            selectinload(Task.planting).selectinload(Planting.bed),
        )
    )
    return list(result.scalars().all())


def _digest_item(task: Task, today: date) -> DigestItem:
    planting = task.planting
    return DigestItem(
        type=task.type,
        label=TASK_LABELS.get(task.type, task.type),
        seed_name=planting.seed.name if planting and planting.seed else "Unknown crop",
        bed_name=planting.bed.name if planting and planting.bed else "Unknown bed",
        due_date=task.due_date,
        is_overdue=task.due_date < today,
    )


def build_digest_items(tasks: list[Task], today: date) -> tuple[list[DigestItem], list[DigestItem]]:
    """
    Keep only the first pending milestone per planting, then split into
    (overdue, upcoming), each sorted by due date.
    """
    first_by_planting: dict[uuid.UUID, Task] = {}
    for task in tasks:
        current = first_by_planting.get(task.planting_id)
        if current is None or TASK_ORDER.get(task.type, 999) < TASK_ORDER.get(current.type, 999):
            first_by_planting[task.planting_id] = task

    items = [_digest_item(t, today) for t in first_by_planting.values()]
    overdue = sorted((i for i in items if i.is_overdue), key=lambda i: i.due_date)
    upcoming = sorted((i for i in items if not i.is_overdue), key=lambda i: i.due_date)
    return overdue, upcoming


def _fmt(d: date) -> str:
    return d.strftime("%B %-d, %Y")


def _build_digest_body(name: str, overdue: list[DigestItem], upcoming: list[DigestItem]) -> str:
    lines = [f"Hi {name},", "", "Here is your garden agenda for the coming week:", ""]

    if overdue:
        lines.append(f"Overdue ({len(overdue)}):")
        for i in overdue:
            lines.append(f"  - {i.label}: {i.seed_name} in {i.bed_name} (was due {_fmt(i.due_date)})")
        lines.append("")

    if upcoming:
        lines.append(f"Coming up ({len(upcoming)}):")
        for i in upcoming:
            lines.append(f"  - {i.label}: {i.seed_name} in {i.bed_name}, {_fmt(i.due_date)}")
        lines.append("")

    lines.append(f"Open your planner: {settings.APP_URL}")

    return "\n".join(lines)


def _build_reminder_body(name: str, item: DigestItem) -> str:
    return "\n".join([
        f"Hi {name},",
        "",
        f"Reminder: {item.label}, {item.seed_name}",
        f"Bed: {item.bed_name}",
        f"Due: {_fmt(item.due_date)}",
        "",
        f"Open your planner: {settings.APP_URL}",
    ])
