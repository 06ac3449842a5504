import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

from sqlalchemy import select

from app.models.logs import EmailLog
from app.models.schedule import Planting, Task
from app.services import notifications as dispatch
from app.tasks import notifications
from app.tasks.notifications import (
    _build_digest_body,
    build_digest_items,
    is_digest_due,
    send_task_notification,
    send_weekly_digest,
)
from conftest import make_garden, make_profile, make_seed

MONDAY_8AM = datetime(2024, 4, 1, 8, 0, tzinfo=timezone.utc)


def _patch_email(monkeypatch, profile, address="sam@example.com") -> list:
    sent = []

    async def fake_get_user_email(user_id):
        return address if user_id == profile.id else None

    async def fake_send_email(to, subject, body):
        sent.append(SimpleNamespace(to=to, subject=subject, body=body))
        return True

    monkeypatch.setattr(notifications, "get_user_email", fake_get_user_email)
    monkeypatch.setattr(dispatch, "send_email", fake_send_email)
    return sent


async def _planting(db, garden, bed, seed, tasks):
    planting = Planting(
        garden_id=garden.id,
        garden_bed_id=bed.id,
        seed_id=seed.id,
        method="direct",
        planned_date=date(2024, 3, 28),
        planned_harvest_end=date(2024, 6, 1),
    )
    db.add(planting)
    await db.flush()
    for task_type, due, status in tasks:
        db.add(Task(
            garden_id=garden.id,
            planting_id=planting.id,
            type=task_type,
            due_date=due,
            status=status,
        ))
    await db.commit()
    return planting


# ── Pure helpers ──────────────────────────────────────────────────────────────


def test_is_digest_due_defaults_to_monday_8am():
    assert is_digest_due({}, MONDAY_8AM)
    assert not is_digest_due({}, MONDAY_8AM.replace(hour=9))
    assert not is_digest_due({}, datetime(2024, 4, 2, 8, tzinfo=timezone.utc))


def test_is_digest_due_sunday_is_zero():
    sunday = datetime(2024, 3, 31, 18, 30, tzinfo=timezone.utc)
    assert is_digest_due({"digest_day": 0, "digest_time": "18:00"}, sunday)
    assert not is_digest_due({"digest_day": 6, "digest_time": "18:00"}, sunday)


def test_build_digest_items_keeps_first_pending_per_planting():
    planting = SimpleNamespace(seed=SimpleNamespace(name="Kale"), bed=SimpleNamespace(name="North"))
    pid = uuid.uuid4()
    tasks = [
        SimpleNamespace(planting_id=pid, planting=planting, type="harvest_start", due_date=date(2024, 4, 5)),
        SimpleNamespace(planting_id=pid, planting=planting, type="plant_out", due_date=date(2024, 3, 30)),
        SimpleNamespace(planting_id=uuid.uuid4(), planting=planting, type="sow", due_date=date(2024, 4, 3)),
    ]
    overdue, upcoming = build_digest_items(tasks, date(2024, 4, 1))

    assert [(i.type, i.due_date) for i in overdue] == [("plant_out", date(2024, 3, 30))]
    assert [(i.type, i.due_date) for i in upcoming] == [("sow", date(2024, 4, 3))]
    assert overdue[0].label == "Plant out"
    assert overdue[0].seed_name == "Kale"


def test_digest_body_sections():
    planting = SimpleNamespace(seed=SimpleNamespace(name="Kale"), bed=SimpleNamespace(name="North"))
    tasks = [SimpleNamespace(planting_id=1, planting=planting, type="sow", due_date=date(2024, 4, 3))]
    overdue, upcoming = build_digest_items(tasks, date(2024, 4, 1))

    body = _build_digest_body("Sam", overdue, upcoming)
    assert body.startswith("Hi Sam,")
    assert "Overdue" not in body
    assert "Coming up (1):" in body
    assert "Sow: Kale in North" in body
    assert "April 3, 2024" in body


# ── Jobs ──────────────────────────────────────────────────────────────────────


async def test_weekly_digest_sends_overdue_and_upcoming(db, monkeypatch):
    profile = await make_profile(db, weekly_digest=True)
    garden, (bed,) = await make_garden(db, profile)
    seed = await make_seed(db, garden)
    await _planting(db, garden, bed, seed, [
        ("sow", date(2024, 3, 28), "pending"),
        ("harvest_start", date(2024, 5, 9), "pending"),
    ])
    await _planting(db, garden, bed, seed, [
        ("sow", date(2024, 3, 20), "done"),
        ("harvest_start", date(2024, 4, 5), "pending"),
    ])
    sent = _patch_email(monkeypatch, profile)

    result = await send_weekly_digest({}, now=MONDAY_8AM)

    assert result["emails_sent"] == 1
    assert len(sent) == 1
    assert sent[0].subject.endswith("2 actions")
    assert "Overdue (1):" in sent[0].body
    assert "Coming up (1):" in sent[0].body

    logs = (await db.execute(select(EmailLog).where(EmailLog.user_id == profile.id))).scalars().all()
    assert [(log.status, log.tasks_count, log.overdue_count) for log in logs] == [("sent", 2, 1)]


async def test_weekly_digest_respects_chosen_hour(db, monkeypatch):
    profile = await make_profile(db, weekly_digest=True, digest_day=3, digest_time="19:00")
    garden, (bed,) = await make_garden(db, profile)
    seed = await make_seed(db, garden)
    await _planting(db, garden, bed, seed, [("sow", date(2024, 4, 2), "pending")])
    sent = _patch_email(monkeypatch, profile, address="wed@example.com")

    await send_weekly_digest({}, now=MONDAY_8AM)
    assert [m for m in sent if m.to == "wed@example.com"] == []

    await send_weekly_digest({}, force=True, now=MONDAY_8AM)
    assert [m.to for m in sent if m.to == "wed@example.com"] == ["wed@example.com"]


async def test_task_notification(db, monkeypatch):
    profile = await make_profile(db)
    garden, (bed,) = await make_garden(db, profile)
    seed = await make_seed(db, garden)
    planting = await _planting(db, garden, bed, seed, [("sow", date(2024, 4, 2), "pending")])
    task = (await db.execute(select(Task).where(Task.planting_id == planting.id))).scalar_one()
    sent = _patch_email(monkeypatch, profile)

    ok = await send_task_notification({}, str(task.id), str(profile.id))

    assert ok is True
    assert sent[0].subject.endswith("Sow for Beetroot")
    assert "Bed: Bed 1" in sent[0].body
    assert "Due: April 2, 2024" in sent[0].body


async def test_task_notification_without_email(db, monkeypatch):
    profile = await make_profile(db)
    garden, (bed,) = await make_garden(db, profile)
    seed = await make_seed(db, garden)
    planting = await _planting(db, garden, bed, seed, [("sow", date(2024, 4, 2), "pending")])
    task = (await db.execute(select(Task).where(Task.planting_id == planting.id))).scalar_one()
    sent = _patch_email(monkeypatch, await make_profile(db))

    assert await send_task_notification({}, str(task.id), str(profile.id)) is False
    assert sent == []
