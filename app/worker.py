"""
ARQ worker: background task definitions.
Run with: python -m app.worker
"""
import logging

from arq import cron
from arq.connections import RedisSettings
from sqlalchemy import select

from app.core.config import settings
from app.db.session import AsyncSessionLocal
from app.models.garden import Garden
from app.services.fit import build_conflicts_map, count_unique_conflicts
from app.services.planting_service import load_garden_plantings
from app.tasks.notifications import send_task_notification, send_weekly_digest

logger = logging.getLogger(__name__)


# ── Job functions ─────────────────────────────────────────────────────────────


async def scan_conflicts(ctx: dict) -> dict:
    """Re-run conflict detection for every garden and log the ones with conflicts. Runs daily at 03:00."""
    logger.info("scan_conflicts: starting")
    totals: dict[str, int] = {}

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Garden))
        gardens = result.scalars().all()

        for garden in gardens:
            try:
                plantings = await load_garden_plantings(db, garden.id)
                count = count_unique_conflicts(build_conflicts_map(plantings))
                if count:
                    totals[str(garden.id)] = count
                    logger.warning("scan_conflicts: garden %s has %d conflicting plantings", garden.id, count)
            except Exception as exc:
                logger.exception("scan_conflicts: failed for garden %s: %s", garden.id, exc)

    logger.info("scan_conflicts: complete, %d gardens with conflicts", len(totals))
    return totals


# ── Worker settings ───────────────────────────────────────────────────────────


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    functions = [send_weekly_digest, send_task_notification, scan_conflicts]
    cron_jobs = [
        cron(send_weekly_digest, minute=0),        # Hourly; users pick their own day/hour
        cron(scan_conflicts, hour=3, minute=0),    # Daily 3am UTC
    ]
    on_startup = None
    on_shutdown = None


if __name__ == "__main__":
    from arq import run_worker

    logging.basicConfig(level=settings.LOG_LEVEL)
    run_worker(WorkerSettings)
