"""Background scheduler — APScheduler jobs started from the app lifespan.

Jobs:
  - next_action_reminders: every N min — notify assigned user + CSR of orders
    whose next action falls today (once per order per day)
  - sequence_tick: every N min — execute due sequence steps

Each job opens its own SessionLocal() and always closes it.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

scheduler = AsyncIOScheduler(timezone="UTC")


def configure_scheduler() -> None:
    """Register all jobs. Intervals are read from settings at call time."""
    from .config import settings

    scheduler.add_job(
        _job_next_action_reminders,
        IntervalTrigger(minutes=settings.next_action_scan_interval_min),
        id="next_action_reminders",
        name="Next-action reminders",
        replace_existing=True,
        max_instances=1,
    )
    scheduler.add_job(
        _job_sequence_tick,
        IntervalTrigger(minutes=settings.sequence_tick_interval_min),
        id="sequence_tick",
        name="Sequence step execution",
        replace_existing=True,
        max_instances=1,
    )


# ── Jobs ────────────────────────────────────────────────────────────────


async def _job_next_action_reminders() -> None:
    from .database import SessionLocal
    from .services.notification_service import send_next_action_reminders

    db = SessionLocal()
    try:
        send_next_action_reminders(db)
    except Exception:
        logger.exception("Next-action reminder job failed")
        db.rollback()
    finally:
        db.close()


async def _job_sequence_tick() -> None:
    from .database import SessionLocal
    from .services.sequence_service import run_due_steps

    db = SessionLocal()
    try:
        run_due_steps(db)
    except Exception:
        logger.exception("Sequence tick failed")
        db.rollback()
    finally:
        db.close()
