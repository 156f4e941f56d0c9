"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from opus_coach.core.config import settings
from opus_coach.core.logging import configure_logging
from opus_coach.db.session import SessionLocal
from opus_coach.observability.client import init_opik
from opus_coach.services.analysis_jobs import sweep_stale_jobs
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.reminders import (
    run_goal_checkin_reminders,
    run_reflection_due_reminders,
    run_weekly_review_reminders,
)


logger = logging.getLogger(__name__)

_generation_router: GenerationRouter | None = None


def main() -> None:
    configure_logging(log_level=settings.log_level)
    init_opik()
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running jobs once on startup")
            _run_reflection_due_job()
            _run_analysis_sweep_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        _run_reflection_due_job,
        trigger="cron",
        hour=settings.reminder_hour,
        minute=0,
        id="reflection_due_job",
        replace_existing=True,
    )
    scheduler.add_job(
        _run_weekly_review_job,
        trigger="cron",
        day_of_week=str(settings.weekly_review_day),
        hour=settings.weekly_review_hour,
        minute=0,
        id="weekly_review_job",
        replace_existing=True,
    )
    scheduler.add_job(
        _run_goal_checkin_job,
        trigger="cron",
        day_of_week=str(settings.goal_checkin_day),
        hour=settings.goal_checkin_hour,
        minute=0,
        id="goal_checkin_job",
        replace_existing=True,
    )
    scheduler.add_job(
        _run_analysis_sweep_job,
        trigger="interval",
        minutes=settings.analysis_sweep_minutes,
        id="analysis_sweep_job",
        replace_existing=True,
    )
    logger.info(
        "Registered scheduler jobs (reminder=%02d:00, weekly_review=day %s %02d:00, "
        "goal_checkin=day %s %02d:00, sweep every %s min, %s)",
        settings.reminder_hour,
        settings.weekly_review_day,
        settings.weekly_review_hour,
        settings.goal_checkin_day,
        settings.goal_checkin_hour,
        settings.analysis_sweep_minutes,
        settings.scheduler_timezone,
    )


def _get_generation_router() -> GenerationRouter:
    global _generation_router
    if _generation_router is None:
        _generation_router = GenerationRouter.from_settings(settings)
    return _generation_router


def _run_reflection_due_job() -> None:
    session = SessionLocal()
    try:
        result = run_reflection_due_reminders(session)
        logger.info(
            "Reflection reminder job complete: users=%s, sent=%s, skipped=%s",
            result.users_checked,
            result.reminders_sent,
            result.skipped,
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Reflection reminder job failed")
    finally:
        session.close()


def _run_weekly_review_job() -> None:
    session = SessionLocal()
    try:
        result = run_weekly_review_reminders(session)
        logger.info(
            "Weekly review job complete: users=%s, sent=%s, skipped=%s",
            result.users_checked,
            result.reminders_sent,
            result.skipped,
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Weekly review job failed")
    finally:
        session.close()


def _run_goal_checkin_job() -> None:
    session = SessionLocal()
    try:
        result = run_goal_checkin_reminders(session)
        logger.info("Goal check-in job complete: users=%s, sent=%s", result.users_checked, result.reminders_sent)
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Goal check-in job failed")
    finally:
        session.close()


def _run_analysis_sweep_job() -> None:
    try:
        result = sweep_stale_jobs(SessionLocal, _get_generation_router())
        logger.info("Analysis sweep complete: found=%s, succeeded=%s", result.jobs_found, result.jobs_succeeded)
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Analysis sweep job failed")


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
