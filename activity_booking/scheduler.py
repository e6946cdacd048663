# activity_booking/scheduler.py
"""
Background task scheduler.

Uses APScheduler to run the periodic seat integrity sweep. Failures and
missed runs are reported through job listeners.
"""

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from activity_booking.background_tasks.integrity_tasks import run_integrity_sweep
from activity_booking.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def _on_job_error(event):
    """Log scheduler job errors with full context."""
    exc = event.exception
    logger.error(
        "Scheduled job FAILED: job_id=%s error=%s",
        event.job_id, exc,
        exc_info=(type(exc), exc, None) if exc else None,
    )
    if event.traceback:
        logger.error("Traceback for job %s:\n%s", event.job_id, event.traceback)


def _on_job_missed(event):
    logger.warning(
        "Scheduled job MISSED: job_id=%s scheduled_run_time=%s",
        event.job_id,
        event.scheduled_run_time,
    )


def init_scheduler():
    """
    Initialize and start the background scheduler.

    This is called once when the application starts up.
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return scheduler

    scheduler = BackgroundScheduler(
        timezone="UTC",
        job_defaults={
            'coalesce': True,  # Combine missed executions
            'max_instances': 1,  # Only one sweep at a time
            'misfire_grace_time': 60,
        }
    )

    interval = settings.INTEGRITY_SWEEP_INTERVAL_MINUTES
    scheduler.add_job(
        func=run_integrity_sweep,
        trigger=IntervalTrigger(minutes=interval),
        id='seat_integrity_sweep',
        name='Seat Ledger Integrity Sweep',
        replace_existing=True
    )
    logger.info(f"Scheduled job: seat_integrity_sweep (every {interval} minutes)")

    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_listener(_on_job_missed, EVENT_JOB_MISSED)

    scheduler.start()
    logger.info("Background scheduler started successfully")
    return scheduler


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    global scheduler

    if scheduler is not None:
        logger.info("Shutting down background scheduler...")
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler shutdown complete")
        scheduler = None


def get_scheduler_status():
    """Current status of the scheduled jobs, for the health endpoint."""
    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": jobs
    }
