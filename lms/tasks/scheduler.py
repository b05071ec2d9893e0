# lms/tasks/scheduler.py
from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

JOB_ID = "overdue_check_job"


def build_scheduler(app) -> BackgroundScheduler:
    """
    Scheduler with the daily overdue scan registered (midnight by default).
    The job is not started here.
    """
    from lms.tasks.overdue_check import run_overdue_check_job

    cfg = app.config
    scheduler = BackgroundScheduler(timezone=cfg.get("SCHEDULER_TIMEZONE", "UTC"))

    def _job_wrapper():
        try:
            run_overdue_check_job(app)
        except Exception as ex:
            app.logger.exception(f"[scheduler] overdue_check_job error: {ex}")

    scheduler.add_job(
        func=_job_wrapper,
        trigger=CronTrigger(
            hour=cfg.get("OVERDUE_CHECK_HOUR", 0),
            minute=cfg.get("OVERDUE_CHECK_MINUTE", 0),
            timezone=cfg.get("SCHEDULER_TIMEZONE", "UTC"),
        ),
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,        # never overlap two scans
        coalesce=True,          # missed runs collapse into one
        misfire_grace_time=3600,
    )
    return scheduler


def start_scheduler(app):
    """
    Starts the daily scan in the background.
    - skipped in the Werkzeug reloader's watcher process (it would run twice)
    - stopped at interpreter exit
    """
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    scheduler = build_scheduler(app)
    scheduler.start()
    app.logger.info(
        f"[scheduler] Overdue check scheduled daily at "
        f"{app.config.get('OVERDUE_CHECK_HOUR', 0):02d}:{app.config.get('OVERDUE_CHECK_MINUTE', 0):02d} "
        f"{app.config.get('SCHEDULER_TIMEZONE', 'UTC')}."
    )

    app.extensions["apscheduler"] = scheduler

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)
            app.logger.info("[scheduler] Scheduler shutdown.")

    atexit.register(_shutdown)
    return scheduler
