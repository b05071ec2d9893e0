from datetime import datetime
from decimal import Decimal

from apscheduler.triggers.cron import CronTrigger

from lms.models.user import User
from lms.tasks.scheduler import JOB_ID, build_scheduler, start_scheduler


def test_overdue_job_runs_daily_at_midnight(app):
    scheduler = build_scheduler(app)
    job = scheduler.get_job(JOB_ID)

    assert isinstance(job.trigger, CronTrigger)
    fields = {f.name: str(f) for f in job.trigger.fields}
    assert fields["hour"] == "0"
    assert fields["minute"] == "0"
    assert job.max_instances == 1
    assert job.coalesce is True


def test_job_wrapper_fines_overdue_records(app, make_user, make_book, make_borrow, fresh):
    patron = make_user(balance="100.00")
    make_borrow(patron, make_book(), days_overdue=3, now=datetime.utcnow())

    build_scheduler(app).get_job(JOB_ID).func()

    assert fresh(User, patron.id).balance == Decimal("70.00")


def test_start_and_register(app):
    scheduler = start_scheduler(app)
    try:
        assert scheduler.running
        assert app.extensions["apscheduler"] is scheduler
    finally:
        scheduler.shutdown(wait=False)
