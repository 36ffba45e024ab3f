"""
schedulers.py
-------------
Celery beat scheduling logic.
On beat startup, registers every row of task_schedules as a periodic run_task call.
"""

from celery.schedules import ParseException, crontab

from .celery_worker import app
from .db import SessionLocal, TaskSchedule


class ScheduleError(ValueError):
    pass


def parse_cron(expression):
    fields = (expression or "").split()
    # Celery beat expects crontab schedule as 5 fields
    if len(fields) != 5:
        raise ScheduleError(f"Cron expression must have 5 fields: {expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    try:
        return crontab(
            minute=minute,
            hour=hour,
            day_of_month=day_of_month,
            month_of_year=month_of_year,
            day_of_week=day_of_week,
        )
    except (ValueError, ParseException) as e:
        raise ScheduleError(f"Invalid cron expression {expression!r}: {e}") from e


def schedule_entry_name(task_name, module_id):
    return f"{task_name}_{module_id}"


def register_scheduled_tasks():
    """
    Registers all task schedules as periodic Celery beat entries.
    Call this on beat startup, or after a schedule changes.
    """
    session = SessionLocal()
    try:
        beat_schedule = {}
        for sched in session.query(TaskSchedule).all():
            beat_schedule[schedule_entry_name(sched.task_name, sched.module_id)] = {
                "task": "reviewsync.celery_worker.run_task",
                "schedule": parse_cron(sched.schedule),
                "args": (sched.task_name, sched.module_id),
                "kwargs": {"retries": sched.retries or 0},
            }
        app.conf.beat_schedule = beat_schedule
        return beat_schedule
    finally:
        session.close()
