"""
app.py
--------
Main FastAPI application entrypoint. Exposes endpoints to register module configs,
schedule tasks against a module, trigger a task run and inspect the run history.
"""
import json
from typing import List

from fastapi import Body, Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from reviewsync.celery_worker import EXECUTOR_REGISTRY, run_task
from reviewsync.db import (
    SessionLocal,
    init_db,
    ModuleRecord, ModuleCreate, ModuleOut,
    TaskSchedule, ScheduleCreate, ScheduleOut,
    TaskRun, TaskRunOut,
)
from reviewsync.logging_ import get_logger, setup_logging
from reviewsync.schedulers import ScheduleError, parse_cron, register_scheduled_tasks

# Initialize DB and logging
init_db()
setup_logging()

log = get_logger(__name__)

app = FastAPI(title="Review Sync Task API")


# -------------------------------
# Dependency: get DB session
# -------------------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_task_known(task_name: str):
    if task_name not in EXECUTOR_REGISTRY:
        raise HTTPException(status_code=404, detail=f"Unknown task: {task_name}")


# -------------------------------
# Module configs
# -------------------------------
@app.post("/modules/", response_model=ModuleOut)
def create_module(module: ModuleCreate, db: Session = Depends(get_db)):
    db_module = ModuleRecord(
        title=module.title,
        module=module.module,
        params=json.dumps(module.params),
    )
    db.add(db_module)
    db.commit()
    db.refresh(db_module)
    return db_module


@app.get("/modules/{module_id}", response_model=ModuleOut)
def get_module(module_id: int, db: Session = Depends(get_db)):
    module = db.get(ModuleRecord, module_id)
    if not module:
        raise HTTPException(status_code=404, detail="Module not found")
    return module


# -------------------------------
# Schedules
# -------------------------------
@app.post("/schedules/", response_model=ScheduleOut)
def create_schedule(schedule: ScheduleCreate, db: Session = Depends(get_db)):
    ensure_task_known(schedule.task_name)
    try:
        parse_cron(schedule.schedule)
    except ScheduleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    # beat entries are keyed by task and module, so a second row would shadow the first
    existing = db.query(TaskSchedule).filter(
        TaskSchedule.task_name == schedule.task_name,
        TaskSchedule.module_id == schedule.module_id,
    ).first()
    if existing:
        raise HTTPException(
            status_code=409,
            detail=f"Schedule {existing.id} already exists for {schedule.task_name} on module {schedule.module_id}",
        )
    db_schedule = TaskSchedule(**schedule.model_dump())
    db.add(db_schedule)
    db.commit()
    db.refresh(db_schedule)
    # Re-register schedules (for dev, or restart beat in prod)
    register_scheduled_tasks()
    return db_schedule


@app.get("/schedules/", response_model=List[ScheduleOut])
def list_schedules(db: Session = Depends(get_db)):
    return db.query(TaskSchedule).all()


# -------------------------------
# Trigger a task immediately
# -------------------------------
@app.post("/tasks/{task_name}/run")
def trigger_task(task_name: str, module_id: str = Body(..., embed=True)):
    ensure_task_known(task_name)
    async_result = run_task.apply_async(args=[task_name, module_id])
    log.info("task enqueued", task=task_name, module_id=module_id, celery_id=async_result.id)
    return {"task_name": task_name, "module_id": module_id, "celery_id": async_result.id}


# -------------------------------
# Monitoring: task runs
# -------------------------------
@app.get("/task_runs/", response_model=List[TaskRunOut])
def list_task_runs(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return db.query(TaskRun).order_by(TaskRun.id.desc()).offset(skip).limit(limit).all()


@app.get("/task_runs/{run_id}", response_model=TaskRunOut)
def get_task_run(run_id: int, db: Session = Depends(get_db)):
    run = db.get(TaskRun, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="TaskRun not found")
    return run
