"""
celery_worker.py
---------------
Defines Celery app and the main task execution function. Dispatches a task name to
its registered executor, records every run in the task_runs table and owns the
retry/backoff policy applied to KNOCKOUT outcomes.
"""

import importlib
import os
from datetime import datetime, timezone

from celery import Celery
from celery.signals import beat_init, worker_init
from celery.utils.time import get_exponential_backoff_interval

from .config import BROKER_URL, RESULT_BACKEND, settings
from .executors.base import TaskInvocationContext, TaskStatus
from .logging_ import get_logger, setup_logging

app = Celery("reviewsync", broker=BROKER_URL, backend=RESULT_BACKEND)

log = get_logger(__name__)


# --- Plugin/dynamic executor registry ---
EXECUTOR_REGISTRY = {}


def register_executor(name, executor_cls):
    EXECUTOR_REGISTRY[name] = executor_cls


# Register built-in executors
def _register_builtin_executors():
    from .executors.review_exec import TASK_NAME, UpdateReviewsExecutor

    register_executor(TASK_NAME, UpdateReviewsExecutor)


_register_builtin_executors()


# Load all executors in executors/ as plugins (if they have register())
def load_executor_plugins(package="reviewsync.executors"):
    pkg = importlib.import_module(package)
    exec_dir = os.path.dirname(pkg.__file__)
    for fname in sorted(os.listdir(exec_dir)):
        if fname.endswith(".py") and not fname.startswith("__"):
            modname = f"{package}.{fname[:-3]}"
            mod = importlib.import_module(modname)
            if hasattr(mod, "register"):
                mod.register(register_executor)


load_executor_plugins()


def get_executor(task_name):
    if task_name in EXECUTOR_REGISTRY:
        return EXECUTOR_REGISTRY[task_name]()
    raise ValueError(f"Unknown task: {task_name}")


def should_retry(status, attempt, retries):
    """NO_RUN means there is nothing to do, so only KNOCKOUT is retried."""
    return status == TaskStatus.KNOCKOUT and attempt < retries


def retry_delay(attempt):
    return get_exponential_backoff_interval(
        factor=settings.RETRY_BACKOFF,
        retries=attempt,
        maximum=settings.RETRY_BACKOFF_MAX,
        full_jitter=False,
    )


def execute_task(task_name, module_id, attempt=0, task_run_id=None, timeout=None):
    """
    Runs one attempt of a scheduled task and persists the outcome.
    Returns (ExecutionResult, task_run_id).
    """
    from .db import SessionLocal, TaskRun

    executor = get_executor(task_name)
    module_id = "" if module_id is None else str(module_id)

    session = SessionLocal()
    try:
        task_run = session.get(TaskRun, task_run_id) if task_run_id else None
        if task_run is None:
            task_run = TaskRun(task_name=task_name, module_id=module_id)
            session.add(task_run)
        task_run.status = "RUNNING"
        task_run.attempt = attempt
        session.commit()

        context = TaskInvocationContext(
            module_id=module_id,
            root_url=settings.ROOT_URL,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
        )
        header = f"--- attempt {attempt} ---"
        try:
            result = executor.run(context)
        except Exception as e:
            task_run.log = "\n".join(filter(None, [task_run.log, header, f"ERROR: {e!r}"]))
            task_run.status = TaskStatus.KNOCKOUT.name
            task_run.exit_code = int(TaskStatus.KNOCKOUT)
            task_run.finished_at = datetime.now(timezone.utc)
            session.commit()
            log.error("task crashed", task=task_name, module_id=module_id,
                      attempt=attempt, task_run_id=task_run.id, error=repr(e))
            raise

        # Keep the log of earlier attempts for audit
        task_run.log = "\n".join(filter(None, [task_run.log, header, result.render_log()]))
        task_run.status = result.status.name
        task_run.exit_code = int(result.status)
        task_run.finished_at = datetime.now(timezone.utc)
        session.commit()

        log.info("task finished", task=task_name, module_id=module_id,
                 status=result.status.name, attempt=attempt, task_run_id=task_run.id)
        return result, task_run.id
    finally:
        session.close()


@app.task(bind=True, max_retries=None, name="reviewsync.celery_worker.run_task")
def run_task(self, task_name, module_id, retries=None, task_run_id=None, timeout=None):
    if retries is None:
        retries = settings.TASK_RETRIES
    attempt = getattr(self, "request", None) and getattr(self.request, "retries", 0) or 0

    result, task_run_id = execute_task(task_name, module_id, attempt, task_run_id, timeout)

    if should_retry(result.status, attempt, retries):
        delay = retry_delay(attempt)
        log.warning("task knocked out, retrying", task=task_name, module_id=module_id,
                    attempt=attempt, countdown=delay)
        raise self.retry(
            args=(task_name, module_id),
            kwargs={"retries": retries, "task_run_id": task_run_id, "timeout": timeout},
            countdown=delay,
        )

    return {**result.to_dict(), "task_run_id": task_run_id}


# --- Signals ---

@worker_init.connect
def worker_ready(sender=None, **kwargs):
    """Run any worker-specific initialization here if needed."""
    setup_logging()
    log.info("Worker initialized.")


@beat_init.connect
def register_schedules(sender=None, **kwargs):
    """Register scheduled tasks only when Beat starts."""
    from .schedulers import register_scheduled_tasks
    setup_logging()
    log.info("Registering scheduled tasks in Celery Beat...")
    register_scheduled_tasks()
