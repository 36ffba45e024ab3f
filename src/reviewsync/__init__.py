# Re-export main modules and objects for easier imports
from .db import init_db, SessionLocal, ModuleRecord, TaskSchedule, TaskRun
from .executors import UpdateReviewsExecutor, TaskInvocationContext, ExecutionResult, TaskStatus
from .celery_worker import run_task, execute_task
from .config import settings
