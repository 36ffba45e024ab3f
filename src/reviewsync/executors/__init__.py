# Re-export the executor contract and built-in executors for easy access
from .base import BaseExecutor, ExecutionResult, LogEntry, TaskInvocationContext, TaskStatus
from .review_exec import UpdateReviewsExecutor
