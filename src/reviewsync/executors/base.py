"""
base.py
-------
Defines the BaseExecutor interface for all scheduled task executors,
together with the invocation context and the result record they produce.
All custom executors should inherit from BaseExecutor and implement the run method.
"""
import enum
from dataclasses import dataclass, field
from typing import List, Optional

from ..logging_ import get_logger


class TaskStatus(enum.IntEnum):
    """Exit codes understood by the scheduler."""
    OK = 0
    NO_RUN = 3
    KNOCKOUT = 5


@dataclass(frozen=True)
class TaskInvocationContext:
    module_id: str
    root_url: str
    timeout: Optional[float] = None


@dataclass(frozen=True)
class LogEntry:
    severity: str  # "info" | "error"
    message: str

    def render(self) -> str:
        return f"{self.severity.upper()}: {self.message}"


@dataclass
class ExecutionResult:
    """
    Status plus the ordered log trail of a single run.
    Entries are also forwarded to the structlog logger passed in, if any.
    """
    status: TaskStatus = TaskStatus.OK
    log_entries: List[LogEntry] = field(default_factory=list)
    logger: Optional[object] = field(default=None, repr=False, compare=False)

    def info(self, message: str) -> None:
        self._log("info", message)

    def error(self, message: str) -> None:
        self._log("error", message)

    def finish(self, status: TaskStatus) -> "ExecutionResult":
        self.status = status
        return self

    def _log(self, severity: str, message: str) -> None:
        self.log_entries.append(LogEntry(severity, message))
        if self.logger is not None:
            getattr(self.logger, severity)(message)

    def render_log(self) -> str:
        return "\n".join(entry.render() for entry in self.log_entries)

    def to_dict(self) -> dict:
        return {
            "status": self.status.name,
            "exit_code": int(self.status),
            "log": [{"severity": e.severity, "message": e.message} for e in self.log_entries],
        }


class BaseExecutor:
    name = "base"

    def __init__(self):
        self.log = get_logger(f"reviewsync.executors.{self.name}")

    def run(self, context: TaskInvocationContext) -> ExecutionResult:
        """
        context: per-invocation module id, root url and timeout
        Returns: ExecutionResult with status and log entries; must not raise
        """
        raise NotImplementedError
