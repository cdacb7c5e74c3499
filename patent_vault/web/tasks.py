"""Background task runner for AI requests, using threading."""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TaskAlreadyRunningError(RuntimeError):
    """Raised when an exclusive task name already has a running task."""


@dataclass
class TaskInfo:
    """Information about a background task."""
    id: str
    name: str
    status: str = "pending"  # pending | running | completed | failed
    message: str = ""
    result: Any = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict:
        response = {
            "task_id": self.id,
            "name": self.name,
            "status": self.status,
            "message": self.message,
        }
        if self.status == "completed":
            response["result"] = self.result
        if self.error:
            response["error"] = self.error
        return response


class TaskManager:
    """Runs each request in its own thread; callers poll for the single result."""

    def __init__(self, cleanup_after_seconds: int = 3600):
        self._tasks: dict[str, TaskInfo] = {}
        self._lock = threading.Lock()
        self._cleanup_after = cleanup_after_seconds

    def start_task(
        self,
        name: str,
        func: Callable,
        *args,
        exclusive: bool = False,
        **kwargs,
    ) -> str:
        """Start a background task.

        Args:
            name: Task name, e.g. "chat:<conversation id>".
            func: The function to execute. It receives a `progress_callback`
                  keyword argument that accepts a string message.
            exclusive: Refuse to start while a task with the same name runs.
            *args: Positional arguments for func.
            **kwargs: Keyword arguments for func.

        Returns:
            Task ID string.

        Raises:
            TaskAlreadyRunningError: If exclusive and a same-named task is running.
        """
        self._cleanup_old_tasks()

        task_id = uuid.uuid4().hex[:12]
        task = TaskInfo(id=task_id, name=name, status="running", started_at=datetime.now())

        with self._lock:
            if exclusive and self._running(name):
                raise TaskAlreadyRunningError(f"A '{name}' task is already running")
            self._tasks[task_id] = task

        def report(message: str):
            self._update(task_id, message=message)

        def run():
            try:
                result = func(*args, progress_callback=report, **kwargs)
            except Exception as e:
                logger.error(f"Task {name} ({task_id}) failed: {e}")
                self._update(task_id, status="failed", error=str(e), completed_at=datetime.now())
            else:
                self._update(task_id, status="completed", result=result, completed_at=datetime.now())

        threading.Thread(target=run, name=f"task-{task_id}", daemon=True).start()
        return task_id

    def _update(self, task_id: str, **changes):
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return
            for attr, value in changes.items():
                setattr(task, attr, value)

    def get_task(self, task_id: str) -> TaskInfo | None:
        """Get task info by ID."""
        with self._lock:
            return self._tasks.get(task_id)

    def has_running_task(self, name: str | None = None) -> bool:
        """Check if there's a running task, optionally filtering by name."""
        with self._lock:
            return self._running(name)

    def _running(self, name: str | None) -> bool:
        return any(
            task.status == "running" and (name is None or task.name == name)
            for task in self._tasks.values()
        )

    def _cleanup_old_tasks(self):
        """Forget finished tasks once nobody is expected to poll them any more."""
        cutoff = time.time() - self._cleanup_after
        with self._lock:
            expired = [
                task_id for task_id, task in self._tasks.items()
                if task.completed_at and task.completed_at.timestamp() < cutoff
            ]
            for task_id in expired:
                del self._tasks[task_id]
