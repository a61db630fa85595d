"""Progress tracking context for import runs."""

import threading
from typing import Optional

from rich.progress import Progress, TaskID


class ProgressContext:
    """Progress bar handle that worker threads can share.

    Without a Progress instance every call is a no-op, which lets the
    pipeline run unchanged in tests and library use.
    """

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None):
        self.progress = progress
        self.task = task
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self.progress is not None and self.task is not None

    def set_total(self, total: int) -> None:
        if self.is_active:
            with self._lock:
                self.progress.update(self.task, total=total)

    def update(self, description: str) -> None:
        if self.is_active:
            with self._lock:
                self.progress.update(self.task, description=description)

    def advance(self, steps: int = 1) -> None:
        if self.is_active:
            with self._lock:
                self.progress.advance(self.task, steps)
