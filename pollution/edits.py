"""Point modifications queued by any thread, drained once per tick by the coordinator."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class PendingEdit:
    pollutant: str
    x: int
    y: int
    modifier: float


class EditQueue:
    """Inbox of pending edits plus the working list consumed by the current tick."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inbox: list[PendingEdit] = []
        self.working: list[PendingEdit] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._inbox)

    def enqueue(self, edit: PendingEdit) -> None:
        with self._lock:
            self._inbox.append(edit)

    def drain_for_step(self) -> list[PendingEdit]:
        """Move the whole inbox into `working`; later enqueues land in a fresh inbox."""
        with self._lock:
            self.working, self._inbox = self._inbox, []
        return self.working
