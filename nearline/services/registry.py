"""Index of in-flight tasks by request id.

Lookups are plain dictionary reads under a short lock and never wait for a
task to produce a result.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from nearline.infra.observability.metrics import IN_FLIGHT
from nearline.services.base import DuplicateRequestError

if TYPE_CHECKING:
    from nearline.services.tasks import NearlineTask


def registry_key(request_id: Any) -> str:
    """Normalise a request id so ``UUID`` and its string form collide."""
    return str(request_id).lower()


class TaskRegistry:
    def __init__(self, *, metrics_enabled: bool = True) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[str, NearlineTask] = {}
        self._metrics_enabled = metrics_enabled

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, request_id: object) -> bool:
        with self._lock:
            return registry_key(request_id) in self._tasks

    def register(self, task: NearlineTask) -> None:
        key = registry_key(task.request_id)
        with self._lock:
            if key in self._tasks:
                raise DuplicateRequestError(
                    f"Request {task.request_id} is already in flight"
                )
            self._tasks[key] = task
        if self._metrics_enabled:
            IN_FLIGHT.inc()

    def get(self, request_id: object) -> NearlineTask | None:
        with self._lock:
            return self._tasks.get(registry_key(request_id))

    def discard(self, request_id: object, task: NearlineTask | None = None) -> bool:
        """Remove the entry for ``request_id``.

        When ``task`` is given the entry is only removed if it still maps to
        that task, so a finished task never evicts a newer registration.
        """
        key = registry_key(request_id)
        with self._lock:
            current = self._tasks.get(key)
            if current is None or (task is not None and current is not task):
                return False
            del self._tasks[key]
        if self._metrics_enabled:
            IN_FLIGHT.dec()
        return True

    def cancel(self, request_id: object) -> bool:
        task = self.get(request_id)
        if task is None:
            return False
        return task.cancel()

    def request_ids(self) -> list[str]:
        with self._lock:
            return list(self._tasks)

