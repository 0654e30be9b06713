"""Cancellable, id-keyed re-lock tasks for temporarily unlocked documents."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

DEFAULT_RELOCK_DELAY = 30.0


class TimerHandle(Protocol):
    """Subset of :class:`threading.Timer` the scheduler relies on."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]
RelockCallback = Callable[[str, str], None]


def thread_timer(delay: float, function: Callable[[], None]) -> TimerHandle:
    """Return a daemon :class:`threading.Timer` so pending re-locks never block exit."""
    timer = threading.Timer(delay, function)
    timer.daemon = True
    return timer


@dataclass(slots=True)
class RelockTask:
    """A scheduled re-lock for one document.

    Attributes:
        document_id: Document the task belongs to.
        token: Unique value identifying this particular request.
        timer: Timer that invokes the callback once the delay elapses.
        done: Set once the task has run or been cancelled.
    """

    document_id: str
    token: str
    timer: TimerHandle
    done: threading.Event = field(default_factory=threading.Event)


class RelockScheduler:
    """Keep at most one pending re-lock per document id.

    The callback receives ``(document_id, token)``. It must confirm the token is
    still current via :meth:`is_current` before acting, and report completion
    with :meth:`complete`; a superseded or cancelled task is then a no-op even
    when its timer already fired.
    """

    def __init__(
        self,
        callback: RelockCallback,
        *,
        delay: float = DEFAULT_RELOCK_DELAY,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._callback = callback
        self._delay = max(0.0, delay)
        self._timer_factory = timer_factory or thread_timer
        self._tasks: dict[str, RelockTask] = {}
        self._guard = threading.Lock()

    @property
    def delay(self) -> float:
        """Return the delay applied to new tasks, in seconds."""
        return self._delay

    def schedule(self, document_id: str) -> str:
        """Schedule a re-lock for ``document_id``, superseding any pending one.

        Returns:
            str: Token identifying the new task.
        """
        token = uuid.uuid4().hex
        timer = self._timer_factory(self._delay, lambda: self._callback(document_id, token))
        task = RelockTask(document_id=document_id, token=token, timer=timer)
        with self._guard:
            previous = self._tasks.get(document_id)
            self._tasks[document_id] = task
        if previous is not None:
            self._stop(previous)
        timer.start()
        return token

    def cancel(self, document_id: str) -> bool:
        """Cancel the pending re-lock for ``document_id``.

        Returns:
            bool: Whether a task was pending.
        """
        with self._guard:
            task = self._tasks.pop(document_id, None)
        if task is None:
            return False
        self._stop(task)
        return True

    def cancel_all(self) -> list[str]:
        """Cancel every pending task and return the affected document ids."""
        with self._guard:
            tasks = list(self._tasks.values())
            self._tasks.clear()
        for task in tasks:
            self._stop(task)
        return [task.document_id for task in tasks]

    def is_pending(self, document_id: str) -> bool:
        """Return whether a re-lock is pending for ``document_id``."""
        with self._guard:
            return document_id in self._tasks

    def is_current(self, document_id: str, token: str) -> bool:
        """Return whether ``token`` identifies the pending task for ``document_id``."""
        with self._guard:
            task = self._tasks.get(document_id)
            return task is not None and task.token == token

    def complete(self, document_id: str, token: str) -> None:
        """Retire the task identified by ``token`` once its callback has run."""
        with self._guard:
            task = self._tasks.get(document_id)
            if task is None or task.token != token:
                return
            del self._tasks[document_id]
        task.done.set()

    def wait(self, document_id: str, timeout: Optional[float] = None) -> bool:
        """Block until the pending task for ``document_id`` has run or been cancelled.

        Returns:
            bool: False when ``timeout`` elapsed first, True otherwise.
        """
        with self._guard:
            task = self._tasks.get(document_id)
        if task is None:
            return True
        return task.done.wait(timeout)

    def _stop(self, task: RelockTask) -> None:
        task.timer.cancel()
        task.done.set()


__all__ = [
    "DEFAULT_RELOCK_DELAY",
    "RelockScheduler",
    "RelockTask",
    "TimerFactory",
    "TimerHandle",
    "thread_timer",
]
