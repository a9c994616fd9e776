"""Background worker that owns and polls in-flight tasks."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Generic, Hashable, TypeVar, Union

from verco.core.task import Task

logger = logging.getLogger(__name__)

IdT = TypeVar("IdT", bound=Hashable)
T = TypeVar("T")

DEFAULT_POLL_INTERVAL = 0.02


class WorkerError(RuntimeError):
    """The worker thread is gone; results can no longer be produced."""


@dataclass
class _AddTask(Generic[IdT, T]):
    id: IdT
    task: Task[T]


@dataclass
class _CancelTask(Generic[IdT]):
    id: IdT


class _CancelAll:
    pass


_Operation = Union[_AddTask, _CancelTask, _CancelAll]


class Worker(Generic[IdT, T]):
    """
    Runs tasks on one dedicated thread.

    Callers talk to the worker through two channels: operations go in
    (submit, cancel, cancel all) and ``(id, output)`` pairs come out. Only the
    worker thread ever calls ``poll()`` or ``cancel()`` on a task, and at most
    one task per id is live at any time: submitting under a busy id cancels
    the task already there.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        name: str = "verco-worker",
    ):
        self._poll_interval = poll_interval
        self._operations: queue.SimpleQueue[_Operation] = queue.SimpleQueue()
        self._results: queue.SimpleQueue[tuple[IdT, T]] = queue.SimpleQueue()
        self._stop_event = threading.Event()
        self._count_lock = threading.Lock()
        self._task_count = 0
        self._failure: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def live_task_count(self) -> int:
        """Number of tasks the worker currently holds."""
        with self._count_lock:
            return self._task_count

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def submit(self, id: IdT, task: Task[T]) -> None:
        """Hand ``task`` to the worker, superseding any task under ``id``."""
        self._send(_AddTask(id, task))

    def cancel(self, id: IdT) -> None:
        """Cancel and drop the task under ``id``, if there is one."""
        self._send(_CancelTask(id))

    def cancel_all(self) -> None:
        """Cancel and drop every live task."""
        self._send(_CancelAll())

    def drain_one_result(self) -> tuple[IdT, T] | None:
        """
        Return the next finished ``(id, output)`` pair without blocking.

        Returns:
            The pair, or None when nothing has finished yet.

        Raises:
            WorkerError: if the worker thread died.
        """
        try:
            return self._results.get_nowait()
        except queue.Empty:
            pass
        self._check_alive()
        return None

    def stop(self) -> None:
        """Stop the thread and wait for it. Tasks still live are cancelled."""
        self._stop_event.set()
        self._thread.join()
        logger.debug("Worker %s stopped", self._thread.name)

    def _send(self, operation: _Operation) -> None:
        if self._stop_event.is_set():
            raise WorkerError("worker has been stopped")
        self._check_alive()
        self._operations.put(operation)

    def _check_alive(self) -> None:
        if self._failure is not None:
            raise WorkerError("worker thread crashed") from self._failure
        if not self._thread.is_alive() and not self._stop_event.is_set():
            raise WorkerError("worker thread exited unexpectedly")

    def _run(self) -> None:
        tasks: dict[IdT, Task[T]] = {}
        try:
            while not self._stop_event.is_set():
                self._apply_operations(tasks)
                self._poll_tasks(tasks)
                self._stop_event.wait(self._poll_interval)

            self._apply_operations(tasks)
        except Exception as e:
            logger.exception("Worker thread crashed")
            self._failure = e
        finally:
            # No task outlives the thread, whether it stopped or crashed
            self._cancel_remaining(tasks)
            self._set_count(len(tasks))

    def _apply_operations(self, tasks: dict[IdT, Task[T]]) -> None:
        while True:
            try:
                operation = self._operations.get_nowait()
            except queue.Empty:
                break

            if isinstance(operation, _AddTask):
                if operation.id in tasks:
                    logger.debug("Replacing task %s", operation.id)
                    self._drop(tasks, operation.id)
                tasks[operation.id] = operation.task
                logger.debug("Task %s added", operation.id)
            elif isinstance(operation, _CancelTask):
                if operation.id in tasks:
                    self._drop(tasks, operation.id)
                    logger.debug("Task %s cancelled", operation.id)
            else:
                for id in list(tasks):
                    self._drop(tasks, id)
                logger.debug("All tasks cancelled")

        self._set_count(len(tasks))

    def _poll_tasks(self, tasks: dict[IdT, Task[T]]) -> None:
        for id, task in list(tasks.items()):
            ready = task.poll()
            if ready is not None:
                del tasks[id]
                self._results.put((id, ready.value))
                logger.debug("Task %s finished", id)

        self._set_count(len(tasks))

    def _drop(self, tasks: dict[IdT, Task[T]], id: IdT) -> None:
        tasks.pop(id).cancel()

    def _cancel_remaining(self, tasks: dict[IdT, Task[T]]) -> None:
        for id in list(tasks):
            try:
                self._drop(tasks, id)
            except Exception:
                logger.exception("Cancelling task %s failed", id)

    def _set_count(self, count: int) -> None:
        with self._count_lock:
            self._task_count = count
