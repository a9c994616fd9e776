"""Pollable tasks: process-backed leaves and parallel/serial composites."""

from __future__ import annotations

import logging
import subprocess
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import IO, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Aggregator = Callable[[T, T], T]


@dataclass(frozen=True)
class Ready(Generic[T]):
    """A finished poll carrying the task's output."""

    value: T


class Task(ABC, Generic[T]):
    """
    A unit of cancellable work advanced by repeated polling.

    ``poll()`` returns ``None`` while the work is pending and ``Ready`` once
    it has finished. A task must not be polled again after it returned
    ``Ready`` or after it was cancelled.
    """

    @abstractmethod
    def poll(self) -> Ready[T] | None:
        """Advance the work one step without blocking."""

    @abstractmethod
    def cancel(self) -> None:
        """Request early termination. Safe to call any number of times."""


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a version control action: captured text plus success flag."""

    success: bool
    text: str = ""

    @classmethod
    def ok(cls, text: str = "") -> ActionResult:
        return cls(success=True, text=text)

    @classmethod
    def err(cls, text: str = "") -> ActionResult:
        return cls(success=False, text=text)


def action_aggregator(first: ActionResult, second: ActionResult) -> ActionResult:
    """Join two results with a newline. Any failure makes the whole a failure."""
    return ActionResult(
        success=first.success and second.success,
        text=f"{first.text}\n{second.text}",
    )


class ProcessState(Enum):
    """Lifecycle of a process-backed task."""

    WAITING = auto()
    RUNNING = auto()
    FINISHED = auto()
    CANCELLED = auto()


VALID_TRANSITIONS: dict[ProcessState, set[ProcessState]] = {
    ProcessState.WAITING: {ProcessState.RUNNING, ProcessState.FINISHED, ProcessState.CANCELLED},
    ProcessState.RUNNING: {ProcessState.FINISHED, ProcessState.CANCELLED},
    ProcessState.FINISHED: set(),
    ProcessState.CANCELLED: set(),
}


class ProcessTask(Task[ActionResult]):
    """
    Runs one external command and reports its captured output.

    The first poll spawns the process; later polls only check whether it has
    exited. Standard input is discarded. Standard output and error are spooled
    to temporary files so a chatty command never blocks on a full pipe.

    Exit code 0 yields ``ActionResult.ok(stdout)``, anything else yields
    ``ActionResult.err(stderr)``. Spawn and read errors are reported as
    failures rather than raised.
    """

    def __init__(self, args: Sequence[str], cwd: str | None = None):
        if not args:
            raise ValueError("ProcessTask needs at least an executable")
        self._args = list(args)
        self._cwd = cwd
        self._state = ProcessState.WAITING
        self._process: subprocess.Popen | None = None
        self._stdout: IO[bytes] | None = None
        self._stderr: IO[bytes] | None = None

    @property
    def args(self) -> list[str]:
        """Command line, executable first."""
        return list(self._args)

    @property
    def cwd(self) -> str | None:
        return self._cwd

    @property
    def state(self) -> ProcessState:
        return self._state

    def _transition_to(self, new_state: ProcessState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            raise RuntimeError(
                f"invalid process task transition {self._state.name} -> {new_state.name}"
            )
        self._state = new_state

    def poll(self) -> Ready[ActionResult] | None:
        if self._state == ProcessState.WAITING:
            failure = self._spawn()
            if failure is not None:
                self._transition_to(ProcessState.FINISHED)
                return Ready(failure)
            self._transition_to(ProcessState.RUNNING)

        if self._state == ProcessState.RUNNING:
            assert self._process is not None
            try:
                returncode = self._process.poll()
            except OSError as e:
                self._finish()
                return Ready(ActionResult.err(str(e)))
            if returncode is None:
                return None
            result = self._collect(returncode)
            self._finish()
            return Ready(result)

        if self._state == ProcessState.CANCELLED:
            # Never spawn once cancelled
            return Ready(ActionResult.err("cancelled"))

        raise RuntimeError("process task polled after it finished")

    def cancel(self) -> None:
        if self._state == ProcessState.WAITING:
            self._transition_to(ProcessState.CANCELLED)
        elif self._state == ProcessState.RUNNING:
            assert self._process is not None
            logger.debug("Killing %s (pid %s)", self._args[0], self._process.pid)
            try:
                self._process.kill()
            except OSError:
                # Already gone
                pass
            if self._process.poll() is None:
                _reap_in_background(self._process)
            self._close_streams()
            self._transition_to(ProcessState.CANCELLED)

    def _spawn(self) -> ActionResult | None:
        logger.debug("Spawning: %s", " ".join(self._args))
        try:
            self._stdout = tempfile.TemporaryFile()
            self._stderr = tempfile.TemporaryFile()
            self._process = subprocess.Popen(
                self._args,
                cwd=self._cwd,
                stdin=subprocess.DEVNULL,
                stdout=self._stdout,
                stderr=self._stderr,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.debug("Spawn failed for %s: %s", self._args[0], e)
            self._close_streams()
            return ActionResult.err(str(e))
        return None

    def _collect(self, returncode: int) -> ActionResult:
        stream = self._stdout if returncode == 0 else self._stderr
        assert stream is not None
        try:
            stream.seek(0)
            text = stream.read().decode("utf-8", errors="replace")
        except OSError as e:
            return ActionResult.err(str(e))
        if returncode == 0:
            return ActionResult.ok(text)
        return ActionResult.err(text)

    def _finish(self) -> None:
        self._close_streams()
        self._transition_to(ProcessState.FINISHED)

    def _close_streams(self) -> None:
        for stream in (self._stdout, self._stderr):
            if stream is not None:
                stream.close()
        self._stdout = None
        self._stderr = None


def _reap_in_background(process: subprocess.Popen) -> None:
    """Wait for a killed process on a daemon thread so it never lingers as a zombie."""
    threading.Thread(target=process.wait, name="verco-reaper", daemon=True).start()


class ParallelTasks(Task[T]):
    """Polls every unfinished child each round; ready when all children are."""

    def __init__(self, tasks: Sequence[Task[T]], aggregator: Aggregator[T]):
        if not tasks:
            raise ValueError("parallel() needs at least one task")
        self._tasks = list(tasks)
        self._cached_results: list[Ready[T] | None] = [None] * len(self._tasks)
        self._aggregator = aggregator

    @property
    def tasks(self) -> list[Task[T]]:
        return list(self._tasks)

    def poll(self) -> Ready[T] | None:
        all_ready = True
        for i, task in enumerate(self._tasks):
            if self._cached_results[i] is None:
                self._cached_results[i] = task.poll()
                if self._cached_results[i] is None:
                    all_ready = False

        if not all_ready:
            return None

        results = [cached.value for cached in self._cached_results if cached is not None]
        self._cached_results = []
        return Ready(_fold(results, self._aggregator))

    def cancel(self) -> None:
        for task, cached in zip(self._tasks, self._cached_results):
            if cached is None:
                task.cancel()


class SerialTasks(Task[T]):
    """Runs children one after another, never starting a child early."""

    def __init__(self, tasks: Sequence[Task[T]], aggregator: Aggregator[T]):
        if not tasks:
            raise ValueError("serial() needs at least one task")
        self._tasks = list(tasks)
        self._cached_results: list[T] = []
        self._aggregator = aggregator

    @property
    def tasks(self) -> list[Task[T]]:
        return list(self._tasks)

    def poll(self) -> Ready[T] | None:
        ready = self._tasks[len(self._cached_results)].poll()
        if ready is None:
            return None
        self._cached_results.append(ready.value)

        if len(self._cached_results) < len(self._tasks):
            return None

        results, self._cached_results = self._cached_results, []
        return Ready(_fold(results, self._aggregator))

    def cancel(self) -> None:
        for task in self._tasks[len(self._cached_results):]:
            task.cancel()


def _fold(results: list[T], aggregator: Aggregator[T]) -> T:
    aggregated = results[0]
    for result in results[1:]:
        aggregated = aggregator(aggregated, result)
    return aggregated


def parallel(tasks: Sequence[Task[T]], aggregator: Aggregator[T]) -> Task[T]:
    """Combine tasks that may run at the same time."""
    return ParallelTasks(tasks, aggregator)


def serial(tasks: Sequence[Task[T]], aggregator: Aggregator[T]) -> Task[T]:
    """Combine tasks that must run in order."""
    return SerialTasks(tasks, aggregator)
