"""Core module - task engine, background worker and application facade."""

from .task import (
    ActionResult,
    ParallelTasks,
    ProcessTask,
    Ready,
    SerialTasks,
    Task,
    action_aggregator,
    parallel,
    serial,
)
from .worker import Worker, WorkerError
from .application import Action, ActionFuture, Application

__all__ = [
    "Action",
    "ActionFuture",
    "ActionResult",
    "Application",
    "ParallelTasks",
    "ProcessTask",
    "Ready",
    "SerialTasks",
    "Task",
    "Worker",
    "WorkerError",
    "action_aggregator",
    "parallel",
    "serial",
]
