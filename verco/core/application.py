"""Application facade: maps user actions to tasks running on the worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from verco.core.task import ActionResult, Task
from verco.core.worker import DEFAULT_POLL_INTERVAL, Worker

logger = logging.getLogger(__name__)


class Action(Enum):
    """User-facing actions. The value is the title shown in the UI."""

    QUIT = "quit"
    HELP = "help"
    STATUS = "status"
    LOG = "log"
    LOG_COUNT = "log count"
    CURRENT_FULL_REVISION = "revision full contents"
    CURRENT_DIFF_ALL = "current diff all"
    CURRENT_DIFF_SELECTED = "current diff selected"
    REVISION_CHANGES = "revision changes"
    REVISION_DIFF = "revision diff all"
    REVISION_DIFF_SELECTED = "revision diff selected"
    COMMIT_ALL = "commit all"
    COMMIT_SELECTED = "commit selected"
    UPDATE = "update/checkout"
    MERGE = "merge"
    REVERT_ALL = "revert all"
    REVERT_SELECTED = "revert selected"
    UNRESOLVED_CONFLICTS = "unresolved conflicts"
    MERGE_TAKING_OTHER = "merge taking other"
    MERGE_TAKING_LOCAL = "merge taking local"
    FETCH = "fetch"
    PULL = "pull"
    PUSH = "push"
    NEW_TAG = "new tag"
    LIST_BRANCHES = "list branches"
    NEW_BRANCH = "new branch"
    DELETE_BRANCH = "delete branch"
    CUSTOM_ACTION = "custom action"

    @property
    def title(self) -> str:
        return self.value


@dataclass
class ActionFuture:
    """A task paired with the action it performs."""

    action: Action
    task: Task[ActionResult]


class Application:
    """
    Runs actions in the background and remembers their latest results.

    Requesting an action while a previous run of it is still in flight
    cancels the previous run. The UI calls ``poll_action_result`` once per
    tick to pick up finished work.
    """

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self._worker: Worker[Action, ActionResult] = Worker(poll_interval=poll_interval)
        self._results: dict[Action, ActionResult] = {}

    def run_action(self, action_future: ActionFuture) -> ActionResult:
        """
        Start an action, superseding any run of it still in flight.

        Args:
            action_future: Action and the task that performs it

        Returns:
            The last known result for the action, or an empty success
        """
        action = action_future.action
        logger.info("Running", extra={"action": action.title})
        self._worker.cancel(action)
        self._worker.submit(action, action_future.task)
        return self.last_result(action)

    def poll_action_result(self) -> tuple[Action, ActionResult] | None:
        """Pick up one finished action, if any. Never blocks."""
        finished = self._worker.drain_one_result()
        if finished is None:
            return None

        action, result = finished
        self._results[action] = result
        if result.success:
            logger.info("Done", extra={"action": action.title})
        else:
            logger.warning("Failed", extra={"action": action.title})
        return action, result

    def last_result(self, action: Action) -> ActionResult:
        return self._results.get(action, ActionResult.ok())

    @property
    def task_count(self) -> int:
        """Number of actions still running."""
        return self._worker.live_task_count

    def stop(self) -> None:
        """Cancel everything in flight and shut the worker down."""
        if not self._worker.is_running:
            return
        self._worker.cancel_all()
        self._worker.stop()
