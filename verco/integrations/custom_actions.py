"""User-configured commands bound to keys."""

from __future__ import annotations

from dataclasses import dataclass, field

from verco.config import CustomActionConfig
from verco.core import Action, ActionFuture, ProcessTask


@dataclass
class CustomAction:
    """An arbitrary command run in the repository directory."""

    shortcut: str
    command: str
    args: list[str] = field(default_factory=list)
    description: str = ""

    @classmethod
    def from_config(cls, config: CustomActionConfig) -> CustomAction:
        return cls(
            shortcut=config.shortcut,
            command=config.command,
            args=list(config.args),
            description=config.description,
        )

    @property
    def title(self) -> str:
        return self.description or " ".join([self.command, *self.args])

    def future(self, repository_directory: str) -> ActionFuture:
        task = ProcessTask([self.command, *self.args], cwd=repository_directory)
        return ActionFuture(Action.CUSTOM_ACTION, task)
