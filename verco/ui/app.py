"""Main TUI Application using Textual."""

from __future__ import annotations

import logging
from typing import Callable

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Label, SelectionList, Static

from verco import __version__
from verco.config import Settings, get_settings
from verco.core import Action, ActionFuture, ActionResult, Application
from verco.integrations import (
    CustomAction,
    Entry,
    VersionControlActions,
    VersionControlError,
)

logger = logging.getLogger(__name__)


class InputScreen(ModalScreen[str | None]):
    """Asks for one line of text. Empty input or escape cancels."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, prompt: str):
        super().__init__()
        self._prompt = prompt

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(self._prompt, classes="modal-title"),
            Input(id="modal-input"),
            classes="modal",
        )

    def on_mount(self) -> None:
        self.query_one("#modal-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value.strip() or None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SelectScreen(ModalScreen[list[Entry] | None]):
    """Lets the user pick changed files. Space toggles, enter confirms."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("enter", "confirm", "Confirm", priority=True),
    ]

    def __init__(self, entries: list[Entry]):
        super().__init__()
        self._entries = entries

    def compose(self) -> ComposeResult:
        selections = [
            (f"{entry.status:>2} {entry.filename}", i, entry.selected)
            for i, entry in enumerate(self._entries)
        ]
        yield Vertical(
            Label("select files (space to toggle, enter to confirm)", classes="modal-title"),
            SelectionList[int](*selections, id="modal-select"),
            classes="modal",
        )

    def on_mount(self) -> None:
        self.query_one("#modal-select", SelectionList).focus()

    def action_confirm(self) -> None:
        selected = set(self.query_one("#modal-select", SelectionList).selected)
        for i, entry in enumerate(self._entries):
            entry.selected = i in selected
        self.dismiss(self._entries if selected else None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class VercoApp(App):
    """Main TUI Application."""

    CSS = """
    #action-title {
        text-style: bold;
        color: magenta;
        padding: 0 1;
    }

    #output-scroll {
        height: 1fr;
        padding: 0 1;
        scrollbar-gutter: stable;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }

    InputScreen, SelectScreen {
        align: center middle;
    }

    .modal {
        width: 70%;
        height: auto;
        max-height: 80%;
        border: solid magenta;
        padding: 1 2;
        background: $surface;
    }

    .modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #modal-select {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("h", "help", "Help"),
        Binding("s", "status", "Status"),
        Binding("l", "log", "Log"),
        Binding("L", "log_count", "Log count", show=False),
        Binding("v", "full_revision", "Revision contents", show=False),
        Binding("i", "current_diff_all", "Current diff"),
        Binding("I", "current_diff_selected", "Current diff selected", show=False),
        Binding("d", "revision_changes", "Changes", show=False),
        Binding("D", "revision_diff", "Diff", show=False),
        Binding("ctrl+d", "revision_diff_selected", "Diff selected", show=False),
        Binding("c", "commit_all", "Commit"),
        Binding("C", "commit_selected", "Commit selected", show=False),
        Binding("backspace", "revert_all", "Revert all", show=False),
        Binding("X", "revert_selected", "Revert selected", show=False),
        Binding("u", "update", "Update", show=False),
        Binding("m", "merge", "Merge", show=False),
        Binding("r", "conflicts", "Conflicts", show=False),
        Binding("R", "take_other", "Take other", show=False),
        Binding("ctrl+r", "take_local", "Take local", show=False),
        Binding("f", "fetch", "Fetch", show=False),
        Binding("p", "pull", "Pull", show=False),
        Binding("P", "push", "Push", show=False),
        Binding("T", "new_tag", "Tag", show=False),
        Binding("b", "list_branches", "Branches", show=False),
        Binding("B", "new_branch", "New branch", show=False),
        Binding("ctrl+b", "delete_branch", "Delete branch", show=False),
    ]

    def __init__(
        self,
        version_control: VersionControlActions,
        settings: Settings | None = None,
        application: Application | None = None,
    ):
        super().__init__()
        self._settings = settings or get_settings()
        self._vcs = version_control
        self._application = application or Application(
            poll_interval=self._settings.worker.poll_interval_seconds
        )
        self._custom_actions = {
            config.shortcut: CustomAction.from_config(config)
            for config in self._settings.custom_actions
        }
        self._current_action: Action | None = None
        self._shown_result: ActionResult | None = None

    @property
    def current_action(self) -> Action | None:
        """Action whose output is on screen."""
        return self._current_action

    @property
    def shown_result(self) -> ActionResult | None:
        """Result currently rendered, if any."""
        return self._shown_result

    def compose(self) -> ComposeResult:
        # Held directly, queries only reach the active screen
        self._title_label = Label("", id="action-title")
        self._output = Static("", id="output")
        self._output_scroll = VerticalScroll(self._output, id="output-scroll")
        self._status_bar = Label("", id="status-bar")
        yield Header()
        yield self._title_label
        yield self._output_scroll
        yield self._status_bar
        yield Footer()

    def on_mount(self) -> None:
        """Initialize on mount."""
        self.title = f"Verco {__version__}"
        self.sub_title = self._vcs.repository_directory
        self.set_interval(self._settings.ui.tick_ms / 1000, self._tick)
        self.action_help()

    def on_unmount(self) -> None:
        self._application.stop()

    def _tick(self) -> None:
        """Pick up at most one finished action and refresh the status bar."""
        finished = self._application.poll_action_result()
        if finished is not None:
            action, result = finished
            if action == self._current_action:
                self._show_result(result)
        self._update_status()

    def _update_status(self) -> None:
        count = self._application.task_count
        status = f"{count} running" if count else ""
        self._status_bar.update(status)

    # -- rendering --------------------------------------------------------

    def _show_action(self, title: str, action: Action | None = None) -> None:
        self._current_action = action
        self._shown_result = None
        self._title_label.update(title)
        self._output.update("")

    def _show_text(self, text: Text) -> None:
        self._output.update(text)
        self._output_scroll.scroll_home(animate=False)

    def _show_result(self, result: ActionResult) -> None:
        self._shown_result = result
        text = Text.from_ansi(result.text.rstrip("\n"))
        text.append("\n\n")
        if result.success:
            text.append("done", style="bold green")
        else:
            text.append("error", style="bold red")
        self._show_text(text)

    def _show_running(self, last: ActionResult) -> None:
        text = Text.from_ansi(last.text.rstrip("\n"), style="dim")
        text.append("\n\n")
        text.append("running...", style="yellow")
        self._show_text(text)

    def _show_canceled(self) -> None:
        self._current_action = None
        self._show_text(Text("canceled", style="yellow"))

    # -- running actions --------------------------------------------------

    def _start(self, action_future: ActionFuture, title: str | None = None) -> None:
        action = action_future.action
        self._show_action(title or action.title, action)
        last = self._application.run_action(action_future)
        self._show_running(last)
        self._update_status()

    def _prompt(
        self,
        action: Action,
        prompt: str,
        build: Callable[[str], ActionFuture],
    ) -> None:
        self._show_action(action.title)

        def on_input(value: str | None) -> None:
            if value is None:
                self._show_canceled()
                return
            self._start(build(value))

        self.push_screen(InputScreen(f"{prompt} (esc to cancel):"), on_input)

    def _select(self, action: Action, then: Callable[[list[Entry]], None]) -> None:
        self._show_action(action.title)
        try:
            entries = self._vcs.get_files_to_commit()
        except VersionControlError as e:
            self._show_result(ActionResult.err(str(e)))
            return

        if not entries:
            self._show_result(ActionResult.ok("nothing to select"))
            return

        def on_select(selected: list[Entry] | None) -> None:
            if selected is None:
                self._show_canceled()
                return
            then(selected)

        self.push_screen(SelectScreen(entries), on_select)

    # -- bindings ---------------------------------------------------------

    def action_help(self) -> None:
        self._show_action(Action.HELP.title)
        version = self._vcs.version()
        text = Text()
        text.append(f"Verco {__version__}\n\n")
        text.append(version.text.rstrip("\n") + "\n\n", style=None if version.success else "bold red")
        text.append("press a key and perform an action\n\n")
        for binding in self.BINDINGS:
            text.append(f"  {binding.key:<12}", style="bold yellow")
            text.append(f"{binding.description}\n")
        for shortcut, custom in self._custom_actions.items():
            text.append(f"  {shortcut:<12}", style="bold yellow")
            text.append(f"{custom.title}\n")
        self._show_text(text)

    def action_status(self) -> None:
        self._start(self._vcs.status())

    def action_log(self) -> None:
        self._start(self._vcs.log())

    def action_log_count(self) -> None:
        self._show_action(Action.LOG_COUNT.title)

        def on_input(value: str | None) -> None:
            if value is None:
                self._show_canceled()
                return
            if not value.isdigit() or int(value) < 1:
                self._show_result(ActionResult.err(f"invalid log count: {value}"))
                return
            self._start(self._vcs.log(int(value)))

        self.push_screen(InputScreen("log count (esc to cancel):"), on_input)

    def action_full_revision(self) -> None:
        self._prompt(Action.CURRENT_FULL_REVISION, "show revision", self._vcs.full_revision)

    def action_current_diff_all(self) -> None:
        self._start(self._vcs.current_diff_all())

    def action_current_diff_selected(self) -> None:
        self._select(
            Action.CURRENT_DIFF_SELECTED,
            lambda entries: self._start(self._vcs.current_diff_selected(entries)),
        )

    def action_revision_changes(self) -> None:
        self._prompt(Action.REVISION_CHANGES, "show changes from", self._vcs.changes)

    def action_revision_diff(self) -> None:
        self._prompt(Action.REVISION_DIFF, "show diff from", self._vcs.diff)

    def action_revision_diff_selected(self) -> None:
        def then(entries: list[Entry]) -> None:
            self._prompt(
                Action.REVISION_DIFF_SELECTED,
                "show diff from",
                lambda target: self._vcs.diff_selected(target, entries),
            )

        self._select(Action.REVISION_DIFF_SELECTED, then)

    def action_commit_all(self) -> None:
        self._prompt(Action.COMMIT_ALL, "commit message", self._vcs.commit_all)

    def action_commit_selected(self) -> None:
        def then(entries: list[Entry]) -> None:
            self._prompt(
                Action.COMMIT_SELECTED,
                "commit message",
                lambda message: self._vcs.commit_selected(message, entries),
            )

        self._select(Action.COMMIT_SELECTED, then)

    def action_revert_all(self) -> None:
        self._start(self._vcs.revert_all())

    def action_revert_selected(self) -> None:
        self._select(
            Action.REVERT_SELECTED,
            lambda entries: self._start(self._vcs.revert_selected(entries)),
        )

    def action_update(self) -> None:
        self._prompt(Action.UPDATE, "update to", self._vcs.update)

    def action_merge(self) -> None:
        self._prompt(Action.MERGE, "merge with", self._vcs.merge)

    def action_conflicts(self) -> None:
        self._start(self._vcs.conflicts())

    def action_take_other(self) -> None:
        self._start(self._vcs.take_other())

    def action_take_local(self) -> None:
        self._start(self._vcs.take_local())

    def action_fetch(self) -> None:
        self._start(self._vcs.fetch())

    def action_pull(self) -> None:
        self._start(self._vcs.pull())

    def action_push(self) -> None:
        self._start(self._vcs.push())

    def action_new_tag(self) -> None:
        self._prompt(Action.NEW_TAG, "tag name", self._vcs.create_tag)

    def action_list_branches(self) -> None:
        self._start(self._vcs.list_branches())

    def action_new_branch(self) -> None:
        self._prompt(Action.NEW_BRANCH, "branch name", self._vcs.create_branch)

    def action_delete_branch(self) -> None:
        self._prompt(Action.DELETE_BRANCH, "branch to delete", self._vcs.close_branch)

    def on_key(self, event: events.Key) -> None:
        """Run custom actions bound to otherwise unused keys."""
        if isinstance(self.screen, ModalScreen):
            return
        custom = self._custom_actions.get(event.character or "")
        if custom is None:
            return
        event.stop()
        self._start(custom.future(self._vcs.repository_directory), title=custom.title)

    async def action_quit(self) -> None:
        """Quit the application."""
        self._application.stop()
        self.exit()
