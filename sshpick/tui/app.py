from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.timer import Timer
from textual.widgets import DataTable, Static

from sshpick.hosts import Host
from sshpick.selection import (
    AppendChar,
    Backspace,
    ClearQuery,
    Confirm,
    HostBrowser,
    KeyAction,
    NavigateDown,
    NavigateFirst,
    NavigateLast,
    NavigateUp,
    Outcome,
    PageDown,
    PageUp,
    Quit,
    Resize,
    Snapshot,
)
from sshpick.tui.command_builder import launch, run_hook

LOG = logging.getLogger(__name__)

INFO_TEXT = "(Esc) quit | (↑) move up | (↓) move down | (enter) select | (Ctrl+U) clear search"

KEY_ACTIONS: Dict[str, KeyAction] = {
    "up": NavigateUp(),
    "ctrl+k": NavigateUp(),
    "down": NavigateDown(),
    "ctrl+j": NavigateDown(),
    "home": NavigateFirst(),
    "end": NavigateLast(),
    "pageup": PageUp(),
    "pagedown": PageDown(),
    "backspace": Backspace(),
    "ctrl+h": Backspace(),
    "ctrl+u": ClearQuery(),
    "enter": Confirm(),
    "escape": Quit(),
    "ctrl+c": Quit(),
}


def key_to_action(key: str, character: Optional[str] = None) -> Optional[KeyAction]:
    """Map a Textual key name (and its character, if any) to a key action."""
    action = KEY_ACTIONS.get(key)
    if action is not None:
        return action
    if character and len(character) == 1 and character.isprintable():
        return AppendChar(character)
    return None


@dataclass(frozen=True)
class RenderStyle:
    """Look of the browser. Passed in once, never mutated."""

    border: str = "round"
    accent: str = "dodgerblue"
    placeholder: str = "Search..."
    placeholder_color: str = "yellow"


class SearchBar(Static, can_focus=True):
    """Shows the query and turns key presses into key actions."""

    class ActionRequested(Message):
        """Sent for every key that maps to a key action."""

        def __init__(self, action: KeyAction):
            super().__init__()
            self.action = action

    def show_query(self, query: str, style: RenderStyle) -> None:
        if query:
            self.update(Text(query))
        else:
            self.update(Text(style.placeholder, style=style.placeholder_color))

    def on_key(self, event: events.Key) -> None:
        action = key_to_action(event.key, event.character)
        if action is None:
            return
        event.stop()
        event.prevent_default()
        self.post_message(self.ActionRequested(action))


class HostTable(DataTable, can_focus=False):
    """Host rows. Only ever redrawn from a snapshot."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = False

    def on_click(self, event: events.Click) -> None:
        # The cursor belongs to HostBrowser; keep DataTable from moving it
        event.prevent_default()
        event.stop()

    def show_snapshot(self, snapshot: Snapshot) -> None:
        if not self.columns:
            self.add_columns(*snapshot.header)
        self.clear(columns=False)
        for row in snapshot.rows:
            self.add_row(row.display_name, row.user, row.target, Text(row.port, justify="right"))
        self.show_cursor = snapshot.selected is not None
        if snapshot.selected is not None:
            self.move_cursor(row=snapshot.selected)


class StatusBar(Static):
    """Single-line status indicator."""

    message = ""

    def set_message(self, message: str, *, error: bool = False) -> None:
        self.message = message or ""
        self.set_class(error, "error")
        self.update(self.message)


class SshPickApp(App[int]):
    """Textual interface for picking a host from an SSH config and connecting."""

    TITLE = "sshpick"
    CSS = """
    Screen {
        layout: vertical;
    }

    #search {
        height: 3;
        padding: 0 1;
    }

    #body {
        height: 1fr;
    }

    #host-table {
        height: 1fr;
    }

    #info {
        height: 3;
        content-align: center middle;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    #status.error {
        background: $error;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit_app", "Quit", show=False, priority=True),
        Binding("escape", "quit_app", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        hosts: Sequence[Host],
        *,
        config_path: str,
        search: str = "",
        show_proxy_command: bool = False,
        command_template: str = "",
        on_session_start_template: str = "",
        on_session_end_template: str = "",
        exit_after_session: bool = False,
        style: Optional[RenderStyle] = None,
        launcher: Callable[..., int] = launch,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.browser = HostBrowser(hosts, search, display_full_proxy=show_proxy_command)
        self.config_path = config_path
        self.command_template = command_template
        self.on_session_start_template = on_session_start_template
        self.on_session_end_template = on_session_end_template
        self.exit_after_session = exit_after_session
        self.render_style = style or RenderStyle()
        self.launcher = launcher
        self.last_exit_code: Optional[int] = None
        self._status_timer: Optional[Timer] = None

    # --------------------------------------------------------------------- UI
    def compose(self) -> ComposeResult:
        yield SearchBar(id="search")
        with Vertical(id="body"):
            yield HostTable(id="host-table")
        yield Static(INFO_TEXT, id="info")
        yield StatusBar(id="status")

    def on_mount(self) -> None:
        self.search_bar = self.query_one(SearchBar)
        self.host_table = self.query_one(HostTable)
        self.status_bar = self.query_one(StatusBar)
        for widget in (self.search_bar, self.host_table, self.query_one("#info")):
            widget.styles.border = (self.render_style.border, self.render_style.accent)
        self.search_bar.focus()
        self.refresh_view()
        if not self.browser.hosts:
            self.set_status(f"No hosts found in {self.config_path}", persist=True)

    def refresh_view(self) -> None:
        if not hasattr(self, "host_table"):
            return
        snapshot = self.browser.snapshot()
        self.search_bar.show_query(snapshot.query, self.render_style)
        self.host_table.show_snapshot(snapshot)

    # ---------------------------------------------------------------- bindings
    def action_quit_app(self) -> None:
        self.apply_key_action(Quit())

    # ----------------------------------------------------------------- events
    def on_search_bar_action_requested(self, event: SearchBar.ActionRequested) -> None:
        event.stop()
        self.apply_key_action(event.action)

    def on_resize(self, event: events.Resize) -> None:
        self.apply_key_action(Resize(event.size.width, event.size.height))

    def apply_key_action(self, action: KeyAction) -> None:
        outcome = self.browser.apply(action)
        if outcome is Outcome.QUIT:
            self.exit(result=0, return_code=0)
            return
        if outcome is Outcome.CONNECT:
            self.connect_selected()
            return
        self.refresh_view()

    # ----------------------------------------------------------------- connect
    def connect_selected(self) -> None:
        host = self.browser.selected_host()
        if host is None:
            return

        try:
            with self.suspend():
                rc = self._run_session(host)
        except SuspendNotSupported:
            LOG.error("Terminal cannot be handed over to a child process in this environment")
            self.set_status("Cannot suspend the terminal here", error=True, persist=True)
            return
        except ValueError as exc:
            LOG.error("Failed to prepare connection command: %s", exc)
            self.set_status(f"Failed to prepare command: {exc}", error=True, persist=True)
            return

        self.last_exit_code = rc
        if self.exit_after_session:
            self.exit(result=rc, return_code=rc)
            return
        self.refresh_view()
        if rc == 0:
            self.set_status("SSH session ended")
        else:
            self.set_status(f"SSH exited with code {rc}", error=True)

    def _run_session(self, host: Host) -> int:
        print(f"Connecting to {host.display_name}...")
        run_hook(self.on_session_start_template, host, self.config_path)
        try:
            return self.launcher(host, self.config_path, self.command_template)
        finally:
            run_hook(self.on_session_end_template, host, self.config_path)

    # ----------------------------------------------------------------- status
    def set_status(self, message: str, *, error: bool = False, persist: bool = False) -> None:
        if not hasattr(self, "status_bar"):
            return
        if self._status_timer:
            self._status_timer.stop()
            self._status_timer = None
        self.status_bar.set_message(message, error=error)
        if not persist:
            self._status_timer = self.set_timer(6, self._clear_status, name="status-clear")

    def _clear_status(self) -> None:
        self.status_bar.set_message("")
        self._status_timer = None


__all__ = ["HostTable", "RenderStyle", "SearchBar", "SshPickApp", "StatusBar", "key_to_action"]
