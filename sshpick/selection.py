"""
Keyboard-driven selection over the visible host rows.

Key presses are first turned into one of the :class:`KeyAction` variants
below, then fed to :class:`HostBrowser`, which owns the query and the cursor.
The renderer only ever sees :class:`Snapshot` objects.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from sshpick.hosts import Host
from sshpick.search_utils import HEADER_ROW, VisibleRow, visible_rows

PAGE_SIZE = 21


@dataclass(frozen=True)
class NavigateUp:
    pass


@dataclass(frozen=True)
class NavigateDown:
    pass


@dataclass(frozen=True)
class NavigateFirst:
    pass


@dataclass(frozen=True)
class NavigateLast:
    pass


@dataclass(frozen=True)
class PageUp:
    pass


@dataclass(frozen=True)
class PageDown:
    pass


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class ClearQuery:
    pass


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class AppendChar:
    char: str


@dataclass(frozen=True)
class Resize:
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class Quit:
    pass


KeyAction = Union[
    NavigateUp,
    NavigateDown,
    NavigateFirst,
    NavigateLast,
    PageUp,
    PageDown,
    Backspace,
    ClearQuery,
    Confirm,
    AppendChar,
    Resize,
    Quit,
]


class Outcome(enum.Enum):
    CONTINUE = "continue"
    CONNECT = "connect"
    QUIT = "quit"


@dataclass(frozen=True)
class Snapshot:
    """Everything the renderer needs after a state change."""

    header: Tuple[str, str, str, str]
    rows: Tuple[VisibleRow, ...]
    selected: Optional[int]
    query: str


class SelectionController:
    """Tracks which visible row is selected.

    ``index`` is ``None`` exactly when there are no visible rows.
    """

    def __init__(self, rows: Sequence[VisibleRow] = ()):
        self._rows: List[VisibleRow] = list(rows)
        self.index: Optional[int] = 0 if self._rows else None

    @property
    def visible_count(self) -> int:
        return len(self._rows)

    @property
    def is_empty(self) -> bool:
        return self.index is None

    @property
    def rows(self) -> Tuple[VisibleRow, ...]:
        return tuple(self._rows)

    @property
    def selected_row(self) -> Optional[VisibleRow]:
        if self.index is None:
            return None
        return self._rows[self.index]

    def navigate(self, delta: int) -> None:
        if self.index is None:
            return
        # Python's modulo already folds negative offsets back into range
        self.index = (self.index + delta) % len(self._rows)

    def jump(self, index: int) -> None:
        """Move to *index*, clamped to the ends."""
        if self.index is None:
            return
        self.index = max(0, min(index, len(self._rows) - 1))

    def page(self, delta: int) -> None:
        if self.index is None:
            return
        self.jump(self.index + delta)

    def refilter(self, new_rows: Sequence[VisibleRow]) -> None:
        """Swap in a new row set, keeping the selected row if it is still there."""
        previous = self.selected_row
        self._rows = list(new_rows)
        if not self._rows:
            self.index = None
            return
        if previous is not None:
            for position, row in enumerate(self._rows):
                if row.values == previous.values:
                    self.index = position
                    return
        self.index = 0


class HostBrowser:
    """Search query plus selection over a fixed list of hosts."""

    def __init__(
        self,
        hosts: Sequence[Host],
        query: str = "",
        *,
        display_full_proxy: bool = False,
        page_size: int = PAGE_SIZE,
    ):
        self.hosts: Tuple[Host, ...] = tuple(hosts)
        self.display_full_proxy = display_full_proxy
        self.page_size = page_size
        self._query = (query or "").lower()
        self.selection = SelectionController(self._filter())

    @property
    def query(self) -> str:
        return self._query

    def _filter(self) -> List[VisibleRow]:
        return visible_rows(self.hosts, self._query, self.display_full_proxy)

    def set_query(self, query: str) -> None:
        query = (query or "").lower()
        if query == self._query:
            return
        self._query = query
        self.selection.refilter(self._filter())

    def apply(self, action: KeyAction) -> Outcome:
        """Apply one key action and report what the caller should do next."""
        if isinstance(action, NavigateUp):
            self.selection.navigate(-1)
        elif isinstance(action, NavigateDown):
            self.selection.navigate(1)
        elif isinstance(action, NavigateFirst):
            self.selection.jump(0)
        elif isinstance(action, NavigateLast):
            self.selection.jump(self.selection.visible_count - 1)
        elif isinstance(action, PageUp):
            self.selection.page(-self.page_size)
        elif isinstance(action, PageDown):
            self.selection.page(self.page_size)
        elif isinstance(action, AppendChar):
            self.set_query(self._query + action.char)
        elif isinstance(action, Backspace):
            self.set_query(self._query[:-1])
        elif isinstance(action, ClearQuery):
            self.set_query("")
        elif isinstance(action, Confirm):
            if self.selection.is_empty:
                return Outcome.CONTINUE
            return Outcome.CONNECT
        elif isinstance(action, Quit):
            return Outcome.QUIT
        elif isinstance(action, Resize):
            pass
        else:
            raise TypeError(f"Unknown key action: {action!r}")
        return Outcome.CONTINUE

    def selected_host(self) -> Optional[Host]:
        row = self.selection.selected_row
        return row.host if row is not None else None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            header=HEADER_ROW,
            rows=self.selection.rows,
            selected=self.selection.index,
            query=self._query,
        )


__all__ = [
    "AppendChar",
    "Backspace",
    "ClearQuery",
    "Confirm",
    "HostBrowser",
    "KeyAction",
    "NavigateDown",
    "NavigateFirst",
    "NavigateLast",
    "NavigateUp",
    "Outcome",
    "PAGE_SIZE",
    "PageDown",
    "PageUp",
    "Quit",
    "Resize",
    "SelectionController",
    "Snapshot",
]
