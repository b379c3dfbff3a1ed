from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from sshpick.hosts import Host

HEADER_ROW: Tuple[str, str, str, str] = ("Hostname", "User", "Target", "Port")


@dataclass(frozen=True)
class VisibleRow:
    """A host projected into the four displayed columns."""

    display_name: str
    user: str
    target: str
    port: str
    host: Host = field(compare=False, repr=False)

    @property
    def values(self) -> Tuple[str, str, str, str]:
        return (self.display_name, self.user, self.target, self.port)


def host_matches(host: Host, query: str, display_full_proxy: bool = False) -> bool:
    """Return True if host matches the search query.

    The search checks the display name and the target column with
    case-insensitive substring matching.
    """
    if not query:
        return True
    text = query.lower()
    values = [host.display_name, host.target(display_full_proxy)]
    return any(text in (value or "").lower() for value in values)


def visible_rows(hosts: Iterable[Host], query: str, display_full_proxy: bool = False) -> List[VisibleRow]:
    rows: List[VisibleRow] = []
    for host in hosts:
        target = host.target(display_full_proxy)
        if not target:
            continue
        if not host_matches(host, query, display_full_proxy):
            continue
        rows.append(VisibleRow(host.display_name, host.user, target, str(host.port), host))
    return rows


__all__ = ["HEADER_ROW", "VisibleRow", "host_matches", "visible_rows"]
