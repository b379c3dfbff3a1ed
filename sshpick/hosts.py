"""Canonical host model built from parsed SSH config entries."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sshpick.ssh_config_utils import HostEntry

logger = logging.getLogger(__name__)

DEFAULT_PORT = 22
MIN_PORT = 1
MAX_PORT = 65535
PROXY_PLACEHOLDER = "(Proxy)"

_DNS_NAME_RE = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9_-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9_-]{1,63}(?<!-))*\.?$"
)


def strip_outer_quotes(value: str) -> str:
    """Remove one pair of double quotes when they wrap the whole value."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def is_dns_name(value: str) -> bool:
    """Structural DNS name check, no lookup. IP literals are not DNS names."""
    if not value or is_ip_address(value):
        return False
    if re.fullmatch(r"[0-9.]+", value):
        return False
    return bool(_DNS_NAME_RE.match(value))


def is_self_resolving(name: str) -> bool:
    """Return True if *name* can be used as its own address."""
    return is_ip_address(name) or is_dns_name(name)


@dataclass(frozen=True)
class Host:
    """One connectable host as shown in the browser."""

    patterns: Tuple[str, ...]
    display_name: str
    user: str = ""
    host_name: str = ""
    proxy_command: str = ""
    port: int = DEFAULT_PORT

    @property
    def identity(self) -> Tuple[str, str, str, str, int]:
        return (self.display_name, self.user, self.host_name, self.proxy_command, self.port)

    def target(self, display_full_proxy: bool = False) -> str:
        """Address shown in the Target column, empty if there is none."""
        if self.host_name:
            return self.host_name
        if self.proxy_command:
            return self.proxy_command if display_full_proxy else PROXY_PLACEHOLDER
        return ""

    def to_entry(self) -> HostEntry:
        """Convert back to a raw entry; normalizing it yields this host again."""
        options = {"port": str(self.port)}
        if self.user:
            options["user"] = self.user
        if self.host_name:
            options["hostname"] = self.host_name
        if self.proxy_command:
            options["proxycommand"] = self.proxy_command
        return HostEntry(patterns=list(self.patterns), options=options)


def build_host(entry: HostEntry) -> Optional[Host]:
    """Turn one raw entry into a :class:`Host`, or None if it must be dropped."""
    display_name = strip_outer_quotes(" ".join(entry.patterns))
    if not display_name:
        return None

    port_value = entry.get("port").strip()
    if port_value:
        try:
            port = int(port_value)
        except ValueError:
            port = None
        if port is None or not MIN_PORT <= port <= MAX_PORT:
            logger.debug("Dropping host %r with invalid port %r", display_name, port_value)
            return None
    else:
        port = DEFAULT_PORT

    host_name = entry.get("hostname").strip()
    proxy_command = entry.get("proxycommand").strip()
    if not host_name and not proxy_command:
        if not is_self_resolving(display_name):
            logger.debug("Dropping connection-less host %r", display_name)
            return None
        host_name = display_name

    return Host(
        patterns=tuple(entry.patterns),
        display_name=display_name,
        user=entry.get("user").strip(),
        host_name=host_name,
        proxy_command=proxy_command,
        port=port,
    )


def normalize_hosts(entries: Iterable[HostEntry], sort_by_name: bool = False) -> List[Host]:
    """Build, deduplicate and optionally sort hosts.

    Duplicates share the same ``(display_name, user, host_name,
    proxy_command, port)`` tuple; the first one seen is kept. Sorting is
    stable and case-insensitive on the display name.
    """
    hosts: List[Host] = []
    seen = set()
    for entry in entries:
        host = build_host(entry)
        if host is None:
            continue
        if host.identity in seen:
            continue
        seen.add(host.identity)
        hosts.append(host)

    if sort_by_name:
        hosts.sort(key=lambda h: h.display_name.lower())
    return hosts


__all__ = [
    "DEFAULT_PORT",
    "Host",
    "PROXY_PLACEHOLDER",
    "build_host",
    "is_dns_name",
    "is_ip_address",
    "is_self_resolving",
    "normalize_hosts",
    "strip_outer_quotes",
]
