"""
Reading OpenSSH client configuration files.

Only the directives the host browser cares about are kept (``HostName``,
``User``, ``Port`` and ``ProxyCommand``); everything else is skipped without
complaint so that real-world configs with exotic options still load.
"""

import os
import glob
import shlex
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)

KNOWN_DIRECTIVES = ('hostname', 'user', 'port', 'proxycommand')
MAX_INCLUDE_DEPTH = 32


class SSHConfigError(Exception):
    """Base class for failures reading an SSH config file."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SSHConfigNotFoundError(SSHConfigError):
    """The SSH config file does not exist."""


class SSHConfigReadError(SSHConfigError):
    """The SSH config file exists but could not be read."""


@dataclass
class HostEntry:
    """One ``Host`` block as written in the file.

    ``patterns`` keeps the raw tokens, including any surrounding double
    quotes. ``options`` maps lowercased directive names to their values.
    """

    patterns: List[str]
    options: Dict[str, str] = field(default_factory=dict)
    source: str = ''

    def get(self, key: str, default: str = '') -> str:
        return self.options.get(key, default)

    def set_default(self, key: str, value: str) -> None:
        if key not in self.options:
            self.options[key] = value


def split_host_patterns(value: str) -> List[str]:
    """Split the value of a ``Host`` line into pattern tokens.

    Whitespace separates tokens except inside double quotes. The quotes are
    kept on the token so that callers can tell ``"web"`` from ``web``.
    """
    patterns: List[str] = []
    current = ''
    in_quotes = False
    for char in value:
        if char == '"':
            in_quotes = not in_quotes
            current += char
        elif char.isspace() and not in_quotes:
            if current:
                patterns.append(current)
                current = ''
        else:
            current += char
    if current:
        patterns.append(current)
    return patterns


def split_directive(line: str) -> Optional[Tuple[str, str]]:
    """Return ``(keyword, value)`` for a directive line.

    Accepts ``Key value``, ``Key=value`` and ``Key = value``. Returns ``None``
    for a bare keyword with no value.
    """
    line = line.strip()
    key_end = 0
    while key_end < len(line) and not line[key_end].isspace() and line[key_end] != '=':
        key_end += 1
    key = line[:key_end]
    rest = line[key_end:].strip()
    if rest.startswith('='):
        rest = rest[1:].strip()
    if not key or not rest:
        return None
    return key.lower(), rest


def _expand_include(pattern: str, base_dir: str) -> List[str]:
    expanded = os.path.expanduser(os.path.expandvars(pattern))
    if not os.path.isabs(expanded):
        expanded = os.path.join(base_dir, expanded)
    matches = glob.glob(expanded)
    if not matches:
        logger.warning("Include pattern %s does not match any files", pattern)
    files: List[str] = []
    for matched in sorted(matches):
        if os.path.isdir(matched):
            dir_matches = sorted(glob.glob(os.path.join(matched, '*')))
            if not dir_matches:
                logger.warning("Include directory %s is empty", matched)
            files.extend(dir_matches)
        else:
            files.append(matched)
    return files


def _read_lines(path: str) -> List[str]:
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.readlines()
    except FileNotFoundError as exc:
        raise SSHConfigNotFoundError(path, "file does not exist") from exc
    except IsADirectoryError as exc:
        raise SSHConfigReadError(path, "is a directory") from exc
    except OSError as exc:
        raise SSHConfigReadError(path, exc.strerror or str(exc)) from exc


class SSHConfigParser:
    """Turns config text into :class:`HostEntry` records.

    Entries come out in file order, with ``Include`` files spliced in where
    they are referenced. Directives from the global section (before the first
    ``Host``) are applied to every entry that leaves them unset.
    """

    def __init__(self, *, max_include_depth: int = MAX_INCLUDE_DEPTH):
        self.max_include_depth = max_include_depth

    def parse_file(self, path: str) -> List[HostEntry]:
        abs_path = os.path.abspath(os.path.expanduser(path))
        lines = _read_lines(abs_path)
        global_options, entries = self._parse_lines(lines, abs_path, 1, [abs_path])
        self._apply_globals(global_options, entries)
        logger.debug("Parsed %d host entries from %s", len(entries), abs_path)
        return entries

    def parse_string(self, text: str, source: str = '<string>') -> List[HostEntry]:
        base = os.path.abspath(source) if source != '<string>' else os.getcwd()
        global_options, entries = self._parse_lines(text.splitlines(), base, 1, [])
        self._apply_globals(global_options, entries)
        return entries

    @staticmethod
    def _apply_globals(global_options: Dict[str, str], entries: List[HostEntry]) -> None:
        if not global_options:
            return
        for entry in entries:
            for key, value in global_options.items():
                entry.set_default(key, value)

    def _parse_lines(
        self,
        lines: List[str],
        source: str,
        depth: int,
        stack: List[str],
    ) -> Tuple[Dict[str, str], List[HostEntry]]:
        global_options: Dict[str, str] = {}
        entries: List[HostEntry] = []
        current: Optional[HostEntry] = None
        in_match = False
        base_dir = os.path.dirname(source) if os.path.isfile(source) else source

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            parsed = split_directive(line)
            if parsed is None:
                if line.lower() == 'host':
                    # A Host line without patterns still ends the previous block
                    current = None
                    in_match = False
                continue
            key, value = parsed

            if key == 'host':
                patterns = split_host_patterns(value)
                current = HostEntry(patterns=patterns, source=source) if patterns else None
                if current is not None:
                    entries.append(current)
                in_match = False
                continue
            if key == 'match':
                current = None
                in_match = True
                continue
            if in_match:
                continue
            if key == 'include':
                included_globals, included_entries = self._include(value, base_dir, depth, stack)
                if current is not None:
                    # Only directives make sense inside a Host block
                    if included_entries:
                        logger.warning("Ignoring Host blocks included inside Host %s", ' '.join(current.patterns))
                    for inc_key, inc_value in included_globals.items():
                        current.set_default(inc_key, inc_value)
                else:
                    for inc_key, inc_value in included_globals.items():
                        global_options.setdefault(inc_key, inc_value)
                    entries.extend(included_entries)
                continue
            if key not in KNOWN_DIRECTIVES:
                continue

            if current is not None:
                current.set_default(key, value)
            else:
                global_options.setdefault(key, value)

        return global_options, entries

    def _include(
        self,
        value: str,
        base_dir: str,
        depth: int,
        stack: List[str],
    ) -> Tuple[Dict[str, str], List[HostEntry]]:
        merged_globals: Dict[str, str] = {}
        merged_entries: List[HostEntry] = []
        try:
            patterns = shlex.split(value)
        except ValueError:
            logger.warning("Cannot parse Include line: %s", value)
            return merged_globals, merged_entries

        for pattern in patterns:
            for path in _expand_include(pattern, base_dir):
                abs_path = os.path.abspath(path)
                if abs_path in stack:
                    logger.warning("Include cycle detected: %s -> %s", " -> ".join(stack), abs_path)
                    continue
                if depth + 1 > self.max_include_depth:
                    logger.warning("Maximum include depth (%d) exceeded at %s", self.max_include_depth, abs_path)
                    continue
                try:
                    lines = _read_lines(abs_path)
                except SSHConfigError as exc:
                    logger.warning("Cannot read include file %s: %s", abs_path, exc.reason)
                    continue
                inc_globals, inc_entries = self._parse_lines(lines, abs_path, depth + 1, stack + [abs_path])
                for key, inc_value in inc_globals.items():
                    merged_globals.setdefault(key, inc_value)
                merged_entries.extend(inc_entries)
        return merged_globals, merged_entries


def load_ssh_config(path: str) -> List[HostEntry]:
    """Parse the SSH config at *path*.

    Raises :class:`SSHConfigNotFoundError` or :class:`SSHConfigReadError`
    when the main file cannot be read.
    """
    return SSHConfigParser().parse_file(path)


__all__ = [
    "HostEntry",
    "SSHConfigError",
    "SSHConfigNotFoundError",
    "SSHConfigParser",
    "SSHConfigReadError",
    "load_ssh_config",
    "split_directive",
    "split_host_patterns",
]
