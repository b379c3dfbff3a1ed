"""
Helpers for launching the connection command for the TUI.

By default the selected host is opened with ``ssh -F <config> <name>`` so that
ssh applies every option from the config file itself. A custom template can
replace that command line; it is split shell-style and each token has its
placeholders substituted:

``%u``  user, ``%h``  host name, ``%p``  port, ``%r``  proxy command,
``%n``  display name, ``%c``  config file path.

Substitution is a plain left-to-right replace per token with no escaping, so a
value that itself contains a placeholder (say a host name with ``%p`` in it)
is substituted again by the later replacements.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Callable, List, Optional, Sequence

from sshpick.hosts import Host

logger = logging.getLogger(__name__)

SSH_PROGRAM = "ssh"
EXIT_NOT_FOUND = 127
EXIT_CANNOT_EXECUTE = 126
EXIT_SIGNAL_BASE = 128

Runner = Callable[[Sequence[str]], int]


def _placeholders(host: Host, config_path: str):
    return (
        ("%u", host.user),
        ("%h", host.host_name),
        ("%p", str(host.port)),
        ("%r", host.proxy_command),
        ("%n", host.display_name),
        ("%c", config_path),
    )


def render_template(template: str, host: Host, config_path: str) -> List[str]:
    """Split *template* into argv and substitute placeholders in each token."""
    try:
        tokens = shlex.split(template)
    except ValueError as exc:
        raise ValueError(f"Command template cannot be parsed: {exc}") from exc

    rendered: List[str] = []
    for token in tokens:
        for placeholder, value in _placeholders(host, config_path):
            token = token.replace(placeholder, value)
        rendered.append(token)
    return rendered


def build_ssh_command(host: Host, config_path: str, template: str = "") -> List[str]:
    """
    Return the argv list for connecting to *host*.

    Args:
        host: The selected :class:`sshpick.hosts.Host`.
        config_path: Absolute path of the SSH config the host came from.
        template: Optional command template; empty means plain ``ssh``.
    """
    if not template.strip():
        return [SSH_PROGRAM, "-F", config_path, host.display_name.strip()]

    cmd = render_template(template, host, config_path)
    if not cmd:
        raise ValueError("Command template is empty after parsing")
    return cmd


def run_command(cmd: Sequence[str]) -> int:
    """Run *cmd* with inherited stdio and wait for it. Returns its exit code.

    A child killed by signal N is reported as ``128 + N``, the way shells do.
    """
    try:
        rc = subprocess.call(list(cmd))
    except FileNotFoundError:
        logger.error("%s executable was not found on PATH", cmd[0])
        return EXIT_NOT_FOUND
    except OSError as exc:
        logger.error("Failed to start %s: %s", cmd[0], exc)
        return EXIT_CANNOT_EXECUTE
    if rc < 0:
        logger.warning("%s was killed by signal %d", cmd[0], -rc)
        return EXIT_SIGNAL_BASE - rc
    return rc


def launch(
    host: Host,
    config_path: str,
    template: str = "",
    *,
    runner: Optional[Runner] = None,
) -> int:
    """Run the connection command for *host* once and return its exit code."""
    cmd = build_ssh_command(host, config_path, template)
    logger.info("Connecting with: %s", " ".join(shlex.quote(part) for part in cmd))
    rc = (runner or run_command)(cmd)
    if rc != 0:
        logger.warning("%s exited with code %s", cmd[0], rc)
    return rc


def run_hook(template: Optional[str], host: Host, config_path: str, *, runner: Optional[Runner] = None) -> Optional[int]:
    """Run a session start/end hook. Its exit code is reported but never fatal."""
    if not template or not template.strip():
        return None
    try:
        cmd = render_template(template, host, config_path)
    except ValueError as exc:
        logger.warning("Skipping session hook: %s", exc)
        return None
    if not cmd:
        return None
    rc = (runner or run_command)(cmd)
    if rc != 0:
        logger.warning("Session hook %s exited with code %s", cmd[0], rc)
    return rc


__all__ = ["build_ssh_command", "launch", "render_template", "run_command", "run_hook"]
