"""
Terminal UI package for sshpick.

The Textual application lives in ``sshpick.tui.app``; the connection launcher
in ``sshpick.tui.command_builder``. The app is imported lazily so that the
launcher can be used without pulling in Textual.
"""

from __future__ import annotations

from typing import Any

__all__ = ["run_app"]


def run_app(*args: Any, **kwargs: Any) -> Any:
    """Build a :class:`sshpick.tui.app.SshPickApp` and run it."""
    from .app import SshPickApp

    app = SshPickApp(*args, **kwargs)
    app.run()
    return app
