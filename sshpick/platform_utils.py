"""Platform-related utility functions."""

import logging
import os
import stat
from pathlib import Path

APP_NAME = "sshpick"
DEFAULT_SSH_CONFIG = "~/.ssh/config"

logger = logging.getLogger(__name__)


class ConfigPathError(Exception):
    """The SSH config path cannot be resolved or prepared."""


def _normalize_path(path: str) -> str:
    """Expand user references and return an absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def _home_dir() -> str:
    expanded = os.path.expanduser("~")
    if expanded and expanded != "~":
        return expanded
    try:
        return str(Path.home())
    except (KeyError, RuntimeError):
        return ""


def _xdg_dir(env_var: str, fallback: str) -> str:
    base = os.environ.get(env_var)
    if base and os.path.isabs(base):
        return base
    return os.path.join(_home_dir(), fallback)


def get_config_dir() -> str:
    """Return the per-user configuration directory for sshpick.

    ``SSHPICK_CONFIG_DIR`` overrides the XDG location.
    """
    override = os.environ.get("SSHPICK_CONFIG_DIR")
    if override:
        return _normalize_path(override)
    return os.path.join(_xdg_dir("XDG_CONFIG_HOME", ".config"), APP_NAME)


def get_data_dir() -> str:
    """Return the per-user data directory (logs live here)."""
    return os.path.join(_xdg_dir("XDG_DATA_HOME", os.path.join(".local", "share")), APP_NAME)


def get_ssh_dir() -> str:
    """Return the user's SSH directory.

    The location can be overridden by setting the ``SSHPICK_SSH_DIR``
    environment variable.
    """
    override = os.environ.get("SSHPICK_SSH_DIR")
    if override:
        return _normalize_path(override)
    home_dir = _home_dir()
    if not home_dir:
        raise ConfigPathError("Unable to determine the user's home directory")
    return _normalize_path(os.path.join(home_dir, ".ssh"))


def default_ssh_config_path() -> str:
    return os.path.join(get_ssh_dir(), "config")


def resolve_config_path(path: str) -> str:
    """Return *path* as an absolute location, expanding ``~``."""
    if not path or not path.strip():
        raise ConfigPathError("empty config path")
    if path == DEFAULT_SSH_CONFIG:
        return default_ssh_config_path()
    expanded = os.path.expanduser(os.path.expandvars(path.strip()))
    if expanded.startswith("~"):
        raise ConfigPathError(f"cannot expand home directory in {path}")
    return os.path.abspath(expanded)


def _ensure_secure_permissions(path: str, mode: int) -> None:
    try:
        current = stat.S_IMODE(os.stat(path).st_mode)
        if current != mode:
            os.chmod(path, mode)
    except OSError as exc:
        logger.warning("Could not set permissions on %s: %s", path, exc)


def ensure_ssh_config(path: str) -> bool:
    """Create an empty SSH config at *path* if it does not exist.

    Returns True when a file was created.
    """
    if os.path.exists(path):
        return False
    parent = os.path.dirname(path)
    try:
        os.makedirs(parent, mode=0o700, exist_ok=True)
        with open(path, "a", encoding="utf-8"):
            pass
    except OSError as exc:
        raise ConfigPathError(f"cannot create {path}: {exc}") from exc
    _ensure_secure_permissions(path, 0o600)
    logger.info("SSH config file not found, created empty one at %s", path)
    return True
