#!/usr/bin/env python3
"""
sshpick - pick a host from your SSH config and connect to it
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Optional, Sequence

from . import __version__
from .config import Config
from .hosts import normalize_hosts
from .platform_utils import (
    DEFAULT_SSH_CONFIG,
    ConfigPathError,
    ensure_ssh_config,
    get_data_dir,
    resolve_config_path,
)
from .ssh_config_utils import SSHConfigError, load_ssh_config

logger = logging.getLogger(__name__)


@dataclass
class Options:
    """Effective settings after merging the command line over preferences."""

    ssh_config_path: str
    search: str
    show_proxy_command: bool
    sort_by_name: bool
    exit_after_session: bool
    command_template: str
    on_session_start_template: str
    on_session_end_template: str
    verbose: bool


def setup_logging(verbose: bool = False, log_dir: Optional[str] = None):
    """Set up logging configuration"""
    log_dir = log_dir or get_data_dir()
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Clear any existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'sshpick.log'),
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as exc:
        sys.stderr.write(f"sshpick: cannot open log file in {log_dir}: {exc}\n")

    # Anything chattier than a warning would draw over the TUI
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger('asyncio').setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger('sshpick').setLevel(log_level)


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        prog="sshpick",
        description="Browse the hosts of an SSH config file and connect to one",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"SSH config file (default: {DEFAULT_SSH_CONFIG})",
    )
    parser.add_argument("--search", "-s", default=None, help="Host search filter")
    parser.add_argument(
        "--proxy", "-p",
        action="store_true",
        default=None,
        help="Display the full ProxyCommand instead of a placeholder",
    )
    parser.add_argument("--sort", action="store_true", default=None, help="Sort hosts by name")
    parser.add_argument(
        "--exit", "-e",
        action="store_true",
        default=None,
        help="Exit when the SSH session ends, with its exit code",
    )
    parser.add_argument(
        "--template", "-t",
        default=None,
        help="Command to run instead of 'ssh -F <config> <name>' "
             "(placeholders: %%u user, %%h hostname, %%p port, %%r proxy command, %%n name, %%c config path)",
    )
    parser.add_argument(
        "--on-session-start-template",
        default=None,
        metavar="TEMPLATE",
        help="Command to run before the connection command",
    )
    parser.add_argument(
        "--on-session-end-template",
        default=None,
        metavar="TEMPLATE",
        help="Command to run after the connection command returns",
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=None, help="Enable verbose debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def resolve_options(args, config: Config) -> Options:
    def pick(arg_value, key):
        return arg_value if arg_value is not None else config.get_setting(key)

    return Options(
        ssh_config_path=pick(args.config, 'ssh_config_path') or DEFAULT_SSH_CONFIG,
        search=pick(args.search, 'search') or '',
        show_proxy_command=bool(pick(args.proxy, 'show_proxy_command')),
        sort_by_name=bool(pick(args.sort, 'sort_by_name')),
        exit_after_session=bool(pick(args.exit, 'exit_after_session')),
        command_template=pick(args.template, 'command_template') or '',
        on_session_start_template=pick(args.on_session_start_template, 'on_session_start_template') or '',
        on_session_end_template=pick(args.on_session_end_template, 'on_session_end_template') or '',
        verbose=bool(pick(args.verbose, 'verbose')),
    )


def prepare_config_path(path: str) -> str:
    """Resolve *path*; the default location is created when missing."""
    absolute = resolve_config_path(path)
    if path == DEFAULT_SSH_CONFIG:
        ensure_ssh_config(absolute)
    return absolute


def load_hosts(config_path: str, sort_by_name: bool):
    entries = load_ssh_config(config_path)
    hosts = normalize_hosts(entries, sort_by_name=sort_by_name)
    logger.info("Loaded %d hosts from %s", len(hosts), config_path)
    return hosts


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    options = resolve_options(args, Config())
    setup_logging(options.verbose)

    try:
        config_path = prepare_config_path(options.ssh_config_path)
        hosts = load_hosts(config_path, options.sort_by_name)
    except (ConfigPathError, SSHConfigError) as exc:
        logger.error("Cannot load SSH config: %s", exc)
        return 1

    from .tui import run_app

    app = None
    try:
        app = run_app(
            hosts,
            config_path=config_path,
            search=options.search,
            show_proxy_command=options.show_proxy_command,
            command_template=options.command_template,
            on_session_start_template=options.on_session_start_template,
            on_session_end_template=options.on_session_end_template,
            exit_after_session=options.exit_after_session,
        )
    except KeyboardInterrupt:
        pass
    if app is None:
        return 0
    return app.return_code or 0


if __name__ == '__main__':
    sys.exit(main())
