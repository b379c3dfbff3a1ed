"""
Preferences for sshpick.

Stored as JSON under the per-user config directory. Every value here is a
default for the matching command line option; flags given on the command
line always win.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .platform_utils import DEFAULT_SSH_CONFIG, get_config_dir

logger = logging.getLogger(__name__)

# Increment this whenever the configuration format changes
CONFIG_VERSION = 1


def _same_type(value: Any, default: Any) -> bool:
    # bool is an int subclass; neither may stand in for the other
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)
    return isinstance(value, type(default))


class Config:
    """Configuration manager for sshpick"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or os.path.join(get_config_dir(), 'config.json')
        self.config_data = self.load_json_config()

    def get_default_config(self) -> Dict[str, Any]:
        return {
            'config_version': CONFIG_VERSION,
            'ssh_config_path': DEFAULT_SSH_CONFIG,
            'search': '',
            'show_proxy_command': False,
            'sort_by_name': False,
            'exit_after_session': False,
            'command_template': '',
            'on_session_start_template': '',
            'on_session_end_template': '',
            'verbose': False,
        }

    def _ensure_config_defaults(self, config: Dict[str, Any]):
        updated = False
        for key, value in self.get_default_config().items():
            if key not in config:
                config[key] = value
                updated = True
            elif not _same_type(config[key], value):
                logger.warning(
                    "Ignoring %r for %s in %s: expected %s",
                    config[key], key, self.config_file, type(value).__name__,
                )
                config[key] = value
        return config, updated

    def load_json_config(self) -> Dict[str, Any]:
        """Load configuration from JSON file"""
        if not os.path.exists(self.config_file):
            return self.get_default_config()
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load JSON config %s: %s", self.config_file, e)
            return self.get_default_config()

        if not isinstance(config, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self.config_file)
            return self.get_default_config()

        config, updated = self._ensure_config_defaults(config)
        stored_version = config['config_version']
        if stored_version > CONFIG_VERSION:
            logger.warning(
                "Config version %s is newer than supported version %s; using what can be read",
                stored_version,
                CONFIG_VERSION,
            )
        if updated:
            self.save_json_config(config)
        return config

    def save_json_config(self, config_data: Dict[str, Any] = None):
        """Save configuration to JSON file"""
        if config_data is None:
            config_data = self.config_data
        try:
            os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2)
            logger.debug("Configuration saved to JSON file")
        except OSError as e:
            logger.error("Failed to save JSON config: %s", e)

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.config_data.get(key, default)
