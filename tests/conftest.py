import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep preferences, logs and the default SSH dir inside tmp_path."""
    monkeypatch.setenv('SSHPICK_CONFIG_DIR', str(tmp_path / 'config'))
    monkeypatch.setenv('XDG_DATA_HOME', str(tmp_path / 'data'))
    monkeypatch.setenv('SSHPICK_SSH_DIR', str(tmp_path / 'ssh'))
    return tmp_path
