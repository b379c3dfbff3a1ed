import subprocess

import pytest

from sshpick.hosts import Host
from sshpick.tui import command_builder
from sshpick.tui.command_builder import build_ssh_command, launch, render_template, run_command, run_hook


def _make_host(**overrides):
    defaults = {
        "patterns": ("web",),
        "display_name": "web",
        "user": "deploy",
        "host_name": "web.internal",
        "proxy_command": "",
        "port": 2222,
    }
    defaults.update(overrides)
    return Host(**defaults)


class RecordingRunner:
    def __init__(self, rc=0):
        self.rc = rc
        self.calls = []

    def __call__(self, cmd):
        self.calls.append(list(cmd))
        return self.rc


def test_default_command_uses_config_and_display_name():
    host = _make_host(display_name=" web ")
    cmd = build_ssh_command(host, "/home/me/.ssh/config")
    assert cmd == ["ssh", "-F", "/home/me/.ssh/config", "web"]


def test_blank_template_falls_back_to_ssh():
    cmd = build_ssh_command(_make_host(), "/cfg", "   ")
    assert cmd[0] == "ssh"


def test_template_placeholders_are_substituted_per_token():
    host = _make_host(proxy_command="nc %h %p")
    cmd = build_ssh_command(host, "/cfg", 'ssh -F %c -p %p %u@%h -o "ProxyCommand=%r" # %n')
    # %h and %p are replaced before %r, so the proxy command keeps its own tokens
    assert cmd == [
        "ssh", "-F", "/cfg", "-p", "2222", "deploy@web.internal",
        "-o", "ProxyCommand=nc %h %p", "#", "web",
    ]


def test_quoted_template_token_keeps_spaces():
    host = _make_host(display_name="My server")
    assert render_template('echo "name: %n"', host, "/cfg") == ["echo", "name: My server"]


def test_values_containing_placeholders_are_substituted_again():
    host = _make_host(host_name="odd%phost")
    assert render_template("%h", host, "/cfg") == ["odd2222host"]


def test_unbalanced_quotes_in_template_raise_value_error():
    with pytest.raises(ValueError):
        build_ssh_command(_make_host(), "/cfg", 'ssh "broken')


def test_launch_runs_exactly_once_and_returns_exit_code():
    runner = RecordingRunner(rc=3)
    rc = launch(_make_host(), "/cfg", "", runner=runner)
    assert rc == 3
    assert runner.calls == [["ssh", "-F", "/cfg", "web"]]


def test_run_command_inherits_stdio_and_returns_code(monkeypatch):
    seen = {}

    def fake_call(cmd, **kwargs):
        seen["cmd"] = cmd
        seen["kwargs"] = kwargs
        return 5

    monkeypatch.setattr(command_builder.subprocess, "call", fake_call)
    assert run_command(("ssh", "web")) == 5
    assert seen == {"cmd": ["ssh", "web"], "kwargs": {}}


def test_run_command_missing_program_returns_127(monkeypatch):
    def fake_call(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(command_builder.subprocess, "call", fake_call)
    assert run_command(["definitely-not-here"]) == 127


def test_run_command_permission_error_returns_126(monkeypatch):
    def fake_call(cmd, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(command_builder.subprocess, "call", fake_call)
    assert run_command(["/etc/passwd"]) == 126


def test_run_command_maps_signal_deaths_like_a_shell(monkeypatch):
    monkeypatch.setattr(command_builder.subprocess, "call", lambda cmd, **kwargs: -15)
    assert run_command(["ssh", "web"]) == 143


def test_real_child_exit_code_is_returned():
    rc = launch(_make_host(), "/cfg", 'sh -c "exit 3"')
    assert rc == 3


def test_real_child_killed_by_signal_returns_128_plus_signal():
    rc = launch(_make_host(), "/cfg", "sh -c 'kill -TERM $$'")
    assert rc == 143


def test_hooks_are_optional_and_never_raise():
    runner = RecordingRunner(rc=1)
    assert run_hook("", _make_host(), "/cfg", runner=runner) is None
    assert run_hook('echo "unterminated', _make_host(), "/cfg", runner=runner) is None
    assert run_hook("echo %n", _make_host(), "/cfg", runner=runner) == 1
    assert runner.calls == [["echo", "web"]]
