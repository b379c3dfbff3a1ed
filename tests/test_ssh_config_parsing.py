import os
import textwrap

import pytest

from sshpick.ssh_config_utils import (
    SSHConfigNotFoundError,
    SSHConfigParser,
    SSHConfigReadError,
    load_ssh_config,
    split_directive,
    split_host_patterns,
)


def _write(path, text):
    path.write_text(textwrap.dedent(text))
    return str(path)


def test_split_host_patterns_keeps_quotes_on_tokens():
    assert split_host_patterns('web db') == ['web', 'db']
    assert split_host_patterns('"My server"') == ['"My server"']
    assert split_host_patterns('  a   "b c"  d ') == ['a', '"b c"', 'd']


def test_split_directive_accepts_equals_forms():
    assert split_directive('HostName example.com') == ('hostname', 'example.com')
    assert split_directive('Port=2222') == ('port', '2222')
    assert split_directive('User = deploy') == ('user', 'deploy')
    assert split_directive('ProxyCommand ssh -W %h:%p gw') == ('proxycommand', 'ssh -W %h:%p gw')
    assert split_directive('Host') is None


def test_parse_entries_in_file_order(tmp_path):
    path = _write(tmp_path / 'config', '''
        # comment
        Host "Web"
            HostName web.example.com
            User root
            Port 22

        host bastion
        ProxyCommand ssh -W %h:%p gw.example.com
    ''')
    entries = load_ssh_config(path)

    assert [e.patterns for e in entries] == [['"Web"'], ['bastion']]
    assert entries[0].options == {'hostname': 'web.example.com', 'user': 'root', 'port': '22'}
    assert entries[1].get('proxycommand') == 'ssh -W %h:%p gw.example.com'
    assert entries[1].get('port') == ''
    assert entries[0].source == os.path.abspath(path)


def test_keywords_are_case_insensitive_and_first_value_wins(tmp_path):
    path = _write(tmp_path / 'config', '''
        HOST app
          HOSTNAME first.example.com
          hostname second.example.com
          uSeR admin
    ''')
    [entry] = load_ssh_config(path)
    assert entry.get('hostname') == 'first.example.com'
    assert entry.get('user') == 'admin'


def test_global_directives_fill_unset_values():
    text = textwrap.dedent('''
        User everyone
        Port 2200

        Host a
          HostName a.example.com
          User alice

        Host b
          HostName b.example.com
    ''')
    a, b = SSHConfigParser().parse_string(text)
    assert a.get('user') == 'alice'
    assert a.get('port') == '2200'
    assert b.get('user') == 'everyone'


def test_unknown_directives_and_match_blocks_are_skipped():
    text = textwrap.dedent('''
        Host a
          HostName a.example.com
          ForwardAgent yes
        Match host *.internal
          User ignored
        Host b
          HostName b.example.com
    ''')
    a, b = SSHConfigParser().parse_string(text)
    assert a.options == {'hostname': 'a.example.com'}
    assert b.options == {'hostname': 'b.example.com'}


def test_host_line_without_patterns_closes_previous_block():
    text = textwrap.dedent('''
        Host a
          HostName a.example.com
        Host
          User stray
    ''')
    (a,) = SSHConfigParser().parse_string(text)
    assert a.options == {'hostname': 'a.example.com'}


def test_include_splices_entries_in_place(tmp_path):
    conf_d = tmp_path / 'conf.d'
    conf_d.mkdir()
    _write(conf_d / 'work', '''
        Host work
          HostName work.example.com
    ''')
    path = _write(tmp_path / 'config', '''
        Host first
          HostName first.example.com
        Include conf.d/*

        Host last
          HostName last.example.com
    ''')
    entries = load_ssh_config(path)
    # The Include line sits inside the "first" block, so its hosts are ignored
    assert [e.patterns[0] for e in entries] == ['first', 'last']

    path = _write(tmp_path / 'config2', '''
        Include conf.d/*
        Host last
          HostName last.example.com
    ''')
    entries = load_ssh_config(path)
    assert [e.patterns[0] for e in entries] == ['work', 'last']


def test_include_cycle_and_missing_file_do_not_fail(tmp_path):
    _write(tmp_path / 'a', '''
        Include b
        Host a
          HostName a.example.com
    ''')
    _write(tmp_path / 'b', '''
        Include a
        Include does-not-exist
        Host b
          HostName b.example.com
    ''')
    entries = load_ssh_config(str(tmp_path / 'a'))
    assert [e.patterns[0] for e in entries] == ['b', 'a']


def test_missing_file_raises_not_found(tmp_path):
    with pytest.raises(SSHConfigNotFoundError) as excinfo:
        load_ssh_config(str(tmp_path / 'missing'))
    assert excinfo.value.path.endswith('missing')


def test_directory_raises_read_error(tmp_path):
    with pytest.raises(SSHConfigReadError):
        load_ssh_config(str(tmp_path))


@pytest.mark.skipif(os.geteuid() == 0 if hasattr(os, 'geteuid') else True, reason="root can read anything")
def test_unreadable_file_raises_read_error(tmp_path):
    path = _write(tmp_path / 'config', 'Host a\n  HostName a\n')
    os.chmod(path, 0)
    try:
        with pytest.raises(SSHConfigReadError):
            load_ssh_config(path)
    finally:
        os.chmod(path, 0o600)
