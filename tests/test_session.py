import json

import pytest

from zenctl.client import Method, ZenctlError
from zenctl.common import CliOpts
from zenctl import session


class FakeClient:
    def __init__(self, response=None):
        self.response = {} if response is None else response
        self.calls = []

    def call_raw(self, method, params):
        self.calls.append((method, params))
        return self.response


def opts(json_out=False):
    return CliOpts(json=json_out, dry_run=False, force=False, timeout=15)


def test_reset_shortcuts_sends_empty_params(capsys):
    client = FakeClient({"reset": True})
    result = session.reset_shortcuts(client, opts())
    assert client.calls == [(Method.SHORTCUTS_RESET, {})]
    assert result == {"reset": True}
    assert capsys.readouterr().out.strip() == "shortcuts: reset to Zen defaults"


def test_write_shortcuts_parses_json(capsys):
    client = FakeClient({"written": "/p/shortcuts.json"})
    session.write_shortcuts(client, opts(), '{"a": 1}')
    assert client.calls == [(Method.SHORTCUTS_WRITE, {"shortcuts": {"a": 1}})]
    assert capsys.readouterr().out.strip() == "written: /p/shortcuts.json"


def test_write_shortcuts_rejects_bad_json():
    client = FakeClient()
    with pytest.raises(ZenctlError):
        session.write_shortcuts(client, opts(), "{not json")
    assert client.calls == []


def test_list_session_tab_list_flag():
    client = FakeClient([])
    session.list_session(client, opts(), full=False)
    session.list_session(client, opts(), full=True)
    assert client.calls == [
        (Method.SESSION_LIST, {"tab_list": True}),
        (Method.SESSION_LIST, {"tab_list": False}),
    ]


def test_full_session_prints_json(capsys):
    client = FakeClient({"windows": []})
    session.list_session(client, opts(), full=True)
    assert json.loads(capsys.readouterr().out) == {"windows": []}


def test_backup_and_checkpoint_output(capsys):
    client = FakeClient({"backup": "/tmp/b.json"})
    session.backup_session(client, opts())
    session.create_checkpoint(client, opts())
    out = capsys.readouterr().out.splitlines()
    assert out == ["backup: /tmp/b.json", "checkpoint: /tmp/b.json"]
    assert [m for m, _ in client.calls] == [Method.SESSION_BACKUP, Method.SESSION_BACKUP]


def test_backup_unknown_path(capsys):
    session.backup_session(FakeClient({}), opts())
    assert capsys.readouterr().out.strip() == "backup: unknown"


def test_list_closed_limit():
    client = FakeClient([])
    session.list_closed(client, opts(), limit=5)
    session.list_closed(client, opts())
    assert client.calls == [
        (Method.SESSIONS_CLOSED, {"max_results": 5}),
        (Method.SESSIONS_CLOSED, {}),
    ]


def test_restore_prints_tab_summary(capsys):
    client = FakeClient({"tab": {"id": 3, "title": "T", "url": "https://example.com"}})
    session.restore(client, opts(), Method.SESSION_RESTORE_TAB, "abc")
    assert client.calls == [(Method.SESSION_RESTORE_TAB, {"session_id": "abc"})]
    out = capsys.readouterr().out
    assert out.startswith("restored: ")
    assert "https://example.com" in out


def test_restore_without_entry(capsys):
    client = FakeClient({})
    session.restore(client, opts(), Method.SESSIONS_RESTORE)
    assert client.calls == [(Method.SESSIONS_RESTORE, {})]
    assert capsys.readouterr().out.strip() == "restored"


def test_format_session_tabs_empty_and_filled():
    assert session.format_session_tabs([]) == "no session tabs"
    text = session.format_session_tabs({"tabs": [{"title": "A", "url": "https://example.com"}]})
    assert "A  https://example.com" in text
    assert text.splitlines()[0] == "1 tab(s):"


def test_format_closed_lists_tabs_and_windows():
    assert session.format_closed([]) == "no recently closed tabs or windows"
    text = session.format_closed([
        {"tab": {"sessionId": "t1", "title": "A", "url": "https://example.com"}},
        {"window": {"sessionId": "w1", "title": "B", "tabs": [{}, {}]}},
    ])
    lines = text.splitlines()
    assert len(lines) == 2
    assert "t1" in lines[0] and lines[0].startswith("tab")
    assert "w1" in lines[1] and "(2 tab(s))" in lines[1]