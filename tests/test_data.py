import argparse
import json
import socket

import pytest

from zenctl.client import Client, Method, ZenctlError, encode_frame, read_frame
from zenctl.common import CliOpts
from zenctl.data import add_parser, clear, now_ms, parse_duration_ms, run


@pytest.fixture
def pair():
    client_side, server_side = socket.socketpair()
    client = Client(client_side)
    yield client, server_side
    client.close()
    server_side.close()


def _write_response(sock, data):
    sock.sendall(encode_frame({"Response": {"id": 1, "data": data, "error": None}}))


def _read_request(sock):
    return read_frame(sock)["Request"]


def test_parses_units():
    assert parse_duration_ms("45s") == 45_000
    assert parse_duration_ms("30m") == 1_800_000
    assert parse_duration_ms("2h") == 7_200_000
    assert parse_duration_ms("7d") == 604_800_000
    assert parse_duration_ms("500") == 500


def test_rejects_bad_input():
    with pytest.raises(ValueError):
        parse_duration_ms("abc")
    with pytest.raises(ValueError):
        parse_duration_ms("10y")


def test_parse_duration_trims_whitespace():
    assert parse_duration_ms("  2h ") == parse_duration_ms("2h")


def test_clear_requires_a_type():
    with pytest.raises(ZenctlError, match="select at least one data type"):
        clear(None, CliOpts(force=True))


def test_clear_without_force_raises():
    with pytest.raises(ZenctlError, match="Use --force to execute."):
        clear(None, CliOpts(), cache=True)


def test_clear_dry_run_sends_nothing(capsys):
    assert clear(None, CliOpts(dry_run=True), cookies=True, history=True) is None
    out = capsys.readouterr().out
    assert "Would clear browsing data: cookies, history (all time)" in out


def test_clear_dry_run_with_since_label(capsys):
    clear(None, CliOpts(dry_run=True), all_types=True, since="7d")
    out = capsys.readouterr().out
    assert "cache, cookies, downloads, formData, history (last 7d)" in out


def test_clear_bad_since_fails_before_confirm():
    with pytest.raises(ValueError):
        clear(None, CliOpts(dry_run=True), cache=True, since="10y")


def test_clear_sends_types_and_zero_since(pair, capsys):
    client, server = pair
    _write_response(server, {"cleared": ["cache"], "since": 0})
    result = clear(client, CliOpts(force=True, json=True), cache=True)
    assert result == {"cleared": ["cache"], "since": 0}
    request = _read_request(server)
    assert request["method"] == Method.DATA_CLEAR
    assert request["params"] == {"since": 0, "types": {"cache": True}}
    assert json.loads(capsys.readouterr().out) == result


def test_clear_all_with_since(pair):
    client, server = pair
    _write_response(server, {"cleared": True})
    before = now_ms()
    clear(client, CliOpts(force=True), all_types=True, since="1h")
    after = now_ms()
    params = _read_request(server)["params"]
    assert set(params["types"]) == {"cache", "cookies", "history", "downloads", "formData"}
    assert before - 3_600_000 <= params["since"] <= after - 3_600_000


def test_run_through_parser(pair):
    client, server = pair
    parser = argparse.ArgumentParser()
    add_parser(parser.add_subparsers(dest="command"))
    args = parser.parse_args(["data", "clear", "--form-data", "--downloads"])
    _write_response(server, {"cleared": True})
    assert run(client, CliOpts(force=True), args) == {"cleared": True}
    params = _read_request(server)["params"]
    assert params["types"] == {"downloads": True, "formData": True}
    assert params["since"] == 0