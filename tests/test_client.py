import json
import socket
import struct

import pytest

from zenctl.client import (
    Client,
    HostError,
    Method,
    ZenctlError,
    encode_frame,
    read_frame,
    socket_path,
)


@pytest.fixture
def pair():
    client_side, server_side = socket.socketpair()
    client = Client(client_side)
    yield client, server_side
    client.close()
    server_side.close()


def _write_response(sock, data, error=None, request_id=1):
    sock.sendall(encode_frame({"Response": {"id": request_id, "data": data, "error": error}}))


def _read_request(sock):
    frame = read_frame(sock)
    return frame["Request"]


def test_encode_frame_has_native_length_prefix():
    payload = {"a": 1, "b": "zen"}
    raw = encode_frame(payload)
    (length,) = struct.unpack("=I", raw[:4])
    assert length == len(raw) - 4
    assert json.loads(raw[4:]) == payload


def test_read_frame_round_trip():
    a, b = socket.socketpair()
    try:
        payload = {"Event": {"topic": "tabs", "data": [1, 2]}}
        a.sendall(encode_frame(payload))
        assert read_frame(b) == payload
    finally:
        a.close()
        b.close()


def test_read_frame_on_closed_socket_raises():
    a, b = socket.socketpair()
    a.close()
    try:
        with pytest.raises(ConnectionError):
            read_frame(b)
    finally:
        b.close()


def test_call_raw_sends_request_and_returns_data(pair):
    client, server = pair
    _write_response(server, {"updated": True})
    result = client.call_raw(Method.BOOSTS_UPDATE, {"domain": "example.com", "id": "abc123"})
    assert result == {"updated": True}
    request = _read_request(server)
    assert request["method"] == Method.BOOSTS_UPDATE
    assert request["params"] == {"domain": "example.com", "id": "abc123"}
    assert request["timeout_secs"] is None


def test_request_ids_increase(pair):
    client, server = pair
    _write_response(server, {})
    _write_response(server, {})
    client.call_raw(Method.TABS_LIST, {})
    client.call_raw(Method.TABS_LIST, {})
    first = _read_request(server)
    second = _read_request(server)
    assert second["id"] == first["id"] + 1


def test_call_raw_timed_passes_timeout(pair):
    client, server = pair
    _write_response(server, 42)
    assert client.call_raw_timed(Method.PAGE_EVAL, {"code": "1"}, 60) == 42
    request = _read_request(server)
    assert request["timeout_secs"] == 60
    assert request["method"] == "PageEval"


def test_error_response_raises_host_error(pair):
    client, server = pair
    _write_response(server, None, error={"Internal": {"message": "tab 999 not found"}})
    with pytest.raises(HostError, match="tab 999 not found"):
        client.call_raw(Method.TAB_DETACH, {"tab_id": 999})


def test_missing_data_is_none(pair):
    client, server = pair
    server.sendall(encode_frame({"Response": {"id": 1, "error": None}}))
    assert client.call_raw(Method.FIND_CLEAR, {}) is None


def test_non_response_frame_is_rejected(pair):
    client, server = pair
    server.sendall(encode_frame({"Event": {"topic": "tabs"}}))
    with pytest.raises(ZenctlError, match="unexpected frame type"):
        client.call_raw(Method.STATUS, None)


def test_status_sends_null_params(pair):
    client, server = pair
    status = {"daemon_version": "0.1.0", "extension_connected": True}
    _write_response(server, status)
    assert client.status() == status
    request = _read_request(server)
    assert request["params"] is None
    assert request["method"] == Method.STATUS


def test_capabilities_returns_list(pair):
    client, server = pair
    caps = [{"method": "CompactToggle", "available": True}]
    _write_response(server, caps)
    assert client.capabilities() == caps


def test_start_watch_and_recv_event(pair):
    client, server = pair
    client.start_watch(["tabs", "windows"])
    request = _read_request(server)
    assert request["method"] == Method.WATCH
    assert request["params"] == {"topics": ["tabs", "windows"]}
    server.sendall(encode_frame({"Response": {"id": 1, "data": None, "error": None}}))
    event = {"topic": "tabs", "kind": "created"}
    server.sendall(encode_frame({"Event": event}))
    assert client.recv_event() == event


def test_recv_event_errors_when_host_closes(pair):
    client, server = pair
    server.shutdown(socket.SHUT_WR)
    with pytest.raises(ConnectionError):
        client.recv_event()


def test_socket_path_env_override(monkeypatch, tmp_path):
    target = tmp_path / "custom.sock"
    monkeypatch.setenv("ZENCTL_SOCKET", str(target))
    assert socket_path() == target


def test_socket_path_uses_tmpdir(monkeypatch, tmp_path):
    monkeypatch.delenv("ZENCTL_SOCKET", raising=False)
    monkeypatch.setenv("TMPDIR", str(tmp_path))
    sock_file = tmp_path / "zenctl.sock"
    sock_file.touch()
    assert socket_path() == sock_file


def test_connect_failure_mentions_path(monkeypatch, tmp_path):
    missing = tmp_path / "absent.sock"
    monkeypatch.setenv("ZENCTL_SOCKET", str(missing))
    with pytest.raises(ZenctlError, match="Could not connect to zenctl host") as info:
        Client.connect()
    assert str(missing) in str(info.value)