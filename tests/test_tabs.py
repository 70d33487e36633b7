import argparse
import base64
import socket

import pytest

from zenctl import tabs
from zenctl.client import Client, HostError, ZenctlError, encode_frame, read_frame
from zenctl.common import CliOpts, Target

PLAIN = CliOpts(json=False, dry_run=False, force=False, timeout=15)
JSON = CliOpts(json=True, dry_run=False, force=False, timeout=15)


@pytest.fixture
def pair():
    client_side, server_side = socket.socketpair()
    client = Client(client_side)
    yield client, server_side
    client.close()
    server_side.close()


def read_request(server):
    frame = read_frame(server)
    return frame["Request"]


def write_response(server, data):
    server.sendall(encode_frame({"Response": {"id": 1, "data": data, "error": None}}))


def write_error(server, message):
    server.sendall(encode_frame({
        "Response": {"id": 1, "data": None, "error": {"Internal": {"message": message}}}
    }))


def test_detach_sends_tab_id(pair, capsys):
    client, server = pair
    write_response(server, {"tab_id": 99, "window_id": 5, "url": "https://example.com"})
    tabs.detach(client, PLAIN, 42, Target())
    req = read_request(server)
    assert req["method"] == "TabDetach"
    assert req["params"]["tab_id"] == 42
    assert capsys.readouterr().out.strip() == "detached: tab 99 -> window 5"


def test_group_sends_tab_ids(pair):
    client, server = pair
    write_response(server, {"group_id": 7})
    result = tabs.group(client, JSON, [1, 2], group_id=7, window_id=3)
    req = read_request(server)
    assert req["method"] == "TabGroup"
    assert req["params"]["tab_ids"] == [1, 2]
    assert req["params"]["group_id"] == 7
    assert req["params"]["create_properties"]["windowId"] == 3
    assert result == {"group_id": 7}


def test_ungroup_sends_tab_ids(pair):
    client, server = pair
    write_response(server, {"ungrouped": [1, 2]})
    result = tabs.ungroup(client, JSON, [1, 2])
    req = read_request(server)
    assert req["method"] == "TabUngroup"
    assert req["params"]["tab_ids"] == [1, 2]
    assert result == {"ungrouped": [1, 2]}


def test_detach_error_tab_not_found(pair):
    client, server = pair
    write_error(server, "tab 999 not found")
    with pytest.raises(HostError, match="tab 999 not found"):
        tabs.detach(client, PLAIN, 999, Target())
    assert read_request(server)["method"] == "TabDetach"


def test_target_params_injects_tab_id():
    params = tabs.target_params(5, Target(url_contains="github", workspace="Work"))
    assert params["target"]["tab_id"] == 5
    assert params["target"]["url_contains"] == "github"
    assert params["workspace"] == "Work"


def test_target_params_without_tab_id():
    params = tabs.target_params(None, Target(active=True))
    assert params["target"]["tab_id"] is None
    assert params["target"]["active"] is True


def test_activate_resolves_target(pair):
    client, server = pair
    write_response(server, [{"id": 12, "url": "https://github.com"}, {"id": 13}])
    write_response(server, {"id": 12, "url": "https://github.com"})
    tabs.activate(client, PLAIN, None, Target(url_contains="github"))
    find = read_request(server)
    act = read_request(server)
    assert find["method"] == "TabsFind"
    assert find["params"]["target"]["url_contains"] == "github"
    assert act["method"] == "TabsActivate"
    assert act["params"] == {"tab_id": 12}


def test_resolve_tab_id_no_match(pair):
    client, server = pair
    write_response(server, [])
    with pytest.raises(ZenctlError, match="no tab matched target selector"):
        tabs.resolve_tab_id(client, Target(title_contains="nothing"))


def test_resolve_tab_id_missing_id(pair):
    client, server = pair
    write_response(server, [{"url": "https://example.com"}])
    with pytest.raises(ZenctlError, match="matched tab has no id"):
        tabs.resolve_tab_id(client, Target())


def test_close_requires_force(pair):
    client, _server = pair
    with pytest.raises(ZenctlError, match="--force"):
        tabs.close_tab(client, PLAIN, 7, Target())


def test_close_with_force(pair):
    client, server = pair
    write_response(server, {"id": 7, "url": "https://example.com"})
    tabs.close_tab(client, CliOpts(force=True), 7, Target())
    req = read_request(server)
    assert req["method"] == "TabsClose"
    assert req["params"] == {"tab_id": 7}


def test_open_background(pair, capsys):
    client, server = pair
    write_response(server, {"id": 3, "url": "https://example.com"})
    tabs.open_tab(client, PLAIN, "https://example.com", background=True)
    req = read_request(server)
    assert req["params"] == {"url": "https://example.com", "active": False}
    assert capsys.readouterr().out.strip() == "id=3 url=https://example.com"


def test_list_params(pair):
    client, server = pair
    write_response(server, [])
    tabs.list_tabs(client, PLAIN, current_window=True, workspace="Work")
    req = read_request(server)
    assert req["params"] == {"current_window": True, "workspace": "Work"}


def test_move_with_window(pair):
    client, server = pair
    write_response(server, {"id": 4, "index": 0})
    tabs.move(client, PLAIN, 4, Target(), 0, window_id=2)
    assert read_request(server)["params"] == {"tab_id": 4, "index": 0, "window_id": 2}


def test_mute_and_reload_params(pair):
    client, server = pair
    write_response(server, {"tab_id": 1, "muted": True})
    write_response(server, {"tab_id": 1, "reloaded": True})
    tabs.set_muted(client, PLAIN, 1, Target(), True)
    tabs.reload(client, PLAIN, 1, Target(), bypass_cache=True)
    mute = read_request(server)
    rel = read_request(server)
    assert mute["method"] == "TabsSetMuted"
    assert mute["params"]["muted"] is True
    assert mute["params"]["target"]["tab_id"] == 1
    assert rel["method"] == "TabsReload"
    assert rel["params"]["bypass_cache"] is True


def test_screenshot_writes_file(pair, tmp_path, capsys):
    client, server = pair
    image = b"\x89PNG\r\nimage-bytes"
    data_url = "data:image/png;base64," + base64.b64encode(image).decode()
    write_response(server, {"data_url": data_url})
    out = tmp_path / "shot.png"
    result = tabs.screenshot(client, PLAIN, 5, Target(), output=out)
    req = read_request(server)
    assert result == image
    assert out.read_bytes() == image
    assert "format" not in req["params"]
    assert f"wrote {len(image)} bytes" in capsys.readouterr().out


def test_screenshot_jpeg_params(pair, tmp_path):
    client, server = pair
    write_response(server, {"data_url": "data:image/jpeg;base64," + base64.b64encode(b"x").decode()})
    tabs.screenshot(client, PLAIN, None, Target(active=True), output=tmp_path / "a.jpg",
                    jpeg=True, quality=80, full_page=True)
    params = read_request(server)["params"]
    assert params["format"] == "jpeg"
    assert params["quality"] == 80
    assert params["full_page"] is True


def test_screenshot_missing_data_url(pair):
    client, server = pair
    write_response(server, {"other": 1})
    with pytest.raises(ZenctlError, match="missing data_url"):
        tabs.screenshot(client, PLAIN, 1, Target())


def test_zoom_sets_value(pair):
    client, server = pair
    write_response(server, {"tab_id": 1, "zoom": 1.5})
    tabs.zoom(client, PLAIN, 1.5, Target(tab_id=1))
    params = read_request(server)["params"]
    assert params["value"] == 1.5
    assert params["target"]["tab_id"] == 1


def test_format_tabs():
    text = tabs.format_tabs([{"id": 1, "title": "Example", "url": "https://example.com",
                              "active": True}])
    lines = text.splitlines()
    assert len(lines) == 2
    assert "https://example.com" in lines[1]
    assert "Example" in lines[1]
    assert tabs.format_tabs([]) == "no tabs"


def test_run_parses_open(pair):
    client, server = pair
    parser = argparse.ArgumentParser()
    tabs.add_parser(parser.add_subparsers(dest="command"))
    args = parser.parse_args(["tabs", "open", "https://example.com", "--background"])
    write_response(server, {"id": 1})
    result = tabs.run(client, PLAIN, args)
    assert result == {"id": 1}
    assert read_request(server)["params"] == {"url": "https://example.com", "active": False}


def test_run_parses_pin_with_target(pair):
    client, server = pair
    parser = argparse.ArgumentParser()
    tabs.add_parser(parser.add_subparsers(dest="command"))
    args = parser.parse_args(["tabs", "pin", "--url-contains", "docs"])
    write_response(server, {"tab_id": 8, "pinned": True})
    tabs.run(client, PLAIN, args)
    req = read_request(server)
    assert req["method"] == "TabsSetPinned"
    assert req["params"]["pinned"] is True
    assert req["params"]["target"]["url_contains"] == "docs"