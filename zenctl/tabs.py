"""Tab operations: listing, opening, closing, moving and the rest."""

from __future__ import annotations

import argparse
import base64
import binascii
import sys
from pathlib import Path
from typing import Any, Iterable

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import (
    CliOpts,
    Target,
    add_target_arguments,
    confirm,
    emit,
    page_target,
    print_json,
    short_summary,
    target_from_args,
)

_EXAMPLES = """EXAMPLES:
  zenctl tabs list
  zenctl tabs list --current-window
  zenctl tabs find --url-contains github
  zenctl tabs open https://example.com
  zenctl tabs open https://example.com --background
  zenctl tabs close --active
  zenctl tabs close 123
  zenctl tabs activate --url-contains github
  zenctl tabs move 123 --index 0
  zenctl tabs reload --active --bypass-cache
  zenctl tabs duplicate 123
  zenctl tabs discard --url-contains youtube
  zenctl tabs mute --active
  zenctl tabs pin 123
  zenctl tabs screenshot --active -o shot.png
  zenctl tabs screenshot --active --full-page -o full.png
  zenctl tabs group 123 456
  zenctl tabs ungroup 123 456"""


def _as_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def target_params(tab_id: int | None, target: Target) -> dict:
    """Build ``{"target": {...}}`` params, with an explicit tab id when given."""
    params = page_target(target)
    if tab_id is not None:
        params["target"]["tab_id"] = tab_id
    return params


def resolve_tab_id(client: Client, target: Target) -> int:
    """Resolve ``target`` to a concrete tab id with a TabsFind request."""
    value = client.call_raw(Method.TABS_FIND, page_target(target))
    if not isinstance(value, list) or not value:
        raise ZenctlError("no tab matched target selector")
    tab = value[0]
    tab_id = _as_int(tab.get("id")) if isinstance(tab, dict) else None
    if tab_id is None:
        raise ZenctlError("matched tab has no id")
    return tab_id


def _id_or_resolve(client: Client, tab_id: int | None, target: Target) -> int:
    return tab_id if tab_id is not None else resolve_tab_id(client, target)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else ""
    return str(value)


def format_tabs(value: Any) -> str:
    """Render a list of tabs as a text table."""
    if not isinstance(value, list):
        return short_summary(value, ["id", "url"])
    if not value:
        return "no tabs"
    rows = [("ID", "WINDOW", "ACTIVE", "TITLE", "URL")]
    for tab in value:
        if not isinstance(tab, dict):
            continue
        rows.append((
            _cell(tab.get("id")),
            _cell(tab.get("windowId", tab.get("window_id"))),
            "*" if tab.get("active") is True else "",
            _cell(tab.get("title")),
            _cell(tab.get("url")),
        ))
    widths = [max(len(row[col]) for row in rows) for col in range(4)]
    lines = [
        "  ".join(cell.ljust(width) for cell, width in zip(row[:4], widths)) + "  " + row[4]
        for row in rows
    ]
    return "\n".join(line.rstrip() for line in lines)


def _show_tabs(opts: CliOpts, value: Any) -> None:
    if opts.json:
        print_json(value)
    else:
        print(format_tabs(value))


def list_tabs(
    client: Client, opts: CliOpts, current_window: bool = False, workspace: str | None = None
) -> Any:
    """List open tabs."""
    params: dict = {"current_window": True} if current_window else {}
    if workspace is not None:
        params["workspace"] = workspace
    value = client.call_raw(Method.TABS_LIST, params)
    _show_tabs(opts, value)
    return value


def find_tabs(client: Client, opts: CliOpts, target: Target) -> Any:
    """Find tabs matching ``target``."""
    value = client.call_raw(Method.TABS_FIND, page_target(target))
    _show_tabs(opts, value)
    return value


def open_tab(client: Client, opts: CliOpts, url: str, background: bool = False) -> Any:
    """Open ``url`` in a new tab."""
    value = client.call_raw(Method.TABS_OPEN, {"url": url, "active": not background})
    print(short_summary(value, ["id", "url"]))
    return value


def close_tab(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Close a tab by id or by target; needs ``--force``."""
    detail = f"tab {tab_id}" if tab_id is not None else "tab (by target)"
    confirm(opts, "close tab", detail)
    value = client.call_raw(
        Method.TABS_CLOSE, {"tab_id": _id_or_resolve(client, tab_id, target)}
    )
    emit(opts, value, ["id", "url"])
    return value


def activate(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Switch to a tab."""
    value = client.call_raw(
        Method.TABS_ACTIVATE, {"tab_id": _id_or_resolve(client, tab_id, target)}
    )
    print(short_summary(value, ["id", "url"]))
    return value


def move(
    client: Client,
    opts: CliOpts,
    tab_id: int | None,
    target: Target,
    index: int,
    window_id: int | None = None,
) -> Any:
    """Move a tab within or between windows."""
    params: dict = {"tab_id": _id_or_resolve(client, tab_id, target), "index": index}
    if window_id is not None:
        params["window_id"] = window_id
    value = client.call_raw(Method.TABS_MOVE, params)
    emit(opts, value, ["id", "index"])
    return value


def reload(
    client: Client, opts: CliOpts, tab_id: int | None, target: Target, bypass_cache: bool = False
) -> Any:
    """Reload a tab, optionally bypassing the cache."""
    params = target_params(tab_id, target)
    params["bypass_cache"] = bypass_cache
    value = client.call_raw(Method.TABS_RELOAD, params)
    emit(opts, value, ["tab_id", "reloaded"])
    return value


def duplicate(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Duplicate a tab."""
    value = client.call_raw(Method.TABS_DUPLICATE, target_params(tab_id, target))
    emit(opts, value, ["id", "url"])
    return value


def discard(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Unload a tab from memory while keeping it in the tab strip."""
    value = client.call_raw(Method.TABS_DISCARD, target_params(tab_id, target))
    emit(opts, value, ["tab_id", "discarded"])
    return value


def set_muted(
    client: Client, opts: CliOpts, tab_id: int | None, target: Target, muted: bool
) -> Any:
    """Mute or unmute a tab."""
    params = target_params(tab_id, target)
    params["muted"] = muted
    value = client.call_raw(Method.TABS_SET_MUTED, params)
    emit(opts, value, ["tab_id", "muted"])
    return value


def set_pinned(
    client: Client, opts: CliOpts, tab_id: int | None, target: Target, pinned: bool
) -> Any:
    """Pin or unpin a tab."""
    params = target_params(tab_id, target)
    params["pinned"] = pinned
    value = client.call_raw(Method.TABS_SET_PINNED, params)
    emit(opts, value, ["tab_id", "pinned"])
    return value


def screenshot(
    client: Client,
    opts: CliOpts,
    tab_id: int | None,
    target: Target,
    output: str | Path | None = None,
    jpeg: bool = False,
    quality: int = 92,
    full_page: bool = False,
) -> bytes:
    """Capture a tab; write the image to ``output`` or stdout and return its bytes."""
    params = target_params(tab_id, target)
    if jpeg:
        params["format"] = "jpeg"
        params["quality"] = quality
    if full_page:
        params["full_page"] = True
    value = client.call_raw(Method.TABS_SCREENSHOT, params)
    data_url = value.get("data_url") if isinstance(value, dict) else None
    if not isinstance(data_url, str):
        raise ZenctlError("screenshot response missing data_url")
    _, comma, encoded = data_url.partition(",")
    if not comma:
        encoded = data_url
    try:
        image = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ZenctlError(f"decode screenshot: {exc}") from exc
    if output is not None:
        path = Path(output)
        try:
            path.write_bytes(image)
        except OSError as exc:
            raise ZenctlError(f"write {path}: {exc}") from exc
        print(f"wrote {len(image)} bytes -> {path}")
    else:
        sys.stdout.buffer.write(image)
        sys.stdout.buffer.flush()
    return image


def zoom(client: Client, opts: CliOpts, value: float | None, target: Target) -> Any:
    """Read the zoom factor of a tab, or set it when ``value`` is given."""
    params = target_params(None, target)
    if value is not None:
        params["value"] = value
    resp = client.call_raw(Method.TABS_ZOOM, params)
    emit(opts, resp, ["tab_id", "zoom"])
    return resp


def reader(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Toggle reader mode on a tab."""
    resp = client.call_raw(Method.TABS_READER, target_params(tab_id, target))
    emit(opts, resp, ["tab_id", "toggled"])
    return resp


def back(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Navigate a tab back in its history."""
    resp = client.call_raw(Method.TABS_GO_BACK, target_params(tab_id, target))
    emit(opts, resp, ["tab_id", "navigated"])
    return resp


def forward(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Navigate a tab forward in its history."""
    resp = client.call_raw(Method.TABS_GO_FORWARD, target_params(tab_id, target))
    emit(opts, resp, ["tab_id", "navigated"])
    return resp


def detach(client: Client, opts: CliOpts, tab_id: int | None, target: Target) -> Any:
    """Detach a tab into its own window."""
    value = client.call_raw(
        Method.TAB_DETACH, {"tab_id": _id_or_resolve(client, tab_id, target)}
    )
    if opts.json:
        print_json(value)
    else:
        fields = value if isinstance(value, dict) else {}
        tab = _as_int(fields.get("tab_id"))
        win = _as_int(fields.get("window_id"))
        tab_text = str(tab) if tab is not None else "?"
        win_text = str(win) if win is not None else "?"
        print(f"detached: tab {tab_text} -> window {win_text}")
    return value


def group(
    client: Client,
    opts: CliOpts,
    tab_ids: Iterable[int],
    group_id: int | None = None,
    window_id: int | None = None,
) -> Any:
    """Group tabs, adding to ``group_id`` or creating a group in ``window_id``."""
    params: dict = {"tab_ids": list(tab_ids)}
    if group_id is not None:
        params["group_id"] = group_id
    if window_id is not None:
        params["create_properties"] = {"windowId": window_id}
    value = client.call_raw(Method.TAB_GROUP, params)
    emit(opts, value, ["group_id"])
    return value


def ungroup(client: Client, opts: CliOpts, tab_ids: Iterable[int]) -> Any:
    """Remove tabs from their tab group."""
    value = client.call_raw(Method.TAB_UNGROUP, {"tab_ids": list(tab_ids)})
    emit(opts, value, ["ungrouped"])
    return value


def _quality(text: str) -> int:
    try:
        number = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {text}") from None
    if not 0 <= number <= 255:
        raise argparse.ArgumentTypeError(f"quality out of range: {text}")
    return number


def _targeted(actions: Any, name: str, help_text: str, with_id: bool = True) -> argparse.ArgumentParser:
    parser = actions.add_parser(name, help=help_text)
    if with_id:
        parser.add_argument("tab_id", nargs="?", type=int)
    add_target_arguments(parser)
    return parser


def add_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Register the ``tabs`` command."""
    parser = subparsers.add_parser(
        "tabs",
        help="Tab operations (via WebExtension).",
        epilog=_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    actions = parser.add_subparsers(dest="tabs_action", required=True)

    list_parser = actions.add_parser("list", help="List open tabs.")
    list_parser.add_argument("--current-window", dest="current_window", action="store_true")
    list_parser.add_argument("--workspace", help="Filter by workspace name or UUID.")

    _targeted(actions, "find", "Find tabs matching target criteria.", with_id=False)

    open_parser = actions.add_parser("open", help="Open a URL in a new tab.")
    open_parser.add_argument("url")
    open_parser.add_argument("--background", action="store_true")

    _targeted(actions, "close", "Close a tab by id or target criteria.")
    _targeted(actions, "activate", "Activate (switch to) a tab.")

    move_parser = _targeted(actions, "move", "Move a tab within or between windows.")
    move_parser.add_argument("--index", type=int, required=True)
    move_parser.add_argument("--dest-window", dest="dest_window_id", type=int)

    reload_parser = _targeted(actions, "reload", "Reload a tab.")
    reload_parser.add_argument("--bypass-cache", dest="bypass_cache", action="store_true",
                               help="Bypass the cache (hard reload).")

    _targeted(actions, "duplicate", "Duplicate a tab.")
    _targeted(actions, "discard",
              "Discard a tab — unload it from memory, keep it in the tab strip.")
    _targeted(actions, "mute", "Mute a tab.")
    _targeted(actions, "unmute", "Unmute a tab.")
    _targeted(actions, "pin", "Pin a tab.")
    _targeted(actions, "unpin", "Unpin a tab.")

    shot = _targeted(actions, "screenshot", "Capture a screenshot of a tab.")
    shot.add_argument("-o", "--output", type=Path,
                      help="Write the image to this file. Defaults to stdout.")
    shot.add_argument("--jpeg", action="store_true", help="Capture as JPEG instead of PNG.")
    shot.add_argument("--quality", type=_quality, default=92,
                      help="JPEG quality (0-100). Ignored for PNG.")
    shot.add_argument("--full-page", dest="full_page", action="store_true",
                      help="Capture the full page by scrolling and stitching tiles.")

    zoom_parser = actions.add_parser("zoom", help="Get or set the zoom factor of a tab.")
    zoom_parser.add_argument("value", nargs="?", type=float,
                             help="Zoom factor to set (e.g. 1.5). Omit to read it.")
    add_target_arguments(zoom_parser)

    _targeted(actions, "reader", "Toggle reader mode on a tab.")
    _targeted(actions, "back", "Navigate a tab back in its history.")
    _targeted(actions, "forward", "Navigate a tab forward in its history.")
    _targeted(actions, "detach", "Detach a tab into its own window.")

    group_parser = actions.add_parser(
        "group", help="Group one or more tabs using Firefox tab groups when available."
    )
    group_parser.add_argument("tab_ids", nargs="+", type=int)
    group_parser.add_argument("--group-id", dest="group_id", type=int,
                              help="Existing group id to add tabs to.")
    group_parser.add_argument("--window-id", dest="window_id", type=int,
                              help="Window id for creating a new group.")

    ungroup_parser = actions.add_parser(
        "ungroup", help="Remove one or more tabs from their tab group."
    )
    ungroup_parser.add_argument("tab_ids", nargs="+", type=int)
    return parser


def run(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``tabs`` command."""
    action = args.tabs_action
    if action == "list":
        return list_tabs(client, opts, args.current_window, args.workspace)
    if action == "open":
        return open_tab(client, opts, args.url, args.background)
    if action == "group":
        return group(client, opts, args.tab_ids, args.group_id, args.window_id)
    if action == "ungroup":
        return ungroup(client, opts, args.tab_ids)

    target = target_from_args(args)
    if action == "find":
        return find_tabs(client, opts, target)
    if action == "zoom":
        return zoom(client, opts, args.value, target)

    tab_id = args.tab_id
    simple = {
        "close": close_tab,
        "activate": activate,
        "duplicate": duplicate,
        "discard": discard,
        "reader": reader,
        "back": back,
        "forward": forward,
        "detach": detach,
    }
    if action in simple:
        return simple[action](client, opts, tab_id, target)
    if action == "move":
        return move(client, opts, tab_id, target, args.index, args.dest_window_id)
    if action == "reload":
        return reload(client, opts, tab_id, target, args.bypass_cache)
    if action in ("mute", "unmute"):
        return set_muted(client, opts, tab_id, target, action == "mute")
    if action in ("pin", "unpin"):
        return set_pinned(client, opts, tab_id, target, action == "pin")
    if action == "screenshot":
        return screenshot(client, opts, tab_id, target, args.output, args.jpeg,
                          args.quality, args.full_page)
    raise ZenctlError(f"unknown tabs action: {action}")