"""Split view operations: create, list, lay out, resize and rearrange panes."""

from __future__ import annotations

import argparse
from typing import Any, Iterable

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import CliOpts, print_json


def _str(value: Any, key: str, default: str = "") -> str:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, str) else default


def _list(value: Any, key: str) -> list | None:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, list) else None


def _show(opts: CliOpts, value: Any, text: str) -> None:
    if opts.json:
        print_json(value)
    else:
        print(text)


def format_split_list(value: Any) -> str:
    """Render a SplitViewList answer as text, marking the active group with ``*``."""
    groups = _list(value, "groups") or []
    if not groups:
        return "no active splits"
    active = _str(value, "active_group_id")
    lines = [f"{len(groups)} split group(s):"]
    for group in groups:
        group_id = _str(group, "group_id", "?")
        grid = _str(group, "grid_type", "?")
        tabs = _list(group, "tabs")
        marker = "*" if group_id == active else " "
        count = len(tabs) if tabs is not None else 0
        lines.append(f"  {marker} {group_id} [{grid}] {count} tab(s)")
        for tab in tabs or []:
            lines.append(f"      - {_str(tab, 'title')}  {_str(tab, 'url')}")
    lines.append("(* = active split)")
    return "\n".join(lines)


def create_split(
    client: Client, opts: CliOpts, layout: str = "grid", tab_ids: Iterable[int] = ()
) -> Any:
    """Split tabs together, or the current context tabs when none are given."""
    value = client.call_raw(
        Method.SPLIT_VIEW_CREATE, {"grid_type": layout, "tab_ids": list(tab_ids)}
    )
    _show(opts, value, "split: created")
    return value


def unsplit(client: Client, opts: CliOpts) -> Any:
    """Undo the current split view."""
    value = client.call_raw(Method.SPLIT_UNSPLIT, {})
    _show(opts, value, "split: unsplit")
    return value


def list_splits(client: Client, opts: CliOpts) -> Any:
    """List active split groups across all windows."""
    value = client.call_raw(Method.SPLIT_VIEW_LIST, {})
    if opts.json:
        print_json(value)
    else:
        print(format_split_list(value))
    return value


def add_split_tabs(
    client: Client, opts: CliOpts, tab_ids: Iterable[int] = (), layout: str | None = None
) -> Any:
    """Add tabs to the active split group."""
    value = client.call_raw(
        Method.SPLIT_VIEW_ADD_TAB, {"tab_ids": list(tab_ids), "grid_type": layout}
    )
    _show(opts, value, "split: added tab(s)")
    return value


def set_layout(client: Client, opts: CliOpts, layout: str) -> Any:
    """Change the active split layout (grid, vsep, hsep)."""
    value = client.call_raw(Method.SPLIT_VIEW_SET_LAYOUT, {"grid_type": layout})
    _show(opts, value, "split: layout set")
    return value


def resize(client: Client, opts: CliOpts, path: str, sizes: Iterable[float]) -> Any:
    """Resize the children of a split layout node; sizes are percentages."""
    sizes = [float(size) for size in sizes]
    if not sizes:
        raise ZenctlError("provide --sizes, e.g. --sizes 30,70")
    value = client.call_raw(Method.SPLIT_VIEW_RESIZE, {"path": path, "sizes": sizes})
    _show(opts, value, "split: resized")
    return value


def rearrange(client: Client, opts: CliOpts, enable: bool = True) -> Any:
    """Turn drag-reorder mode for the active split's panes on or off."""
    value = client.call_raw(Method.SPLIT_VIEW_REARRANGE, {"enable": enable})
    if opts.json:
        print_json(value)
    else:
        state = isinstance(value, dict) and value.get("rearranging") is True
        if state:
            print("split: rearrange on (drag panes to reorder)")
        else:
            print("split: rearrange off (reorder disabled)")
    return value


def _sizes(text: str) -> list[float]:
    try:
        return [float(part) for part in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid sizes: {text}") from None


def _parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise argparse.ArgumentTypeError(f"invalid value '{text}' (use true or false)")


def add_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Register the ``split`` command."""
    parser = subparsers.add_parser("split", help="Split view operations (via WebExt experiment).")
    actions = parser.add_subparsers(dest="split_action", required=True)

    create = actions.add_parser("create", help="Split the current context tabs.")
    create.add_argument("--layout", default="grid", help="Layout: grid, vsep, hsep, unsplit.")
    create.add_argument("--tab-id", dest="tab_ids", type=int, action="append",
                        help="Tab IDs to split together (pass multiple times).")

    actions.add_parser("unsplit", help="Unsplit the current split view.")
    actions.add_parser("list", help="List active split groups across all windows.")

    add_tab = actions.add_parser("add-tab", help="Add tabs to the active/existing split group.")
    add_tab.add_argument("--tab-id", dest="tab_ids", type=int, action="append",
                         help="Tab IDs to add (pass multiple times).")
    add_tab.add_argument("--layout", help="Layout: grid, vsep, hsep.")

    layout = actions.add_parser("set-layout", help="Change the active split layout.")
    layout.add_argument("layout")

    size = actions.add_parser("resize", help="Resize children of a split layout node.")
    size.add_argument("--path", default="",
                      help="Node path from the layout tree. Empty path = root; e.g. 0 or 1.0.")
    size.add_argument("--sizes", type=_sizes, action="extend", default=[],
                      help="Comma-separated child sizes in percent, summing to 100.")

    order = actions.add_parser("rearrange",
                               help="Toggle drag-reorder mode for the active split view's panes.")
    order.add_argument("--enable", type=_parse_bool, nargs="?", const=True, default=True,
                       help="Enable or disable rearrange mode (default: enable).")
    return parser


def run(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``split`` command."""
    action = args.split_action
    if action == "create":
        return create_split(client, opts, args.layout, args.tab_ids or [])
    if action == "unsplit":
        return unsplit(client, opts)
    if action == "list":
        return list_splits(client, opts)
    if action == "add-tab":
        return add_split_tabs(client, opts, args.tab_ids or [], args.layout)
    if action == "set-layout":
        return set_layout(client, opts, args.layout)
    if action == "resize":
        return resize(client, opts, args.path, args.sizes)
    if action == "rearrange":
        return rearrange(client, opts, args.enable)
    raise ZenctlError(f"unknown split action: {action}")