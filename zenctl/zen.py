"""Zen-specific features: pinned-tab folders, essentials, glance and compact mode."""

from __future__ import annotations

import argparse
from typing import Any, Iterable

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import CliOpts, confirm, print_json, short_summary

_FOLDERS_EXAMPLES = """EXAMPLES:
  zenctl folders list
  zenctl folders create --label Research
  zenctl folders add-tab <id> --tab-id 42 --tab-id 43
  zenctl folders add-tab <id> --url https://example.com
  zenctl folders set-icon <id> 🧪
  zenctl folders subfolder <parent-id> --label Subtopic
  zenctl folders rename <id> 'Project X'
  zenctl folders collapse <id>
  zenctl folders expand <id>
  zenctl folders unpack <id>
  zenctl folders unload <id>
  zenctl folders move-to-workspace <id> <workspace-uuid>
  zenctl folders convert-to-workspace <id> --force
  zenctl folders delete <id> --force"""

_ESSENTIALS_EXAMPLES = """EXAMPLES:
  zenctl essentials list
  zenctl essentials add --tab-id 42 --tab-id 43
  zenctl essentials add --url https://example.com
  zenctl essentials remove --tab-id 42
  zenctl essentials remove --url https://example.com --keep-pinned
  zenctl essentials reset --tab-id 42
  zenctl essentials replace-url --tab-id 42"""

_HIDE_CHOICES = ("sidebar", "toolbar", "both")


def _str(value: Any, key: str, default: str = "") -> str:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, str) else default


def _bool(value: Any, key: str) -> bool | None:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, bool) else None


def _uint(value: Any, key: str) -> int:
    item = value.get(key) if isinstance(value, dict) else None
    if isinstance(item, int) and not isinstance(item, bool) and item >= 0:
        return item
    return 0


def _list(value: Any, key: str) -> list | None:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, list) else None


def _show(opts: CliOpts, value: Any, text: str) -> None:
    if opts.json:
        print_json(value)
    else:
        print(text)


def _require_target(tab_ids: list, urls: list) -> None:
    if not tab_ids and not urls:
        raise ZenctlError("provide --tab-id and/or --url at least once")


# ---------------------------------------------------------------- folders


def format_folders(value: Any) -> str:
    """Render a FoldersList answer as text."""
    folders = _list(value, "folders") or []
    if not folders:
        return "no folders"
    lines = [f"{len(folders)} folder(s):"]
    for folder in folders:
        folder_id = _str(folder, "id", "?")
        label = _str(folder, "label", "?")
        collapsed = _bool(folder, "collapsed") or False
        parent = _str(folder, "parent_id")
        live = _bool(folder, "is_live_folder") or False
        tabs = _list(folder, "tabs")
        marker = "▸" if collapsed else "▾"
        if parent:
            extra = f" (in {parent})"
        elif live:
            extra = " (live)"
        else:
            extra = ""
        count = len(tabs) if tabs is not None else 0
        lines.append(f"  {marker} {folder_id} — {label}  [{count} tab(s)]{extra}")
        for tab in tabs or []:
            lines.append(f"      - {_str(tab, 'title')}  {_str(tab, 'url')}")
    return "\n".join(lines)


def list_folders(client: Client, opts: CliOpts) -> Any:
    """List pinned-tab folders across all windows."""
    value = client.call_raw(Method.FOLDERS_LIST, {})
    _show(opts, value, format_folders(value) if not opts.json else "")
    return value


def create_folder(
    client: Client, opts: CliOpts, label: str | None = None, workspace_id: str | None = None
) -> Any:
    """Create an empty folder, in the active workspace unless one is given."""
    params: dict = {}
    if label is not None:
        params["label"] = label
    if workspace_id is not None:
        params["workspace_id"] = workspace_id
    value = client.call_raw(Method.FOLDERS_CREATE, params)
    _show(opts, value,
          f"folder created: {_str(value, 'id', '?')} ({_str(value, 'label', '?')})")
    return value


def add_tabs_to_folder(
    client: Client,
    opts: CliOpts,
    folder_id: str,
    tab_ids: Iterable[int] = (),
    urls: Iterable[str] = (),
) -> Any:
    """Move existing tabs, chosen by id or url, into a folder."""
    tab_ids, urls = list(tab_ids), list(urls)
    _require_target(tab_ids, urls)
    value = client.call_raw(
        Method.FOLDERS_ADD_TAB,
        {"folder_id": folder_id, "tab_ids": tab_ids, "urls": urls},
    )
    _show(opts, value, f"folder {folder_id}: added {_uint(value, 'added')} tab(s)")
    return value


def set_folder_icon(client: Client, opts: CliOpts, folder_id: str, icon: str) -> Any:
    """Set a folder's icon (emoji, built-in name, URL, or "" to clear)."""
    value = client.call_raw(Method.FOLDERS_SET_ICON, {"folder_id": folder_id, "icon": icon})
    _show(opts, value, f"folder {folder_id}: icon set")
    return value


def create_subfolder(
    client: Client, opts: CliOpts, parent_id: str, label: str | None = None
) -> Any:
    """Create a subfolder under an existing folder."""
    params: dict = {"parent_id": parent_id}
    if label is not None:
        params["label"] = label
    value = client.call_raw(Method.FOLDERS_CREATE_SUBFOLDER, params)
    _show(opts, value,
          f"subfolder created under {parent_id}: "
          f"{_str(value, 'id', '?')} ({_str(value, 'label', '?')})")
    return value


def delete_folder(client: Client, opts: CliOpts, folder_id: str) -> Any:
    """Delete a folder and its tabs; needs ``--force``."""
    confirm(opts, "delete folder", folder_id)
    value = client.call_raw(Method.FOLDERS_DELETE, {"folder_id": folder_id})
    _show(opts, value, f"folder deleted: {folder_id}")
    return value


def rename_folder(client: Client, opts: CliOpts, folder_id: str, name: str) -> Any:
    """Rename a folder."""
    value = client.call_raw(Method.FOLDERS_RENAME, {"folder_id": folder_id, "name": name})
    _show(opts, value, f"folder renamed: {folder_id} → {name}")
    return value


def set_folder_collapsed(client: Client, opts: CliOpts, folder_id: str, collapsed: bool) -> Any:
    """Collapse or expand a folder."""
    value = client.call_raw(
        Method.FOLDERS_COLLAPSE, {"folder_id": folder_id, "collapsed": collapsed}
    )
    state = "collapsed" if collapsed else "expanded"
    _show(opts, value, f"folder {state}: {folder_id}")
    return value


def unpack_folder(client: Client, opts: CliOpts, folder_id: str) -> Any:
    """Ungroup a folder, keeping its tabs as loose pinned tabs; needs ``--force``."""
    confirm(opts, "unpack folder", folder_id)
    value = client.call_raw(Method.FOLDERS_UNPACK, {"folder_id": folder_id})
    _show(opts, value, f"folder unpacked: {folder_id}")
    return value


def unload_folder(client: Client, opts: CliOpts, folder_id: str) -> Any:
    """Discard every tab in a folder to free memory."""
    value = client.call_raw(Method.FOLDERS_UNLOAD, {"folder_id": folder_id})
    _show(opts, value, f"folder tabs unloaded: {folder_id}")
    return value


def move_folder_to_workspace(
    client: Client, opts: CliOpts, folder_id: str, workspace_id: str
) -> Any:
    """Move a folder into another workspace."""
    value = client.call_raw(
        Method.FOLDERS_MOVE_TO_WORKSPACE,
        {"folder_id": folder_id, "workspace_id": workspace_id},
    )
    _show(opts, value, f"folder {folder_id} moved to workspace {workspace_id}")
    return value


def convert_folder_to_workspace(client: Client, opts: CliOpts, folder_id: str) -> Any:
    """Turn a folder into a new workspace; needs ``--force``."""
    confirm(opts, "convert folder to workspace", folder_id)
    value = client.call_raw(Method.FOLDERS_CONVERT_TO_WORKSPACE, {"folder_id": folder_id})
    _show(opts, value,
          f"folder {folder_id} converted to workspace "
          f"{_str(value, 'workspace_id', '?')} ({_str(value, 'name', '?')})")
    return value


# ------------------------------------------------------------- essentials


def format_essentials(value: Any) -> str:
    """Render an EssentialsList answer as text."""
    essentials = _list(value, "essentials") or []
    if not essentials:
        return "no essential tabs"
    lines = [f"{len(essentials)} essential tab(s):"]
    lines.extend(f"  - {_str(e, 'title')}  {_str(e, 'url')}" for e in essentials)
    return "\n".join(lines)


def _emit(opts: CliOpts, value: Any, keys: list[str]) -> None:
    _show(opts, value, short_summary(value, keys) if not opts.json else "")


def list_essentials(client: Client, opts: CliOpts) -> Any:
    """List essential tabs across every window."""
    value = client.call_raw(Method.ESSENTIALS_LIST, {})
    _show(opts, value, format_essentials(value) if not opts.json else "")
    return value


def add_essentials(
    client: Client, opts: CliOpts, tab_ids: Iterable[int] = (), urls: Iterable[str] = ()
) -> Any:
    """Promote tabs, chosen by id or url, to essentials."""
    tab_ids, urls = list(tab_ids), list(urls)
    _require_target(tab_ids, urls)
    value = client.call_raw(Method.ESSENTIALS_ADD, {"tab_ids": tab_ids, "urls": urls})
    _emit(opts, value, ["added", "skipped"])
    return value


def remove_essentials(
    client: Client,
    opts: CliOpts,
    tab_ids: Iterable[int] = (),
    urls: Iterable[str] = (),
    keep_pinned: bool = False,
) -> Any:
    """Remove tabs from essentials, unpinning them unless ``keep_pinned``."""
    tab_ids, urls = list(tab_ids), list(urls)
    _require_target(tab_ids, urls)
    value = client.call_raw(
        Method.ESSENTIALS_REMOVE,
        {"tab_ids": tab_ids, "urls": urls, "unpin": not keep_pinned},
    )
    _emit(opts, value, ["removed", "skipped", "unpinned"])
    return value


def reset_essentials(
    client: Client, opts: CliOpts, tab_ids: Iterable[int] = (), urls: Iterable[str] = ()
) -> Any:
    """Reset pinned tabs to their stored URL."""
    tab_ids, urls = list(tab_ids), list(urls)
    _require_target(tab_ids, urls)
    value = client.call_raw(Method.ESSENTIALS_RESET, {"tab_ids": tab_ids, "urls": urls})
    _emit(opts, value, ["reset", "skipped"])
    return value


def replace_essential_urls(
    client: Client, opts: CliOpts, tab_ids: Iterable[int] = (), urls: Iterable[str] = ()
) -> Any:
    """Store pinned tabs' current URLs as their new stored URLs."""
    tab_ids, urls = list(tab_ids), list(urls)
    _require_target(tab_ids, urls)
    value = client.call_raw(
        Method.ESSENTIALS_REPLACE_URL, {"tab_ids": tab_ids, "urls": urls}
    )
    _emit(opts, value, ["replaced", "skipped"])
    return value


# ----------------------------------------------------------------- glance


def list_glances(client: Client, opts: CliOpts) -> Any:
    """List open glance overlays."""
    value = client.call_raw(Method.GLANCE_LIST, {})
    print_json(value)
    return value


def close_all_glances(client: Client, opts: CliOpts) -> Any:
    """Close every glance overlay."""
    value = client.call_raw(Method.GLANCE_CLOSE_ALL, {})
    _show(opts, value, f"glance: closed {_uint(value, 'closed')}")
    return value


def close_glance(client: Client, opts: CliOpts, tab_id: int | None = None) -> Any:
    """Close the current glance overlay, or the one in ``tab_id``."""
    value = client.call_raw(Method.GLANCE_CLOSE, {"tab_id": tab_id})
    _show(opts, value, "glance: closed")
    return value


def expand_glance(client: Client, opts: CliOpts, tab_id: int | None = None) -> Any:
    """Expand the current glance into a regular tab."""
    value = client.call_raw(Method.GLANCE_EXPAND, {"tab_id": tab_id})
    _show(opts, value, "glance: expanded")
    return value


def open_glance(client: Client, opts: CliOpts, url: str) -> Any:
    """Open a glance overlay on ``url``."""
    value = client.call_raw(Method.GLANCE_OPEN, {"url": url})
    _show(opts, value, f"glance: opened {url}")
    return value


# ---------------------------------------------------------------- compact


def compact_toggle(client: Client, opts: CliOpts) -> Any:
    """Toggle compact mode."""
    value = client.compact_toggle()
    enabled = _bool(value, "enabled")
    state = "toggled" if enabled is None else ("enabled" if enabled else "disabled")
    _show(opts, value, f"compact: {state}")
    return value


def compact_set(client: Client, opts: CliOpts, value: bool) -> Any:
    """Turn compact mode on or off."""
    resp = client.call_raw(Method.COMPACT_SET, {"value": value})
    enabled = _bool(resp, "enabled")
    state = "unknown" if enabled is None else ("enabled" if enabled else "disabled")
    _show(opts, resp, f"compact: {state}")
    return resp


def compact_hide(client: Client, opts: CliOpts, what: str) -> Any:
    """Hide the sidebar, the toolbar or both in compact mode."""
    if what not in _HIDE_CHOICES:
        raise ZenctlError(f"invalid value '{what}' (use sidebar, toolbar or both)")
    resp = client.call_raw(Method.COMPACT_HIDE, {"what": what})
    _show(opts, resp, f"compact: hid {what}")
    return resp


# ---------------------------------------------------------------- parsers


def _parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise argparse.ArgumentTypeError(f"invalid value '{text}' (use true or false)")


def _add_targets(parser: argparse.ArgumentParser, noun: str) -> None:
    parser.add_argument("--tab-id", dest="tab_ids", type=int, action="append",
                        help=f"Tab id to {noun}. Pass multiple times for several tabs.")
    parser.add_argument("--url", dest="urls", action="append",
                        help="URL to match. Pass multiple times for several tabs.")


def _add_folders_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser(
        "folders", help="Pinned-tab folders (Zen's `zen-folder` group elements).",
        epilog=_FOLDERS_EXAMPLES, formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(zen_group="folders")
    actions = parser.add_subparsers(dest="folders_action", required=True)
    actions.add_parser("list", help="List all pinned-tab folders across all windows.")
    create = actions.add_parser("create", help="Create an empty folder.")
    create.add_argument("--label", help="Folder label.")
    create.add_argument("--workspace", dest="workspace_id",
                        help="Workspace UUID. Omit to use the active workspace.")
    add_tab = actions.add_parser("add-tab", help="Add existing tabs into a folder.")
    add_tab.add_argument("folder_id")
    _add_targets(add_tab, "add")
    icon = actions.add_parser("set-icon", help="Set a folder's icon.")
    icon.add_argument("folder_id")
    icon.add_argument("icon")
    sub = actions.add_parser("subfolder", help="Create a subfolder under an existing folder.")
    sub.add_argument("parent_id")
    sub.add_argument("--label", help="Subfolder label.")
    for name, help_text in (
        ("delete", "Delete a folder and its tabs."),
        ("collapse", "Collapse a folder."),
        ("expand", "Expand a folder."),
        ("unpack", "Ungroup the folder, keeping its tabs as loose pinned tabs."),
        ("unload", "Unload (discard) every tab in the folder to free memory."),
        ("convert-to-workspace",
         "Convert the folder into a new workspace and delete the folder shell."),
    ):
        actions.add_parser(name, help=help_text).add_argument("folder_id")
    rename = actions.add_parser("rename", help="Rename a folder by id.")
    rename.add_argument("folder_id")
    rename.add_argument("name")
    move = actions.add_parser("move-to-workspace", help="Move the folder into another workspace.")
    move.add_argument("folder_id")
    move.add_argument("workspace_id")


def _add_essentials_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser(
        "essentials", help="Zen essential (pinned) tab operations.",
        epilog=_ESSENTIALS_EXAMPLES, formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(zen_group="essentials")
    actions = parser.add_subparsers(dest="essentials_action", required=True)
    actions.add_parser("list", help="List all essential tabs across every window.")
    _add_targets(actions.add_parser("add", help="Promote existing tabs to essentials."), "add")
    remove = actions.add_parser("remove", help="Remove tabs from essentials.")
    _add_targets(remove, "remove")
    remove.add_argument("--keep-pinned", dest="keep_pinned", action="store_true",
                        help="Keep the tab pinned instead of unpinning it after removal.")
    _add_targets(actions.add_parser(
        "reset", help="Reset a pinned/essential tab to its stored URL."), "reset")
    _add_targets(actions.add_parser(
        "replace-url", help="Commit a pinned tab's current URL as its new stored URL."), "update")


def _add_glance_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("glance", help="Glance operations (via WebExt experiment).")
    parser.set_defaults(zen_group="glance")
    actions = parser.add_subparsers(dest="glance_action", required=True)
    actions.add_parser("list", help="List open glance overlays.")
    actions.add_parser("close-all", help="Close all glance overlays.")
    for name, help_text in (
        ("close", "Close the current glance overlay."),
        ("expand", "Fully expand the current glance into a regular tab."),
    ):
        actions.add_parser(name, help=help_text).add_argument(
            "--tab-id", dest="tab_id", type=int,
            help="Target a specific tab by id (activates it first).",
        )
    actions.add_parser("open", help="Open a glance overlay on a URL.").add_argument("url")


def _add_compact_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("compact", help="Operate on Zen's compact mode.")
    parser.set_defaults(zen_group="compact")
    actions = parser.add_subparsers(dest="compact_action", required=True)
    actions.add_parser("toggle", help="Toggle compact mode on/off.")
    actions.add_parser("set", help="Set compact mode explicitly.").add_argument(
        "value", type=_parse_bool, help="true to enable, false to disable")
    actions.add_parser("hide", help="Hide part of the UI.").add_argument(
        "what", choices=_HIDE_CHOICES, help="What to hide.")


def add_parsers(subparsers: Any) -> None:
    """Register the ``folders``, ``essentials``, ``glance`` and ``compact`` commands."""
    _add_folders_parser(subparsers)
    _add_essentials_parser(subparsers)
    _add_glance_parser(subparsers)
    _add_compact_parser(subparsers)


def _run_folders(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    action = args.folders_action
    if action == "list":
        return list_folders(client, opts)
    if action == "create":
        return create_folder(client, opts, args.label, args.workspace_id)
    if action == "add-tab":
        return add_tabs_to_folder(client, opts, args.folder_id,
                                  args.tab_ids or [], args.urls or [])
    if action == "set-icon":
        return set_folder_icon(client, opts, args.folder_id, args.icon)
    if action == "subfolder":
        return create_subfolder(client, opts, args.parent_id, args.label)
    if action == "rename":
        return rename_folder(client, opts, args.folder_id, args.name)
    if action in ("collapse", "expand"):
        return set_folder_collapsed(client, opts, args.folder_id, action == "collapse")
    if action == "move-to-workspace":
        return move_folder_to_workspace(client, opts, args.folder_id, args.workspace_id)
    simple = {
        "delete": delete_folder,
        "unpack": unpack_folder,
        "unload": unload_folder,
        "convert-to-workspace": convert_folder_to_workspace,
    }
    if action in simple:
        return simple[action](client, opts, args.folder_id)
    raise ZenctlError(f"unknown folders action: {action}")


def _run_essentials(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    action = args.essentials_action
    if action == "list":
        return list_essentials(client, opts)
    tab_ids, urls = args.tab_ids or [], args.urls or []
    if action == "add":
        return add_essentials(client, opts, tab_ids, urls)
    if action == "remove":
        return remove_essentials(client, opts, tab_ids, urls, args.keep_pinned)
    if action == "reset":
        return reset_essentials(client, opts, tab_ids, urls)
    if action == "replace-url":
        return replace_essential_urls(client, opts, tab_ids, urls)
    raise ZenctlError(f"unknown essentials action: {action}")


def _run_glance(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    action = args.glance_action
    if action == "list":
        return list_glances(client, opts)
    if action == "close-all":
        return close_all_glances(client, opts)
    if action == "close":
        return close_glance(client, opts, args.tab_id)
    if action == "expand":
        return expand_glance(client, opts, args.tab_id)
    if action == "open":
        return open_glance(client, opts, args.url)
    raise ZenctlError(f"unknown glance action: {action}")


def _run_compact(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    action = args.compact_action
    if action == "toggle":
        return compact_toggle(client, opts)
    if action == "set":
        return compact_set(client, opts, args.value)
    if action == "hide":
        return compact_hide(client, opts, args.what)
    raise ZenctlError(f"unknown compact action: {action}")


def run(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``folders``, ``essentials``, ``glance`` or ``compact`` command."""
    runners = {
        "folders": _run_folders,
        "essentials": _run_essentials,
        "glance": _run_glance,
        "compact": _run_compact,
    }
    group = getattr(args, "zen_group", None)
    if group not in runners:
        raise ZenctlError(f"unknown command group: {group}")
    return runners[group](client, opts, args)