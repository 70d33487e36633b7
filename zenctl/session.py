"""Sessionstore reading and backups, recently closed tabs/windows, checkpoints and shortcuts."""

from __future__ import annotations

import argparse
import json
from typing import Any

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import CliOpts, print_json, short_summary

_SESSION_EXAMPLES = """EXAMPLES:
  zenctl session list
  zenctl session list --full    # raw JSON
  zenctl session backup"""

_SESSIONS_EXAMPLES = """EXAMPLES:
  zenctl sessions closed
  zenctl sessions closed --limit 5
  zenctl sessions restore
  zenctl sessions restore <session-id>
  zenctl sessions restore-window
  zenctl sessions restore-tab <session-id>"""

_RESTORE_METHODS = {
    "restore": Method.SESSIONS_RESTORE,
    "restore-window": Method.SESSION_RESTORE_WINDOW,
    "restore-tab": Method.SESSION_RESTORE_TAB,
}


def _str(value: Any, key: str, default: str = "") -> str:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, str) else default


def _items(value: Any, key: str) -> list:
    if isinstance(value, list):
        return value
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, list) else []


def _show(opts: CliOpts, value: Any, text: str) -> None:
    if opts.json:
        print_json(value)
    else:
        print(text)


def format_session_tabs(value: Any) -> str:
    """Render the tab list of a sessionstore answer as text."""
    tabs = _items(value, "tabs")
    if not tabs:
        return "no session tabs"
    lines = [f"{len(tabs)} tab(s):"]
    for tab in tabs:
        window = tab.get("window") if isinstance(tab, dict) else None
        prefix = f"[{window}] " if isinstance(window, int) and not isinstance(window, bool) else ""
        lines.append(f"  {prefix}{_str(tab, 'title')}  {_str(tab, 'url')}")
    return "\n".join(lines)


def format_closed(value: Any) -> str:
    """Render recently closed tabs and windows as text."""
    entries = _items(value, "sessions")
    if not entries:
        return "no recently closed tabs or windows"
    lines = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        tab = entry.get("tab")
        window = entry.get("window")
        if isinstance(tab, dict):
            lines.append(
                f"tab     {_str(tab, 'sessionId', '?')}  {_str(tab, 'title')}  {_str(tab, 'url')}"
            )
        elif isinstance(window, dict):
            tabs = window.get("tabs")
            count = len(tabs) if isinstance(tabs, list) else 0
            lines.append(
                f"window  {_str(window, 'sessionId', '?')}  {_str(window, 'title')}  "
                f"({count} tab(s))"
            )
    return "\n".join(lines) if lines else "no recently closed tabs or windows"


def list_session(client: Client, opts: CliOpts, full: bool = False) -> Any:
    """List open tabs from the sessionstore, or the whole session with ``full``."""
    value = client.call_raw(Method.SESSION_LIST, {"tab_list": not full})
    if opts.json or full:
        print_json(value)
    else:
        print(format_session_tabs(value))
    return value


def backup_session(client: Client, opts: CliOpts) -> Any:
    """Back up the sessionstore to a timestamped copy."""
    value = client.call_raw(Method.SESSION_BACKUP, {})
    _show(opts, value, f"backup: {_str(value, 'backup', 'unknown')}")
    return value


def create_checkpoint(client: Client, opts: CliOpts) -> Any:
    """Create a timestamped sessionstore backup as a checkpoint."""
    value = client.call_raw(Method.SESSION_BACKUP, {})
    _show(opts, value, f"checkpoint: {_str(value, 'backup', 'unknown')}")
    return value


def list_closed(client: Client, opts: CliOpts, limit: int | None = None) -> Any:
    """List recently closed tabs and windows."""
    params: dict = {}
    if limit is not None:
        params["max_results"] = limit
    value = client.call_raw(Method.SESSIONS_CLOSED, params)
    _show(opts, value, format_closed(value) if not opts.json else "")
    return value


def restore(client: Client, opts: CliOpts, method: Method, session_id: str | None = None) -> Any:
    """Restore a closed tab or window; the most recent one when no id is given."""
    params: dict = {}
    if session_id is not None:
        params["session_id"] = session_id
    value = client.call_raw(method, params)
    if opts.json:
        print_json(value)
        return value
    restored = None
    if isinstance(value, dict):
        if "tab" in value:
            restored = value["tab"]
        elif "window" in value:
            restored = value["window"]
        else:
            restored = None
        has_entry = "tab" in value or "window" in value
    else:
        has_entry = False
    if has_entry:
        print(f"restored: {short_summary(restored, ['id', 'title', 'url'])}")
    else:
        print("restored")
    return value


def read_shortcuts(client: Client, opts: CliOpts) -> Any:
    """Print the keyboard shortcuts file as JSON."""
    value = client.call_raw(Method.SHORTCUTS_READ, {})
    print_json(value)
    return value


def write_shortcuts(client: Client, opts: CliOpts, data: str) -> Any:
    """Write a full shortcuts object, given as a JSON string, to the profile."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ZenctlError(f"invalid shortcuts JSON: {exc}") from exc
    value = client.call_raw(Method.SHORTCUTS_WRITE, {"shortcuts": parsed})
    _show(opts, value, f"written: {_str(value, 'written', '?')}")
    return value


def reset_shortcuts(client: Client, opts: CliOpts) -> Any:
    """Reset keyboard shortcuts to the browser defaults."""
    value = client.call_raw(Method.SHORTCUTS_RESET, {})
    _show(opts, value, "shortcuts: reset to Zen defaults")
    return value


def add_parsers(subparsers: Any) -> None:
    """Register the ``session``, ``sessions``, ``checkpoint`` and ``shortcuts`` commands."""
    session = subparsers.add_parser(
        "session", help="Session operations (profile-file tier).",
        epilog=_SESSION_EXAMPLES, formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    session.set_defaults(session_group="session")
    actions = session.add_subparsers(dest="session_action", required=True)
    actions.add_parser("list", help="List open tabs from the current sessionstore.").add_argument(
        "--full", action="store_true", help="Return full session JSON instead of tab list.")
    actions.add_parser("backup", help="Back up the current sessionstore to a timestamped copy.")

    sessions = subparsers.add_parser(
        "sessions", help="Recently closed tabs/windows (via WebExtension).",
        epilog=_SESSIONS_EXAMPLES, formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sessions.set_defaults(session_group="sessions")
    actions = sessions.add_subparsers(dest="sessions_action", required=True)
    actions.add_parser("closed", help="List recently closed tabs and windows.").add_argument(
        "--limit", type=int, help="Maximum number of entries to return.")
    for name, help_text in (
        ("restore", "Restore a closed tab/window. Restores the most recent if no id is given."),
        ("restore-window", "Restore a recently closed window."),
        ("restore-tab", "Restore a recently closed tab."),
    ):
        actions.add_parser(name, help=help_text).add_argument(
            "session_id", nargs="?", help="Session id from `sessions closed`.")

    checkpoint = subparsers.add_parser(
        "checkpoint", help="Create/list lightweight browser session checkpoints.")
    checkpoint.set_defaults(session_group="checkpoint")
    actions = checkpoint.add_subparsers(dest="checkpoint_action", required=True)
    actions.add_parser("create", help="Create a timestamped sessionstore backup.")
    actions.add_parser("list", help="List current session tabs.").add_argument(
        "--full", action="store_true", help="Return full session JSON instead of the tab table.")

    shortcuts = subparsers.add_parser(
        "shortcuts", help="Keyboard shortcuts operations (profile-file tier).")
    shortcuts.set_defaults(session_group="shortcuts")
    actions = shortcuts.add_subparsers(dest="shortcuts_action", required=True)
    actions.add_parser("read", help="Read the shortcuts file as JSON.")
    actions.add_parser("write", help="Write shortcuts JSON to the profile file.").add_argument(
        "data", help="JSON string (full shortcuts object).")
    actions.add_parser("reset", help="Reset keyboard shortcuts to Zen browser defaults.")


def run(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``session``, ``sessions``, ``checkpoint`` or ``shortcuts`` command."""
    group = getattr(args, "session_group", None)
    if group == "session":
        if args.session_action == "list":
            return list_session(client, opts, args.full)
        return backup_session(client, opts)
    if group == "sessions":
        action = args.sessions_action
        if action == "closed":
            return list_closed(client, opts, args.limit)
        if action in _RESTORE_METHODS:
            return restore(client, opts, _RESTORE_METHODS[action], args.session_id)
        raise ZenctlError(f"unknown sessions action: {action}")
    if group == "checkpoint":
        if args.checkpoint_action == "create":
            return create_checkpoint(client, opts)
        return list_session(client, opts, args.full)
    if group == "shortcuts":
        action = args.shortcuts_action
        if action == "read":
            return read_shortcuts(client, opts)
        if action == "write":
            return write_shortcuts(client, opts, args.data)
        return reset_shortcuts(client, opts)
    raise ZenctlError(f"unknown command group: {group}")