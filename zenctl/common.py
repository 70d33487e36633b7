"""Options, confirmation, tab targeting and output helpers shared by commands."""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from typing import Any, Iterable

from zenctl.client import ZenctlError


@dataclass(frozen=True)
class CliOpts:
    """Global options threaded through every command."""

    json: bool = False
    dry_run: bool = False
    force: bool = False
    timeout: int = 15


@dataclass(frozen=True)
class Target:
    """Selects a tab for tab, page and media commands."""

    tab_id: int | None = None
    window_id: int | None = None
    tab_index: int | None = None
    url_contains: str | None = None
    title_contains: str | None = None
    active: bool = False
    workspace: str | None = None


def confirm(opts: CliOpts, action: str, detail: str) -> None:
    """Guard a destructive action.

    With ``dry_run`` the intended action is printed. Otherwise, without
    ``force``, a :class:`ZenctlError` asks for ``--force``.
    """
    if opts.dry_run:
        print(f"Would {action}: {detail}")
        return
    if not opts.force:
        raise ZenctlError(f"Would {action}: {detail}\nUse --force to execute.")


def page_target(target: Target) -> dict:
    """Convert a :class:`Target` into the ``{"target": {...}}`` request params."""
    return {
        "target": {
            "tab_id": target.tab_id,
            "window_id": target.window_id,
            "tab_index": target.tab_index,
            "url_contains": target.url_contains,
            "title_contains": target.title_contains,
            "active": target.active,
        },
        "workspace": target.workspace,
    }


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def short_summary(value: Any, keys: Iterable[str]) -> str:
    """Render the given keys of a response as ``key=value`` pairs.

    Falls back to compact JSON when the value is not an object or holds
    none of the keys.
    """
    if isinstance(value, dict):
        parts = [
            f"{key}={item if isinstance(item, str) else _compact(item)}"
            for key in keys
            if key in value
            for item in (value[key],)
        ]
        if parts:
            return " ".join(parts)
    return _compact(value)


def print_json(value: Any) -> None:
    """Print ``value`` as indented JSON."""
    print(json.dumps(value, indent=2, ensure_ascii=False))


def emit(opts: CliOpts, value: Any, keys: Iterable[str]) -> None:
    """Print a result: indented JSON with ``--json``, else a short summary."""
    if opts.json:
        print_json(value)
    else:
        print(short_summary(value, keys))


def add_target_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the tab-targeting flags to ``parser``."""
    group = parser.add_argument_group("tab target")
    group.add_argument(
        "--tab-id", dest="target_tab_id", type=int,
        help="Target a specific tab by its browser-assigned ID.",
    )
    group.add_argument(
        "--window-id", dest="target_window_id", type=int,
        help="Target the active tab in this window id.",
    )
    group.add_argument(
        "--tab-index", dest="target_tab_index", type=int,
        help="Target tab at this index in the selected/current window.",
    )
    group.add_argument(
        "--url-contains", dest="target_url_contains",
        help="Target the first tab whose URL contains this string.",
    )
    group.add_argument(
        "--title-contains", dest="target_title_contains",
        help="Target the first tab whose title contains this string.",
    )
    group.add_argument(
        "--active", dest="target_active", action="store_true",
        help="Target the active tab. This is the default when no selector is given.",
    )
    group.add_argument(
        "--workspace", dest="target_workspace",
        help="Filter by workspace name or UUID.",
    )


def target_from_args(args: argparse.Namespace) -> Target:
    """Build a :class:`Target` from flags added by :func:`add_target_arguments`."""
    return Target(
        tab_id=getattr(args, "target_tab_id", None),
        window_id=getattr(args, "target_window_id", None),
        tab_index=getattr(args, "target_tab_index", None),
        url_contains=getattr(args, "target_url_contains", None),
        title_contains=getattr(args, "target_title_contains", None),
        active=bool(getattr(args, "target_active", False)),
        workspace=getattr(args, "target_workspace", None),
    )