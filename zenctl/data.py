"""Clearing browsing data."""

from __future__ import annotations

import argparse
import time
from typing import Any

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import CliOpts, confirm, print_json, short_summary

_U64_MAX = 2**64 - 1
_UNITS = {"": 1, "s": 1_000, "m": 60_000, "h": 3_600_000, "d": 86_400_000}
_DIGITS = frozenset("0123456789")

_EXAMPLES = """EXAMPLES:
  zenctl data clear --cache --force
  zenctl data clear --cookies --history --since 2h --force
  zenctl data clear --all --since 7d --force
  zenctl data clear --cache --dry-run"""


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def parse_duration_ms(s: str) -> int:
    """Parse ``30m``, ``2h``, ``7d``, ``45s`` or a bare millisecond count."""
    s = s.strip()
    split = next((i for i, c in enumerate(s) if c not in _DIGITS), len(s))
    num, unit = s[:split], s[split:]
    if not num or int(num) > _U64_MAX:
        raise ValueError(f"invalid duration: {s}")
    try:
        mult = _UNITS[unit]
    except KeyError:
        raise ValueError(f"unknown duration unit '{unit}' (use s/m/h/d)") from None
    return min(int(num) * mult, _U64_MAX)


def clear(
    client: Client | None,
    opts: CliOpts,
    cache: bool = False,
    cookies: bool = False,
    history: bool = False,
    downloads: bool = False,
    form_data: bool = False,
    all_types: bool = False,
    since: str | None = None,
) -> Any:
    """Clear the selected data types; returns the host's answer, or None on a dry run."""
    selected = {
        "cache": cache,
        "cookies": cookies,
        "history": history,
        "downloads": downloads,
        "formData": form_data,
    }
    types = {key: True for key in sorted(selected) if all_types or selected[key]}
    if not types:
        raise ZenctlError(
            "select at least one data type (--cache, --cookies, --history, "
            "--downloads, --form-data) or --all"
        )

    since_ms = max(0, now_ms() - parse_duration_ms(since)) if since is not None else 0

    label = ", ".join(types)
    scope = f"{label} (last {since})" if since is not None else f"{label} (all time)"
    confirm(opts, "clear browsing data", scope)
    if opts.dry_run:
        return None
    if client is None:
        raise ZenctlError("not connected to the zenctl host")

    value = client.call_raw(Method.DATA_CLEAR, {"since": since_ms, "types": types})
    if opts.json:
        print_json(value)
    else:
        print(short_summary(value, ["cleared", "since"]))
    return value


def add_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Register the ``data`` command."""
    parser = subparsers.add_parser(
        "data",
        help="Clear browsing data (via WebExtension).",
        epilog=_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    actions = parser.add_subparsers(dest="data_action", required=True)
    clear_parser = actions.add_parser(
        "clear", help="Clear browsing data. Destructive — requires --force."
    )
    clear_parser.add_argument("--cache", action="store_true",
                              help="Clear the disk and memory cache.")
    clear_parser.add_argument("--cookies", action="store_true", help="Clear cookies.")
    clear_parser.add_argument("--history", action="store_true",
                              help="Clear browsing history.")
    clear_parser.add_argument("--downloads", action="store_true",
                              help="Clear the download history (not the files).")
    clear_parser.add_argument("--form-data", dest="form_data", action="store_true",
                              help="Clear saved form data.")
    clear_parser.add_argument("--all", dest="all_types", action="store_true",
                              help="Clear all of the data types above.")
    clear_parser.add_argument(
        "--since",
        help="Only clear data newer than this (e.g. 30m, 2h, 7d). Default: everything.",
    )
    return parser


def run(client: Client | None, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``data`` command."""
    if args.data_action == "clear":
        return clear(
            client,
            opts,
            cache=args.cache,
            cookies=args.cookies,
            history=args.history,
            downloads=args.downloads,
            form_data=args.form_data,
            all_types=args.all_types,
            since=args.since,
        )
    raise ZenctlError(f"unknown data action: {args.data_action}")