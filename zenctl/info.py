"""Host status, capabilities, the state snapshot and the native share dialog."""

from __future__ import annotations

import os
import sys
from typing import Any

from zenctl.client import Client, Method, ZenctlError, socket_path
from zenctl.common import CliOpts, print_json

SNAPSHOT_SCHEMA = "zenctl.snapshot.v1"

_SNAPSHOT_SECTIONS = (
    ("status", Method.STATUS, None),
    ("windows", Method.WINDOWS_LIST, {}),
    ("tabs", Method.TABS_LIST, {}),
    ("workspaces", Method.WORKSPACE_LIST, {}),
    ("splits", Method.SPLIT_VIEW_LIST, {}),
    ("glances", Method.GLANCE_LIST, {}),
    ("folders", Method.FOLDERS_LIST, {}),
    ("live_folders", Method.LIVE_FOLDERS_LIST, {}),
)


def short_hash(s: str) -> str:
    """Shorten a hash to its first 12 characters followed by an ellipsis."""
    return f"{s[:12]}…" if len(s) > 12 else s


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def show_status(client: Client, opts: CliOpts) -> Any:
    """Show host, extension and browser status."""
    status = client.call_raw(Method.STATUS, None)
    sock = str(socket_path())
    from_env = "ZENCTL_SOCKET" in os.environ
    if opts.json:
        out = dict(status) if isinstance(status, dict) else {"status": status}
        out["socket"] = sock
        out["socket_from_env"] = from_env
        print_json(out)
        return status

    print(f"host:      {_get(status, 'daemon_version')} "
          f"(protocol v{_get(status, 'protocol_version')})")
    print(f"extension: {'connected' if _get(status, 'extension_connected') else 'not connected'}")
    if _get(status, "zen_running"):
        pid = _get(status, "zen_pid")
        zen_label = f"running (pid {pid})" if pid is not None else "running"
    else:
        zen_label = "not running"
    print(f"zen:       {zen_label}")
    windows = _get(status, "window_count")
    if windows is not None:
        print(f"windows:   {windows}")
    profile = _get(status, "profile_path")
    if profile is not None:
        print(f"profile:   {profile}")
    print(f"socket:    {sock}{' (ZENCTL_SOCKET)' if from_env else ''}")
    if _get(status, "stale_extension"):
        loaded = _get(status, "loaded_extension_hash") or "?"
        bundled = _get(status, "bundled_extension_hash") or "?"
        print(file=sys.stderr)
        print(f"⚠  loaded extension is stale (loaded={short_hash(loaded)}, "
              f"bundled={short_hash(bundled)}).", file=sys.stderr)
        print("   Run `zenctl install` and re-add the extension in about:debugging.",
              file=sys.stderr)
    return status


def format_capabilities(caps: Any) -> str:
    """Render supported methods with their tier and availability."""
    if not isinstance(caps, list) or not caps:
        return "no capabilities"
    rows = []
    for cap in caps:
        method = _get(cap, "method")
        tier = _get(cap, "tier")
        available = _get(cap, "available")
        rows.append((
            "" if method is None else str(method),
            "" if tier is None else str(tier),
            "yes" if available else "no",
        ))
    width = max(len("METHOD"), *(len(r[0]) for r in rows))
    tier_width = max(len("TIER"), *(len(r[1]) for r in rows))
    lines = [f"{'METHOD':<{width}}  {'TIER':<{tier_width}}  AVAILABLE"]
    lines.extend(f"{m:<{width}}  {t:<{tier_width}}  {a}" for m, t, a in rows)
    return "\n".join(lines)


def show_capabilities(client: Client, opts: CliOpts) -> Any:
    """List supported protocol methods and their tiers."""
    caps = client.call_raw(Method.CAPABILITIES, None)
    if opts.json:
        print_json(caps)
    else:
        print(format_capabilities(caps))
    return caps


def snapshot(client: Client, opts: CliOpts) -> dict:
    """Collect browser state into one JSON document; failed sections are recorded as errors."""
    out: dict = {"schema": SNAPSHOT_SCHEMA, "ok": True, "errors": []}
    for key, method, params in _SNAPSHOT_SECTIONS:
        try:
            out[key] = client.call_raw(method, params)
        except (ZenctlError, OSError, ValueError) as exc:
            out[key] = None
            out["errors"].append({"section": key, "error": str(exc)})
    if out["errors"]:
        out["ok"] = False
    print_json(out)
    return out


def share(
    client: Client,
    opts: CliOpts,
    url: str | None = None,
    title: str | None = None,
    text: str | None = None,
    check: bool = False,
) -> Any:
    """Open the native share dialog, or with ``check`` report whether it is supported."""
    if check:
        value = client.call_raw(Method.SHARE_CAN, {})
        if opts.json:
            print_json(value)
        else:
            can = _get(value, "can") is True
            print(f"native share: {'supported' if can else 'unsupported'}")
            reason = _get(value, "reason")
            if isinstance(reason, str):
                print(f"reason: {reason}")
        return value

    params = {
        key: item
        for key, item in (("url", url), ("title", title), ("text", text))
        if item is not None
    }
    value = client.call_raw(Method.SHARE, params)
    if opts.json:
        print_json(value)
    else:
        shared = _get(value, "url")
        print(f"share: {shared if isinstance(shared, str) else ''}")
    return value