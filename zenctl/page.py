"""Page inspection and interaction, find-in-page, search engines and media control."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from zenctl.client import Client, Method, ZenctlError
from zenctl.common import (
    CliOpts,
    Target,
    add_target_arguments,
    emit,
    page_target,
    print_json,
    short_summary,
    target_from_args,
)
import json

_MEDIA_METHODS = {
    "status": Method.MEDIA_STATUS,
    "play": Method.MEDIA_PLAY,
    "pause": Method.MEDIA_PAUSE,
    "toggle": Method.MEDIA_TOGGLE,
    "next": Method.MEDIA_NEXT,
    "previous": Method.MEDIA_PREVIOUS,
}

_FIND_EXAMPLES = """EXAMPLES:
  zenctl find text "search term"
  zenctl find text hello --url-contains wikipedia --case-sensitive
  zenctl find clear"""

_SEARCH_EXAMPLES = """EXAMPLES:
  zenctl search engines
  zenctl search query "rust async"
  zenctl search query "weather" --engine DuckDuckGo"""


def _str_field(value: Any, key: str) -> str:
    item = value.get(key) if isinstance(value, dict) else None
    return item if isinstance(item, str) else ""


def _uint_field(value: Any, key: str) -> int:
    item = value.get(key) if isinstance(value, dict) else None
    if isinstance(item, int) and not isinstance(item, bool) and item >= 0:
        return item
    return 0


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _with_frame(params: dict, frame_index: int | None) -> dict:
    if frame_index is not None:
        params["frame_index"] = frame_index
    return params


def page_info(client: Client, opts: CliOpts, target: Target) -> Any:
    """Show title, URL and active element of a page."""
    value = client.call_raw(Method.PAGE_INFO, page_target(target))
    if opts.json:
        print_json(value)
    else:
        print(f"title: {_str_field(value, 'title')}\nurl:   {_str_field(value, 'url')}")
        element = _str_field(value, "activeElement")
        if element:
            print(f"el:    {element}")
    return value


def page_text(client: Client, opts: CliOpts, target: Target, frame_index: int | None = None) -> Any:
    """Print the visible text of a page."""
    params = _with_frame(page_target(target), frame_index)
    value = client.call_raw(Method.PAGE_TEXT, params)
    if opts.json:
        print_json(value)
    else:
        print(_str_field(value, "text"))
    return value


def page_source(client: Client, opts: CliOpts, target: Target) -> Any:
    """Print the HTML source of a page."""
    value = client.call_raw(Method.PAGE_SOURCE, page_target(target))
    if opts.json:
        print_json(value)
    else:
        html = value.get("html") if isinstance(value, dict) else None
        print(html if isinstance(html, str) else _pretty(value))
    return value


def page_snapshot(
    client: Client, opts: CliOpts, target: Target, limit: int = 50, frame_index: int | None = None
) -> Any:
    """Print a compact list of visible interactive elements."""
    params = page_target(target)
    params["limit"] = limit
    _with_frame(params, frame_index)
    value = client.call_raw(Method.PAGE_SNAPSHOT, params)
    print_json(value)
    return value


def format_frames(value: Any) -> str | None:
    """Render the frame list of a PageFrames answer, or None when it has none."""
    frames = value.get("frames") if isinstance(value, dict) else None
    if not isinstance(frames, list):
        return None
    lines = [f"{'Index':<6} {'FrameId':<8} URL", f"{'-----':<6} {'-------':<8} ---"]
    for frame in frames:
        lines.append(
            f"{_uint_field(frame, 'index'):<6} {_uint_field(frame, 'frameId'):<8} "
            f"{_str_field(frame, 'url')}"
        )
    return "\n".join(lines)


def page_frames(client: Client, opts: CliOpts, target: Target) -> Any:
    """List the main frame and iframes of a page."""
    value = client.call_raw(Method.PAGE_FRAMES, page_target(target))
    if opts.json:
        print_json(value)
    else:
        table = format_frames(value)
        if table is not None:
            print(table)
    return value


def click(
    client: Client,
    opts: CliOpts,
    selector: str | None,
    target: Target,
    frame_index: int | None = None,
    nth: int | None = None,
    ref: str | None = None,
) -> Any:
    """Click an element by CSS selector or snapshot ref."""
    params = page_target(target)
    if selector is not None:
        params["selector"] = selector
    if ref is not None:
        params["ref"] = ref
    if "selector" not in params and "ref" not in params:
        raise ZenctlError("selector or --ref required")
    _with_frame(params, frame_index)
    if nth is not None:
        params["nth"] = nth
    value = client.call_raw(Method.PAGE_CLICK, params)
    print(short_summary(value, ["clicked", "selector", "text"]))
    return value


def type_text(
    client: Client,
    opts: CliOpts,
    selector: str,
    text: str,
    target: Target,
    submit: bool = False,
    frame_index: int | None = None,
    nth: int | None = None,
) -> Any:
    """Type text into an element found by CSS selector."""
    params = page_target(target)
    params["selector"] = selector
    params["text"] = text
    params["submit"] = submit
    _with_frame(params, frame_index)
    if nth is not None:
        params["nth"] = nth
    value = client.call_raw(Method.PAGE_TYPE, params)
    print(short_summary(value, ["typed", "selector", "submitted"]))
    return value


def type_ref(
    client: Client, opts: CliOpts, ref: str, text: str, target: Target, submit: bool = False
) -> Any:
    """Type text into an element by snapshot ref."""
    params = page_target(target)
    params["ref"] = ref
    params["text"] = text
    params["submit"] = submit
    value = client.call_raw(Method.PAGE_TYPE, params)
    print(short_summary(value, ["typed", "selector", "submitted"]))
    return value


def send_key(
    client: Client, opts: CliOpts, key: str, target: Target, frame_index: int | None = None
) -> Any:
    """Send a keyboard key to a page."""
    params = page_target(target)
    params["key"] = key
    _with_frame(params, frame_index)
    value = client.call_raw(Method.PAGE_KEY, params)
    print(short_summary(value, ["key", "sent"]))
    return value


def wait_for(
    client: Client,
    opts: CliOpts,
    selector: str,
    target: Target,
    wait_timeout: int = 5000,
    frame_index: int | None = None,
    text: str | None = None,
    nth: int | None = None,
) -> Any:
    """Wait until a selector, or text, appears on a page."""
    params = page_target(target)
    if selector:
        params["selector"] = selector
    params["timeout"] = wait_timeout
    _with_frame(params, frame_index)
    if text is not None:
        params["wait_text"] = text
    if nth is not None:
        params["nth"] = nth
    value = client.call_raw(Method.PAGE_WAIT, params)
    print(short_summary(value, ["found", "selector", "text", "elapsed_ms"]))
    return value


def eval_code(
    client: Client,
    opts: CliOpts,
    code: str,
    target: Target,
    timeout: int | None = None,
    frame_index: int | None = None,
) -> Any:
    """Evaluate JavaScript in a page; ``timeout`` defaults to the global one."""
    params = page_target(target)
    params["code"] = code
    _with_frame(params, frame_index)
    secs = timeout if timeout is not None else opts.timeout
    value = client.call_raw_timed(Method.PAGE_EVAL, params, secs)
    print_json(value)
    return value


def run_script(
    client: Client,
    opts: CliOpts,
    file: str | Path,
    target: Target,
    timeout: int = 60,
    frame_index: int | None = None,
) -> Any:
    """Evaluate the contents of a JavaScript file in a page."""
    path = Path(file)
    try:
        code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ZenctlError(f"cannot read {path}: {exc}") from exc
    params = page_target(target)
    params["code"] = code
    _with_frame(params, frame_index)
    value = client.call_raw_timed(Method.PAGE_EVAL, params, timeout)
    print_json(value)
    return value


def find_text(
    client: Client,
    opts: CliOpts,
    query: str,
    target: Target,
    case_sensitive: bool = False,
    entire_word: bool = False,
) -> Any:
    """Find and highlight text in a page."""
    params = page_target(target)
    params["query"] = query
    params["case_sensitive"] = case_sensitive
    params["entire_word"] = entire_word
    value = client.call_raw(Method.FIND_IN_PAGE, params)
    emit(opts, value, ["query", "count"])
    return value


def find_clear(client: Client, opts: CliOpts) -> Any:
    """Clear find highlights."""
    value = client.call_raw(Method.FIND_CLEAR, {})
    print(short_summary(value, ["cleared"]))
    return value


def format_engines(value: Any) -> str:
    """Render installed search engines, one per line, the default marked with ``*``."""
    engines = value.get("engines") if isinstance(value, dict) else value
    if not isinstance(engines, list):
        return _pretty(value)
    if not engines:
        return "no search engines"
    lines = []
    for engine in engines:
        if isinstance(engine, str):
            lines.append(f"  {engine}")
            continue
        if not isinstance(engine, dict):
            continue
        marker = "*" if engine.get("isDefault") is True or engine.get("default") is True else " "
        lines.append(f"{marker} {_str_field(engine, 'name')}")
    return "\n".join(lines)


def search_engines(client: Client, opts: CliOpts) -> Any:
    """List installed search engines."""
    value = client.call_raw(Method.SEARCH_LIST, {})
    if opts.json:
        print_json(value)
    else:
        print(format_engines(value))
    return value


def search_query(
    client: Client, opts: CliOpts, query: str, engine: str | None, target: Target
) -> Any:
    """Run a search query in a tab."""
    params = page_target(target)
    params["query"] = query
    if engine is not None:
        params["engine"] = engine
    value = client.call_raw(Method.SEARCH_QUERY, params)
    emit(opts, value, ["query", "engine"])
    return value


def format_media(value: Any) -> str:
    """Render a media response as a status line, or indented JSON without a state."""
    state = value.get("state") if isinstance(value, dict) else None
    if not isinstance(state, str):
        return _pretty(value)
    title = _str_field(value, "title")
    artist = _str_field(value, "artist")
    if not title:
        return f"state: {state}"
    if not artist:
        return f"{state}: {title}"
    return f"{state}: {title} — {artist}"


def media(client: Client, opts: CliOpts, action: str, target: Target) -> Any:
    """Run a media action (status, play, pause, toggle, next, previous)."""
    try:
        method = _MEDIA_METHODS[action]
    except KeyError:
        raise ZenctlError(f"unknown media action: {action}") from None
    value = client.call_raw(method, page_target(target))
    if opts.json:
        print_json(value)
    else:
        print(format_media(value))
    return value


def _with_target(actions: Any, name: str, help_text: str) -> argparse.ArgumentParser:
    parser = actions.add_parser(name, help=help_text)
    add_target_arguments(parser)
    return parser


def _add_frame(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--frame-index", dest="frame_index", type=int,
                        help="Target a specific sub-frame by index.")


def _add_nth(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--nth", type=int,
                        help="Use the Nth match of the selector (1-based, default 1).")


def _add_page_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("page", help="Inspect and interact with the active web page.")
    parser.set_defaults(page_group="page")
    actions = parser.add_subparsers(dest="page_action", required=True)

    _with_target(actions, "info", "Return title, URL, active element, and ready state.")
    text = _with_target(actions, "text", "Return visible page text.")
    _add_frame(text)
    _with_target(actions, "source", "Return the full HTML source of the page.")
    snap = _with_target(actions, "snapshot",
                        "Return a compact list of visible interactive elements.")
    snap.add_argument("--limit", type=int, default=50)
    _add_frame(snap)
    _with_target(actions, "frames", "List all frames (main + iframes) with their URLs and indices.")

    click_parser = _with_target(actions, "click",
                                "Click an element by CSS selector or by a ref from `page snapshot`.")
    click_parser.add_argument("selector", nargs="?")
    _add_frame(click_parser)
    _add_nth(click_parser)
    click_parser.add_argument("--ref", help="Element ref from `page snapshot` (e.g. f0:e2).")

    type_parser = _with_target(actions, "type", "Type text into an element by CSS selector.")
    type_parser.add_argument("selector")
    type_parser.add_argument("text")
    type_parser.add_argument("--submit", action="store_true")
    _add_frame(type_parser)
    _add_nth(type_parser)

    ref_parser = _with_target(actions, "type-ref",
                              "Type text into an element ref from `page snapshot`.")
    ref_parser.add_argument("ref")
    ref_parser.add_argument("text")
    ref_parser.add_argument("--submit", action="store_true")

    key_parser = _with_target(actions, "key", "Send a keyboard key to the page.")
    key_parser.add_argument("key")
    _add_frame(key_parser)

    wait_parser = _with_target(actions, "wait",
                               "Wait until a CSS selector appears (or text appears on page).")
    wait_parser.add_argument("selector", nargs="?", default="")
    wait_parser.add_argument("--wait-timeout", dest="wait_timeout", type=int, default=5000,
                             help="Timeout in milliseconds (default: 5000).")
    _add_frame(wait_parser)
    wait_parser.add_argument("--text", dest="wait_text",
                             help="Wait for this text to appear.")
    _add_nth(wait_parser)

    eval_parser = _with_target(actions, "eval", "Run JavaScript in the page.")
    eval_parser.add_argument("code")
    eval_parser.add_argument("--timeout", dest="eval_timeout", type=int,
                             help="Timeout in seconds. Overrides the global --timeout.")
    _add_frame(eval_parser)

    script_parser = _with_target(actions, "script", "Run a JavaScript file in the page.")
    script_parser.add_argument("file", type=Path)
    script_parser.add_argument("--timeout", dest="script_timeout", type=int, default=60,
                               help="Timeout in seconds (default: 60).")
    _add_frame(script_parser)


def _add_find_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser(
        "find", help="Find text in a page.", epilog=_FIND_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(page_group="find")
    actions = parser.add_subparsers(dest="find_action", required=True)
    text = _with_target(actions, "text", "Find text in a page and highlight matches.")
    text.add_argument("query")
    text.add_argument("--case-sensitive", dest="case_sensitive", action="store_true",
                      help="Match case exactly.")
    text.add_argument("--entire-word", dest="entire_word", action="store_true",
                      help="Match whole words only.")
    actions.add_parser("clear", help="Clear find highlights.")


def _add_search_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser(
        "search", help="Search engine operations.", epilog=_SEARCH_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(page_group="search")
    actions = parser.add_subparsers(dest="search_action", required=True)
    actions.add_parser("engines", help="List installed search engines.")
    query = _with_target(actions, "query", "Run a search query (loads results in a tab).")
    query.add_argument("query")
    query.add_argument("--engine", help="Search engine name (defaults to the browser default).")


def _add_media_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("media", help="Control media in the active/selected web page.")
    parser.set_defaults(page_group="media")
    actions = parser.add_subparsers(dest="media_action", required=True)
    helps = {
        "status": "Get media playback status.",
        "play": "Start or resume playback.",
        "pause": "Pause playback.",
        "toggle": "Toggle play/pause.",
        "next": "Skip to next track.",
        "previous": "Skip to previous track.",
    }
    for name, help_text in helps.items():
        _with_target(actions, name, help_text)


def add_parsers(subparsers: Any) -> None:
    """Register the ``page``, ``find``, ``search`` and ``media`` commands."""
    _add_page_parser(subparsers)
    _add_find_parser(subparsers)
    _add_search_parser(subparsers)
    _add_media_parser(subparsers)


def _run_page(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    action = args.page_action
    target = target_from_args(args)
    if action == "info":
        return page_info(client, opts, target)
    if action == "text":
        return page_text(client, opts, target, args.frame_index)
    if action == "source":
        return page_source(client, opts, target)
    if action == "snapshot":
        return page_snapshot(client, opts, target, args.limit, args.frame_index)
    if action == "frames":
        return page_frames(client, opts, target)
    if action == "click":
        return click(client, opts, args.selector, target, args.frame_index, args.nth, args.ref)
    if action == "type":
        return type_text(client, opts, args.selector, args.text, target, args.submit,
                         args.frame_index, args.nth)
    if action == "type-ref":
        return type_ref(client, opts, args.ref, args.text, target, args.submit)
    if action == "key":
        return send_key(client, opts, args.key, target, args.frame_index)
    if action == "wait":
        return wait_for(client, opts, args.selector, target, args.wait_timeout,
                        args.frame_index, args.wait_text, args.nth)
    if action == "eval":
        return eval_code(client, opts, args.code, target, args.eval_timeout, args.frame_index)
    if action == "script":
        return run_script(client, opts, args.file, target, args.script_timeout,
                          args.frame_index)
    raise ZenctlError(f"unknown page action: {action}")


def run(client: Client, opts: CliOpts, args: argparse.Namespace) -> Any:
    """Run a parsed ``page``, ``find``, ``search`` or ``media`` command."""
    group = getattr(args, "page_group", None)
    if group == "page":
        return _run_page(client, opts, args)
    if group == "find":
        if args.find_action == "clear":
            return find_clear(client, opts)
        return find_text(client, opts, args.query, target_from_args(args),
                         args.case_sensitive, args.entire_word)
    if group == "search":
        if args.search_action == "engines":
            return search_engines(client, opts)
        return search_query(client, opts, args.query, args.engine, target_from_args(args))
    if group == "media":
        return media(client, opts, args.media_action, target_from_args(args))
    raise ZenctlError(f"unknown command group: {group}")