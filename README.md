# zenctl

`zenctl` is a Python library for driving a running Zen Browser. It talks to
the browser's native messaging host over a unix socket and offers functions
for tabs, pages, find-in-page, search engines, media, pinned-tab folders,
essentials, glance, compact mode, split views, sessions, checkpoints,
keyboard shortcuts, clearing browsing data, host status and a state snapshot.

## Requirements

- Python 3.10 or later, no third-party dependencies.
- Zen Browser running with the zenctl extension loaded, and its native host
  listening on a unix socket.

`zenctl.client.socket_path()` looks for the socket in this order:

1. `$ZENCTL_SOCKET`
2. `$TMPDIR/zenctl.sock`
3. `/tmp/zenctl.sock`
4. `/var/folders/*/*/T/zenctl.sock` (macOS)

## Installation

```
pip install .
```

## Talking to the host

`Client.connect()` opens one connection; `call_raw(method, params)` sends a
request and returns the response data. Frames are a 4-byte native-endian
length followed by JSON (`encode_frame`, `read_frame`).

```python
from zenctl.client import Client, Method

with Client.connect() as client:
    tabs = client.call_raw(Method.TABS_LIST, {})
```

`call_raw_timed` passes a custom timeout to the host. `status()`,
`capabilities()` and `compact_toggle()` are shortcuts for those methods.
`start_watch(topics)` followed by `recv_event()` reads streamed events.

Errors returned by the host are raised as `HostError`; every other failure
(no socket, bad response, a refused destructive action) raises `ZenctlError`.

## Command functions

Each module holds plain functions that take a `Client`, a `CliOpts` and the
command's arguments, print their result and return the host's answer:

- `zenctl.tabs` — `list_tabs`, `open_tab`, `close_tab`, `move`, `reload`,
  `set_muted`, `set_pinned`, `screenshot`, `zoom`, `detach`, `group`, …
- `zenctl.page` — `page_info`, `page_text`, `click`, `type_text`,
  `wait_for`, `eval_code`, `run_script`, `find_text`, `search_query`, `media`, …
- `zenctl.zen` — folders, essentials, glance and compact mode.
- `zenctl.split` — `create_split`, `list_splits`, `resize`, `rearrange`, …
- `zenctl.session` — sessionstore listing and backup, closed tabs/windows,
  checkpoints, shortcuts.
- `zenctl.data` — `clear` and `parse_duration_ms` (`"30m"`, `"2h"`, `"7d"`).
- `zenctl.info` — `show_status`, `show_capabilities`, `snapshot`, `share`.

```python
from zenctl.client import Client
from zenctl.common import CliOpts, Target
from zenctl import tabs, page

opts = CliOpts(json=False, force=True)
with Client.connect() as client:
    page.page_info(client, opts, Target(url_contains="wikipedia"))
    tabs.close_tab(client, opts, 123, Target())
```

`CliOpts` carries `json` (print indented JSON), `dry_run`, `force` and
`timeout` (the default seconds for `eval_code`). Destructive functions call
`confirm`: with `dry_run` they print what they would do, and without `force`
they raise `ZenctlError`. `Target` selects a tab by id, window, index, URL or
title substring, `active`, or workspace.

## Building a command line

The modules also provide argparse pieces: `add_parser` / `add_parsers`
register subcommands and `run(client, opts, args)` executes a parsed one.

```python
import argparse
from zenctl.client import Client
from zenctl.common import CliOpts
from zenctl import tabs

parser = argparse.ArgumentParser(prog="tabs-tool")
tabs.add_parser(parser.add_subparsers(dest="command", required=True))
args = parser.parse_args(["tabs", "list", "--current-window"])
with Client.connect() as client:
    tabs.run(client, CliOpts(), args)
```

## What this package does not do

- It installs no `zenctl` command; there is no ready-made top-level parser
  or `main`. Compose one from the `add_parser(s)` and `run` functions above.
- It has no functions for live folders, boosts, bookmarks, containers,
  cookies, downloads, history, mods, preferences, windows, workspaces or
  themes beyond the protocol names listed in `Method`, which can still be
  sent with `call_raw`.
- It does not register the native host or install the browser extension.

## Running the tests

```
pip install .[test]
pytest
```