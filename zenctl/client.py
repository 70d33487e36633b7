"""Unix-socket client that talks to the zenctl native messaging host.

Each invocation makes one connection, sends a request and reads the
response. Frames are a 4-byte native-endian length prefix followed by a
JSON document.
"""

from __future__ import annotations

import json
import os
import socket
import struct
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

SOCKET_NAME = "zenctl.sock"
STABLE_SOCKET = Path("/tmp") / SOCKET_NAME
_VAR_FOLDERS = Path("/var/folders")
_LENGTH = struct.Struct("=I")


class Method(str, Enum):
    """Protocol methods understood by the host."""

    STATUS = "Status"
    CAPABILITIES = "Capabilities"
    WATCH = "Watch"
    COMPACT_TOGGLE = "CompactToggle"
    COMPACT_SET = "CompactSet"
    COMPACT_HIDE = "CompactHide"
    BOOKMARKS_LIST = "BookmarksList"
    BOOKMARKS_CREATE = "BookmarksCreate"
    BOOKMARKS_UPDATE = "BookmarksUpdate"
    BOOKMARKS_REMOVE = "BookmarksRemove"
    BOOKMARKS_MOVE = "BookmarksMove"
    BOOKMARKS_SEARCH = "BookmarksSearch"
    BOOSTS_LIST = "BoostsList"
    BOOSTS_CREATE = "BoostsCreate"
    BOOSTS_DELETE = "BoostsDelete"
    BOOSTS_ACTIVATE = "BoostsActivate"
    BOOSTS_TOGGLE = "BoostsToggle"
    BOOSTS_UPDATE = "BoostsUpdate"
    SESSION_BACKUP = "SessionBackup"
    SESSION_LIST = "SessionList"
    SESSIONS_CLOSED = "SessionsClosed"
    SESSIONS_RESTORE = "SessionsRestore"
    SESSION_RESTORE_WINDOW = "SessionRestoreWindow"
    SESSION_RESTORE_TAB = "SessionRestoreTab"
    CONTAINERS_LIST = "ContainersList"
    CONTAINERS_CREATE = "ContainersCreate"
    CONTAINERS_UPDATE = "ContainersUpdate"
    CONTAINERS_REMOVE = "ContainersRemove"
    COOKIES_GET = "CookiesGet"
    COOKIES_SET = "CookiesSet"
    COOKIES_REMOVE = "CookiesRemove"
    DATA_CLEAR = "DataClear"
    DOWNLOADS_LIST = "DownloadsList"
    DOWNLOADS_CANCEL = "DownloadsCancel"
    DOWNLOADS_START = "DownloadsStart"
    DOWNLOADS_PAUSE = "DownloadsPause"
    DOWNLOADS_RESUME = "DownloadsResume"
    ESSENTIALS_LIST = "EssentialsList"
    ESSENTIALS_ADD = "EssentialsAdd"
    ESSENTIALS_REMOVE = "EssentialsRemove"
    ESSENTIALS_RESET = "EssentialsReset"
    ESSENTIALS_REPLACE_URL = "EssentialsReplaceUrl"
    EXT_RELOAD = "ExtReload"
    EXT_DEBUG = "ExtDebug"
    FIND_IN_PAGE = "FindInPage"
    FIND_CLEAR = "FindClear"
    FOLDERS_LIST = "FoldersList"
    FOLDERS_CREATE = "FoldersCreate"
    FOLDERS_DELETE = "FoldersDelete"
    FOLDERS_RENAME = "FoldersRename"
    FOLDERS_COLLAPSE = "FoldersCollapse"
    FOLDERS_ADD_TAB = "FoldersAddTab"
    FOLDERS_SET_ICON = "FoldersSetIcon"
    FOLDERS_CREATE_SUBFOLDER = "FoldersCreateSubfolder"
    FOLDERS_UNPACK = "FoldersUnpack"
    FOLDERS_UNLOAD = "FoldersUnload"
    FOLDERS_MOVE_TO_WORKSPACE = "FoldersMoveToWorkspace"
    FOLDERS_CONVERT_TO_WORKSPACE = "FoldersConvertToWorkspace"
    GLANCE_LIST = "GlanceList"
    GLANCE_CLOSE_ALL = "GlanceCloseAll"
    GLANCE_CLOSE = "GlanceClose"
    GLANCE_EXPAND = "GlanceExpand"
    GLANCE_OPEN = "GlanceOpen"
    HISTORY_SEARCH = "HistorySearch"
    HISTORY_DELETE = "HistoryDelete"
    HISTORY_ADD = "HistoryAdd"
    HISTORY_GET_VISITS = "HistoryGetVisits"
    LIVE_FOLDERS_LIST = "LiveFoldersList"
    LIVE_FOLDERS_CREATE = "LiveFoldersCreate"
    LIVE_FOLDERS_DELETE = "LiveFoldersDelete"
    LIVE_FOLDERS_REFRESH = "LiveFoldersRefresh"
    LIVE_FOLDERS_PAUSE = "LiveFoldersPause"
    LIVE_FOLDERS_RESUME = "LiveFoldersResume"
    MEDIA_STATUS = "MediaStatus"
    MEDIA_PLAY = "MediaPlay"
    MEDIA_PAUSE = "MediaPause"
    MEDIA_TOGGLE = "MediaToggle"
    MEDIA_NEXT = "MediaNext"
    MEDIA_PREVIOUS = "MediaPrevious"
    MODS_LIST = "ModsList"
    MODS_INSTALL = "ModsInstall"
    MODS_REMOVE = "ModsRemove"
    MODS_ENABLE = "ModsEnable"
    MODS_DISABLE = "ModsDisable"
    MODS_PREFERENCES = "ModsPreferences"
    MODS_SET_PREFERENCE = "ModsSetPreference"
    PAGE_INFO = "PageInfo"
    PAGE_TEXT = "PageText"
    PAGE_SOURCE = "PageSource"
    PAGE_SNAPSHOT = "PageSnapshot"
    PAGE_FRAMES = "PageFrames"
    PAGE_CLICK = "PageClick"
    PAGE_TYPE = "PageType"
    PAGE_KEY = "PageKey"
    PAGE_WAIT = "PageWait"
    PAGE_EVAL = "PageEval"
    PREFS_GET = "PrefsGet"
    PREFS_SET = "PrefsSet"
    PREFS_CLEAR = "PrefsClear"
    PREFS_LIST = "PrefsList"
    SEARCH_LIST = "SearchList"
    SEARCH_QUERY = "SearchQuery"
    SHARE = "Share"
    SHARE_CAN = "ShareCan"
    SHORTCUTS_READ = "ShortcutsRead"
    SHORTCUTS_WRITE = "ShortcutsWrite"
    SHORTCUTS_RESET = "ShortcutsReset"
    SPLIT_VIEW_LIST = "SplitViewList"
    SPLIT_VIEW_CREATE = "SplitViewCreate"
    SPLIT_UNSPLIT = "SplitUnsplit"
    SPLIT_VIEW_ADD_TAB = "SplitViewAddTab"
    SPLIT_VIEW_SET_LAYOUT = "SplitViewSetLayout"
    SPLIT_VIEW_RESIZE = "SplitViewResize"
    SPLIT_VIEW_REARRANGE = "SplitViewRearrange"
    TABS_LIST = "TabsList"
    TABS_FIND = "TabsFind"
    TABS_OPEN = "TabsOpen"
    TABS_CLOSE = "TabsClose"
    TABS_ACTIVATE = "TabsActivate"
    TABS_MOVE = "TabsMove"
    TABS_RELOAD = "TabsReload"
    TABS_DUPLICATE = "TabsDuplicate"
    TABS_DISCARD = "TabsDiscard"
    TABS_SET_MUTED = "TabsSetMuted"
    TABS_SET_PINNED = "TabsSetPinned"
    TABS_SCREENSHOT = "TabsScreenshot"
    TABS_ZOOM = "TabsZoom"
    TABS_READER = "TabsReader"
    TABS_GO_BACK = "TabsGoBack"
    TABS_GO_FORWARD = "TabsGoForward"
    TAB_DETACH = "TabDetach"
    TAB_GROUP = "TabGroup"
    TAB_UNGROUP = "TabUngroup"
    WINDOWS_LIST = "WindowsList"
    WORKSPACE_LIST = "WorkspaceList"


class ZenctlError(Exception):
    """A command could not be carried out."""


class HostError(ZenctlError):
    """The host answered a request with an error."""


def socket_path() -> Path:
    """Return the path of the unix socket the host listens on.

    Order: ``$ZENCTL_SOCKET``, ``$TMPDIR/zenctl.sock``, ``/tmp/zenctl.sock``,
    then any ``/var/folders/*/*/T/zenctl.sock``. When nothing exists the
    ``$TMPDIR`` path is returned so that connecting reports a clear error.
    """
    override = os.environ.get("ZENCTL_SOCKET")
    if override is not None:
        return Path(override)
    primary = Path(os.environ.get("TMPDIR") or "/tmp") / SOCKET_NAME
    if primary.exists():
        return primary
    if STABLE_SOCKET.exists():
        return STABLE_SOCKET
    found = _scan_var_folders()
    return found if found is not None else primary


def _scan_var_folders() -> Path | None:
    try:
        outer = list(_VAR_FOLDERS.iterdir())
    except OSError:
        return None
    for a_entry in outer:
        try:
            inner = list(a_entry.iterdir())
        except OSError:
            continue
        for b_entry in inner:
            candidate = b_entry / "T" / SOCKET_NAME
            if candidate.exists():
                return candidate
    return None


def encode_frame(payload: Any) -> bytes:
    """Serialise ``payload`` as JSON behind a native-endian length prefix."""
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return _LENGTH.pack(len(body)) + body


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        if not chunk:
            raise ConnectionError("connection closed by host")
        buf.extend(chunk)
    return bytes(buf)


def read_frame(sock: socket.socket) -> Any:
    """Read one length-prefixed JSON frame from ``sock``."""
    (length,) = _LENGTH.unpack(_recv_exact(sock, _LENGTH.size))
    return json.loads(_recv_exact(sock, length))


def _error_message(error: Any) -> str:
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str):
            return message
        if len(error) == 1:
            (inner,) = error.values()
            if isinstance(inner, (dict, str)):
                return _error_message(inner)
    return json.dumps(error)


class Client:
    """One connection to the host."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._next_id = 1

    @classmethod
    def connect(cls) -> "Client":
        """Connect to the host socket found by :func:`socket_path`."""
        path = socket_path()
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(path))
        except OSError as exc:
            sock.close()
            raise ZenctlError(
                f"Could not connect to zenctl host at {path}: {exc}\n"
                "Make sure Zen Browser is running with the zenctl extension loaded.\n"
                "If this is your first time, run `zenctl install` first."
            ) from exc
        return cls(sock)

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def status(self) -> dict:
        data = self._call(Method.STATUS, None, None)
        if not isinstance(data, dict):
            raise ZenctlError("malformed status response")
        return data

    def capabilities(self) -> list:
        data = self._call(Method.CAPABILITIES, None, None)
        if not isinstance(data, list):
            raise ZenctlError("malformed capabilities response")
        return data

    def compact_toggle(self) -> dict:
        data = self._call(Method.COMPACT_TOGGLE, None, None)
        if not isinstance(data, dict):
            raise ZenctlError("malformed compact toggle response")
        return data

    def call_raw(self, method: Method | str, params: Any) -> Any:
        """Send a request and return the response data."""
        return self._call(method, params, None)

    def call_raw_timed(self, method: Method | str, params: Any, timeout_secs: int) -> Any:
        """Like :meth:`call_raw` but asks the host for a custom timeout."""
        return self._call(method, params, timeout_secs)

    def start_watch(self, topics: Iterable[str]) -> None:
        """Send a Watch request; read events afterwards with :meth:`recv_event`."""
        self._send_request(Method.WATCH, {"topics": list(topics)}, None)

    def recv_event(self) -> Any:
        """Block until the next streamed event arrives and return it."""
        while True:
            frame = read_frame(self._sock)
            if isinstance(frame, dict) and "Event" in frame:
                return frame["Event"]

    def _send_request(self, method: Method | str, params: Any, timeout_secs: int | None) -> None:
        request_id = self._next_id
        self._next_id += 1
        frame = {
            "Request": {
                "id": request_id,
                "method": Method(method).value,
                "params": params,
                "timeout_secs": timeout_secs,
            }
        }
        self._sock.sendall(encode_frame(frame))

    def _call(self, method: Method | str, params: Any, timeout_secs: int | None) -> Any:
        self._send_request(method, params, timeout_secs)
        frame = read_frame(self._sock)
        response = frame.get("Response") if isinstance(frame, dict) else None
        if not isinstance(response, dict):
            raise ZenctlError("unexpected frame type in response")
        error = response.get("error")
        if error is not None:
            raise HostError(_error_message(error))
        return response.get("data")