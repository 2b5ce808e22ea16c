"""WM_SETTINGCHANGE broadcast for Windows desktops.

Top-level windows (Explorer, shells, editors) re-read their environment
block when they receive WM_SETTINGCHANGE with the "Environment" category.
"""

import ctypes
from typing import Callable, Optional, Tuple

from envar.broadcast.base import (
    DEFAULT_TIMEOUT_MS,
    ENVIRONMENT_CATEGORY,
    ChangeBroadcaster,
    register_broadcaster,
)
from envar.errors import BroadcastError, BroadcastTimeoutError
from envar.logging import get_logger

logger = get_logger(__name__)

HWND_BROADCAST = 0xFFFF
WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002
ERROR_TIMEOUT = 1460

# (hwnd, msg, wparam, lparam, flags, timeout) -> (result, last_error)
SendMessage = Callable[[int, int, int, str, int, int], Tuple[int, int]]


def _send_message_timeout(
    hwnd: int, msg: int, wparam: int, lparam: str, flags: int, timeout: int
) -> Tuple[int, int]:
    from ctypes import wintypes

    user32 = ctypes.WinDLL("user32", use_last_error=True)  # type: ignore
    send = user32.SendMessageTimeoutW
    send.argtypes = [
        wintypes.HWND,
        wintypes.UINT,
        wintypes.WPARAM,
        wintypes.LPCWSTR,
        wintypes.UINT,
        wintypes.UINT,
        ctypes.POINTER(ctypes.c_size_t),
    ]
    send.restype = ctypes.c_ssize_t

    response = ctypes.c_size_t()
    result = send(hwnd, msg, wparam, lparam, flags, timeout, ctypes.byref(response))
    return result, ctypes.get_last_error()  # type: ignore


@register_broadcaster("windows")
class WindowsBroadcaster(ChangeBroadcaster):
    """Send WM_SETTINGCHANGE to every top-level window.

    Hung windows are skipped (SMTO_ABORTIFHUNG) rather than waited on.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        category: str = ENVIRONMENT_CATEGORY,
        send_message: Optional[SendMessage] = None,
    ):
        super().__init__(timeout_ms, category)
        self._send_message = send_message or _send_message_timeout

    def notify_change(self) -> None:
        logger.debug(
            f"Broadcasting WM_SETTINGCHANGE '{self.category}' "
            f"(timeout {self.timeout_ms} ms)"
        )
        result, last_error = self._send_message(
            HWND_BROADCAST,
            WM_SETTINGCHANGE,
            0,
            self.category,
            SMTO_ABORTIFHUNG,
            self.timeout_ms,
        )

        if result != 0:
            logger.info("WM_SETTINGCHANGE broadcast acknowledged")
            return

        if last_error == ERROR_TIMEOUT:
            raise BroadcastTimeoutError(self.timeout_ms)

        detail = None
        if hasattr(ctypes, "FormatError"):
            detail = ctypes.FormatError(last_error).strip() or None
        raise BroadcastError(last_error, detail)
