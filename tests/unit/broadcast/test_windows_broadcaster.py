"""Tests for the WM_SETTINGCHANGE broadcaster with a fake SendMessageTimeout."""

import pytest

from envar.broadcast.windows import (
    ERROR_TIMEOUT,
    HWND_BROADCAST,
    SMTO_ABORTIFHUNG,
    WM_SETTINGCHANGE,
    WindowsBroadcaster,
)
from envar.errors import BroadcastError, BroadcastTimeoutError


class FakeSendMessage:
    """Record SendMessageTimeout calls and return a fixed outcome."""

    def __init__(self, result: int = 1, last_error: int = 0):
        self.result = result
        self.last_error = last_error
        self.calls = []

    def __call__(self, hwnd, msg, wparam, lparam, flags, timeout):
        self.calls.append((hwnd, msg, wparam, lparam, flags, timeout))
        return self.result, self.last_error


def test_broadcast_arguments():
    """Test the message sent to every top-level window."""
    send = FakeSendMessage()
    broadcaster = WindowsBroadcaster(timeout_ms=15000, send_message=send)

    broadcaster.notify_change()

    assert send.calls == [
        (HWND_BROADCAST, WM_SETTINGCHANGE, 0, "Environment", SMTO_ABORTIFHUNG, 15000)
    ]


def test_timeout():
    """Test that ERROR_TIMEOUT is reported as a timeout."""
    send = FakeSendMessage(result=0, last_error=ERROR_TIMEOUT)
    broadcaster = WindowsBroadcaster(timeout_ms=2000, send_message=send)

    with pytest.raises(BroadcastTimeoutError) as exc_info:
        broadcaster.notify_change()

    assert exc_info.value.timeout_ms == 2000


def test_other_failure_carries_code():
    """Test that any other failure keeps the OS error code."""
    send = FakeSendMessage(result=0, last_error=5)
    broadcaster = WindowsBroadcaster(send_message=send)

    with pytest.raises(BroadcastError) as exc_info:
        broadcaster.notify_change()

    assert exc_info.value.code == 5
    assert "error code 5" in exc_info.value.message
