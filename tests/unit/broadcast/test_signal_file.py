"""Tests for the signal-file broadcaster and its listener."""

import json
import os
from unittest.mock import MagicMock

import psutil
import pytest

from envar.broadcast.signal_file import ChangeListener, SignalFileBroadcaster
from envar.errors import BroadcastError, BroadcastTimeoutError


class FakeClock:
    """Monotonic clock that only advances when the broadcaster sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = 0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps += 1
        self.now += seconds


@pytest.fixture
def signal_dir(tmp_path):
    return tmp_path / "signals"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def broadcaster(signal_dir, clock) -> SignalFileBroadcaster:
    return SignalFileBroadcaster(
        timeout_ms=500,
        signal_dir=signal_dir,
        poll_interval_ms=100,
        clock=clock,
        sleep=clock.sleep,
    )


def _set_listener_status(monkeypatch, status=None, error=None):
    process = MagicMock()
    if error is not None:
        process.status.side_effect = error
    else:
        process.status.return_value = status
    monkeypatch.setattr(
        "envar.broadcast.signal_file.psutil.Process", lambda pid: process
    )


class TestSignalFileBroadcaster:
    """Test publishing changes and waiting for listeners."""

    def test_no_listeners_succeeds(self, broadcaster, signal_dir, clock):
        """Test that a broadcast with nobody listening returns at once."""
        broadcaster.notify_change()

        payload = json.loads((signal_dir / "Environment.changed").read_text())
        assert payload["category"] == "Environment"
        assert payload["pid"] == os.getpid()
        assert payload["token"]
        assert clock.sleeps == 0

    def test_each_broadcast_uses_a_new_token(self, broadcaster):
        """Test that tokens are never reused."""
        broadcaster.notify_change()
        first = json.loads(broadcaster.change_file.read_text())["token"]
        broadcaster.notify_change()
        second = json.loads(broadcaster.change_file.read_text())["token"]

        assert first != second

    def test_listener_acknowledges(self, signal_dir, clock):
        """Test a listener that picks the change up while we wait."""
        listener = ChangeListener("shell", signal_dir=signal_dir)
        listener.register()

        def sleep(seconds):
            clock.sleep(seconds)
            listener.poll()

        broadcaster = SignalFileBroadcaster(
            timeout_ms=500, signal_dir=signal_dir, clock=clock, sleep=sleep
        )
        broadcaster.notify_change()

        assert clock.sleeps == 1
        token = json.loads(broadcaster.change_file.read_text())["token"]
        assert listener.ack_file.read_text() == token

    def test_silent_listener_times_out(self, broadcaster, signal_dir, clock):
        """Test that a live listener that never acks is reported."""
        ChangeListener("slow-shell", signal_dir=signal_dir).register()

        with pytest.raises(BroadcastTimeoutError) as exc_info:
            broadcaster.notify_change()

        assert exc_info.value.pending == ["slow-shell"]
        assert "500 ms" in exc_info.value.message
        assert clock.now >= 0.5

    def test_dead_listener_is_pruned(self, broadcaster, signal_dir, monkeypatch):
        """Test that listeners whose process exited are removed."""
        listener = ChangeListener("gone", signal_dir=signal_dir, pid=123456)
        listener.register()
        _set_listener_status(monkeypatch, error=psutil.NoSuchProcess(123456))

        broadcaster.notify_change()

        assert not listener.registration_file.exists()

    @pytest.mark.parametrize("status", [psutil.STATUS_STOPPED, psutil.STATUS_ZOMBIE])
    def test_hung_listener_is_skipped(
        self, broadcaster, signal_dir, monkeypatch, status
    ):
        """Test that stopped or zombie listeners are not waited on."""
        listener = ChangeListener("stopped", signal_dir=signal_dir, pid=4242)
        listener.register()
        _set_listener_status(monkeypatch, status=status)

        broadcaster.notify_change()

        assert listener.registration_file.exists()

    def test_other_category_is_ignored(self, broadcaster, signal_dir):
        """Test that listeners for another category are not waited on."""
        ChangeListener("policy", signal_dir=signal_dir, category="Policy").register()

        broadcaster.notify_change()

    def test_malformed_registration_is_ignored(self, broadcaster):
        """Test that unreadable registrations do not block a broadcast."""
        broadcaster.listeners_dir.mkdir(parents=True)
        (broadcaster.listeners_dir / "broken.json").write_text("{not json")

        broadcaster.notify_change()

    def test_unwritable_signal_dir(self, tmp_path):
        """Test that filesystem errors become broadcast errors."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        broadcaster = SignalFileBroadcaster(signal_dir=blocker / "signals")

        with pytest.raises(BroadcastError):
            broadcaster.notify_change()


class TestChangeListener:
    """Test the listener side of the convention."""

    def test_register_ignores_earlier_changes(self, broadcaster, signal_dir):
        """Test that a change published before registration is not reported."""
        broadcaster.notify_change()

        listener = ChangeListener("late", signal_dir=signal_dir)
        listener.register()

        assert listener.poll() is None

    def test_poll_reports_each_change_once(self, broadcaster, signal_dir):
        """Test that poll acknowledges what it reports."""
        listener = ChangeListener("shell", signal_dir=signal_dir)
        listener.register()
        assert listener.poll() is None

        broadcaster.timeout_ms = 1
        with pytest.raises(BroadcastTimeoutError):
            broadcaster.notify_change()

        token = listener.poll()
        assert token is not None
        assert listener.ack_file.read_text() == token
        assert listener.poll() is None

    @pytest.mark.parametrize("content", ["[]", '"token"', "{not json"])
    def test_malformed_change_file_is_ignored(self, signal_dir, content):
        """Test that a change file that is not a JSON object reports nothing."""
        listener = ChangeListener("shell", signal_dir=signal_dir)
        listener.register()
        listener.change_file.write_text(content)

        assert listener.poll() is None
        assert not listener.ack_file.exists()

    def test_registration_contents(self, signal_dir):
        """Test the registration file format."""
        listener = ChangeListener("shell", signal_dir=signal_dir, pid=99)
        listener.register()

        data = json.loads(listener.registration_file.read_text())
        assert data == {"pid": 99, "category": "Environment"}

    def test_context_manager_unregisters(self, signal_dir):
        """Test that leaving the context removes the listener files."""
        with ChangeListener("shell", signal_dir=signal_dir) as listener:
            listener.acknowledge("abc")
            assert listener.registration_file.exists()
            assert listener.ack_file.exists()

        assert not listener.registration_file.exists()
        assert not listener.ack_file.exists()
