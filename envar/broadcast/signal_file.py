"""Signal-file broadcast convention for hosts without a window system.

Layout of the signal directory::

    <signal_dir>/<category>.changed        latest change (JSON: category, token, ...)
    <signal_dir>/listeners/<name>.json     registration (JSON: pid, category)
    <signal_dir>/listeners/<name>.ack      last token the listener has handled

A broadcast writes a fresh token to the change file and then waits until
every registered listener has written that token to its ack file. Listeners
whose process is gone are pruned; stopped or zombie listeners count as hung
and are not waited on.
"""

import json
import os
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import psutil

from envar.broadcast.base import (
    DEFAULT_TIMEOUT_MS,
    ENVIRONMENT_CATEGORY,
    ChangeBroadcaster,
    register_broadcaster,
)
from envar.errors import BroadcastError, BroadcastTimeoutError
from envar.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SIGNAL_DIR = "~/.cache/envar/signals"
DEFAULT_POLL_INTERVAL_MS = 100
LISTENERS_DIR = "listeners"

HUNG_STATUSES = {
    psutil.STATUS_STOPPED,
    psutil.STATUS_TRACING_STOP,
    psutil.STATUS_ZOMBIE,
}


def _resolve_dir(signal_dir: Union[str, Path]) -> Path:
    return Path(os.path.expandvars(str(signal_dir))).expanduser()


def _atomic_write(path: Path, content: str) -> None:
    """Write content next to path and move it into place."""
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(content)
    os.replace(tmp_path, path)


def _read_token(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8").strip() or None
    except FileNotFoundError:
        return None


def _unlink(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


@register_broadcaster("signal_file")
class SignalFileBroadcaster(ChangeBroadcaster):
    """Publish a change token and wait for registered listeners to ack it."""

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        category: str = ENVIRONMENT_CATEGORY,
        signal_dir: Union[str, Path] = DEFAULT_SIGNAL_DIR,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(timeout_ms, category)
        self.signal_dir = _resolve_dir(signal_dir)
        self.poll_interval_ms = poll_interval_ms
        self._clock = clock
        self._sleep = sleep

    @property
    def change_file(self) -> Path:
        return self.signal_dir / f"{self.category}.changed"

    @property
    def listeners_dir(self) -> Path:
        return self.signal_dir / LISTENERS_DIR

    def notify_change(self) -> None:
        token = uuid.uuid4().hex
        try:
            self._publish(token)
            self._wait_for_listeners(token)
        except OSError as e:
            raise BroadcastError(e.errno or 0, e.strerror or str(e)) from e

    def _publish(self, token: str) -> None:
        self.signal_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "category": self.category,
            "token": token,
            "timestamp": time.time(),
            "pid": os.getpid(),
        }
        _atomic_write(self.change_file, json.dumps(payload))
        logger.debug(f"Published change token {token} to {self.change_file}")

    def _registered_listeners(self) -> Dict[str, int]:
        listeners: Dict[str, int] = {}
        if not self.listeners_dir.is_dir():
            return listeners

        for registration in sorted(self.listeners_dir.glob("*.json")):
            try:
                data: Any = json.loads(registration.read_text(encoding="utf-8"))
                pid = int(data["pid"])
                category = data.get("category", ENVIRONMENT_CATEGORY)
            except FileNotFoundError:
                continue
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Ignoring malformed listener file {registration}: {e}")
                continue
            if category == self.category:
                listeners[registration.stem] = pid
        return listeners

    def _prune(self, name: str) -> None:
        _unlink(self.listeners_dir / f"{name}.json")
        _unlink(self.listeners_dir / f"{name}.ack")

    def _is_responsive(self, name: str, pid: int) -> bool:
        try:
            status = psutil.Process(pid).status()
        except psutil.NoSuchProcess:
            logger.debug(f"Listener '{name}' (pid {pid}) is gone, pruning it")
            self._prune(name)
            return False
        except psutil.AccessDenied:
            return True

        if status in HUNG_STATUSES:
            logger.warning(f"Listener '{name}' (pid {pid}) is {status}, not waiting")
            return False
        return True

    def _acknowledged(self, name: str, token: str) -> bool:
        return _read_token(self.listeners_dir / f"{name}.ack") == token

    def _wait_for_listeners(self, token: str) -> None:
        deadline = self._clock() + self.timeout_ms / 1000.0
        pending = self._registered_listeners()
        logger.debug(f"Waiting on {len(pending)} listener(s)")

        while True:
            pending = {
                name: pid
                for name, pid in pending.items()
                if not self._acknowledged(name, token)
                and self._is_responsive(name, pid)
            }
            if not pending:
                logger.info(f"Change '{self.category}' acknowledged by all listeners")
                return
            if self._clock() >= deadline:
                raise BroadcastTimeoutError(self.timeout_ms, sorted(pending))
            self._sleep(self.poll_interval_ms / 1000.0)


class ChangeListener:
    """Listener side of the signal-file convention.

    A shell hook registers once, then calls ``poll`` (for example before
    each prompt); a non-None return means the persisted variables changed
    and should be re-read. ``poll`` acknowledges the change it reports.
    """

    def __init__(
        self,
        name: str,
        signal_dir: Union[str, Path] = DEFAULT_SIGNAL_DIR,
        category: str = ENVIRONMENT_CATEGORY,
        pid: Optional[int] = None,
    ):
        self.name = name
        self.signal_dir = _resolve_dir(signal_dir)
        self.category = category
        self.pid = pid if pid is not None else os.getpid()
        self._last_token: Optional[str] = None

    @property
    def registration_file(self) -> Path:
        return self.signal_dir / LISTENERS_DIR / f"{self.name}.json"

    @property
    def ack_file(self) -> Path:
        return self.signal_dir / LISTENERS_DIR / f"{self.name}.ack"

    @property
    def change_file(self) -> Path:
        return self.signal_dir / f"{self.category}.changed"

    def _current_token(self) -> Optional[str]:
        try:
            data = json.loads(self.change_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed change file {self.change_file}")
            return None
        return data.get("token")

    def register(self) -> None:
        """Announce this listener; changes published earlier are ignored."""
        self.registration_file.parent.mkdir(parents=True, exist_ok=True)
        self._last_token = self._current_token()
        payload = {"pid": self.pid, "category": self.category}
        _atomic_write(self.registration_file, json.dumps(payload))
        logger.debug(f"Registered listener '{self.name}' (pid {self.pid})")

    def unregister(self) -> None:
        _unlink(self.registration_file)
        _unlink(self.ack_file)

    def acknowledge(self, token: str) -> None:
        _atomic_write(self.ack_file, token)
        self._last_token = token

    def poll(self) -> Optional[str]:
        """Return and acknowledge the newest unseen change token, if any."""
        token = self._current_token()
        if token is None or token == self._last_token:
            return None
        self.acknowledge(token)
        return token

    def __enter__(self) -> "ChangeListener":
        self.register()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unregister()
