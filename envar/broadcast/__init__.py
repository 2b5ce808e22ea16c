"""Change broadcasters.

Importing this package registers every built-in backend.
"""

import sys

from envar.broadcast.base import (
    BROADCASTER_REGISTRY,
    DEFAULT_TIMEOUT_MS,
    ENVIRONMENT_CATEGORY,
    ChangeBroadcaster,
    NullBroadcaster,
    get_broadcaster_class,
    register_broadcaster,
)
from envar.broadcast.signal_file import ChangeListener, SignalFileBroadcaster
from envar.broadcast.windows import WindowsBroadcaster


def default_backend() -> str:
    """Return the backend used when configuration says 'auto'."""
    return "windows" if sys.platform == "win32" else "signal_file"


__all__ = [
    "BROADCASTER_REGISTRY",
    "DEFAULT_TIMEOUT_MS",
    "ENVIRONMENT_CATEGORY",
    "ChangeBroadcaster",
    "ChangeListener",
    "NullBroadcaster",
    "SignalFileBroadcaster",
    "WindowsBroadcaster",
    "default_backend",
    "get_broadcaster_class",
    "register_broadcaster",
]
