"""Simple factory functions for CLI dependencies.

Each function turns the loaded configuration into one ready-to-use
component; the business operations never read configuration directly.
"""

from typing import Any, Dict

from envar.broadcast import ChangeBroadcaster, get_broadcaster_class
from envar.broadcast import default_backend as default_broadcast_backend
from envar.config import EnvarConfig
from envar.engine import MutationEngine
from envar.logging import get_logger
from envar.models import Scope
from envar.stores import VariableStore, create_store
from envar.stores import default_backend as default_store_backend

logger = get_logger(__name__)


def create_store_for_scope(config: EnvarConfig, scope: Scope) -> VariableStore:
    """Create the store configured for a persisted scope."""
    backend = config.store
    if backend == "auto":
        backend = default_store_backend()

    options: Dict[str, Any] = {}
    if backend == "file":
        options["path"] = (
            config.user_store if scope is Scope.USER else config.machine_store
        )

    store = create_store(backend, scope, **options)
    logger.debug(f"Using {store!r}")
    return store


def create_engine(config: EnvarConfig, scope: Scope) -> MutationEngine:
    """Create a mutation engine bound to the store of a scope."""
    store = create_store_for_scope(config, scope)
    return MutationEngine(store, default_mode=config.resolved_default_mode)


def create_broadcaster(config: EnvarConfig) -> ChangeBroadcaster:
    """Create the configured change broadcaster."""
    settings = config.broadcast
    backend = settings.backend
    if backend == "auto":
        backend = default_broadcast_backend()

    options: Dict[str, Any] = {"timeout_ms": settings.timeout_ms}
    if backend == "signal_file":
        options["signal_dir"] = settings.signal_dir
        options["poll_interval_ms"] = settings.poll_interval_ms

    broadcaster = get_broadcaster_class(backend)(**options)
    logger.debug(f"Using {backend} broadcaster")
    return broadcaster
