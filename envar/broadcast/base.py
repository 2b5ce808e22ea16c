"""Change broadcaster contract."""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Type, TypeVar, cast

from envar.errors import ValidationError
from envar.logging import get_logger

logger = get_logger(__name__)

ENVIRONMENT_CATEGORY = "Environment"
DEFAULT_TIMEOUT_MS = 15000

BROADCASTER_REGISTRY: Dict[str, Type["ChangeBroadcaster"]] = {}

B = TypeVar("B", bound="ChangeBroadcaster")


class ChangeBroadcaster(ABC):
    """Tell running listeners that the persisted variables changed.

    ``notify_change`` blocks for at most ``timeout_ms`` and either returns
    normally or raises BroadcastTimeoutError / BroadcastError.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        category: str = ENVIRONMENT_CATEGORY,
    ):
        if timeout_ms <= 0:
            raise ValidationError(f"Broadcast timeout must be positive: {timeout_ms}")
        self.timeout_ms = timeout_ms
        self.category = category

    @abstractmethod
    def notify_change(self) -> None:
        """Broadcast the change and wait for listeners."""


def register_broadcaster(backend: str) -> Callable[[Type[B]], Type[B]]:
    """Register a broadcaster class under a backend name."""

    def decorator(cls: Type[B]) -> Type[B]:
        if backend in BROADCASTER_REGISTRY:
            raise ValueError(f"Broadcast backend '{backend}' already registered")
        BROADCASTER_REGISTRY[backend] = cls
        return cls

    return decorator


def get_broadcaster_class(backend: str) -> Type[ChangeBroadcaster]:
    """Get a broadcaster class by backend name.

    Raises:
        ValidationError: If the backend is not registered
    """
    if backend not in BROADCASTER_REGISTRY:
        available = ", ".join(sorted(BROADCASTER_REGISTRY))
        raise ValidationError(
            f"Unknown broadcast backend: {backend}",
            [f"Available backends: {available}"],
        )
    return cast(Type[ChangeBroadcaster], BROADCASTER_REGISTRY[backend])


@register_broadcaster("none")
class NullBroadcaster(ChangeBroadcaster):
    """Broadcaster for hosts without listeners; always succeeds."""

    def notify_change(self) -> None:
        logger.debug(f"Broadcast of '{self.category}' skipped (backend: none)")
