"""Registry of store backends."""

import sys
from typing import Any, Callable, Dict, Type, TypeVar, cast

from envar.errors import ValidationError
from envar.models import Scope
from envar.stores.base import VariableStore

STORE_REGISTRY: Dict[str, Type[VariableStore]] = {}

T = TypeVar("T", bound=VariableStore)


def register_store(backend: str) -> Callable[[Type[T]], Type[T]]:
    """Register a store class under a backend name.

    Args:
        backend: Backend name used in configuration

    Returns:
        Decorator function
    """

    def decorator(cls: Type[T]) -> Type[T]:
        if backend in STORE_REGISTRY:
            raise ValueError(f"Store backend '{backend}' already registered")
        STORE_REGISTRY[backend] = cls
        return cls

    return decorator


def get_store_class(backend: str) -> Type[VariableStore]:
    """Get a store class by backend name.

    Raises:
        ValidationError: If the backend is not registered
    """
    if backend not in STORE_REGISTRY:
        available = ", ".join(sorted(STORE_REGISTRY))
        raise ValidationError(
            f"Unknown store backend: {backend}", [f"Available backends: {available}"]
        )
    return cast(Type[VariableStore], STORE_REGISTRY[backend])


def default_backend() -> str:
    """Return the backend used when configuration says 'auto'."""
    return "registry" if sys.platform == "win32" else "file"


def create_store(backend: str, scope: Scope, **options: Any) -> VariableStore:
    """Instantiate the store for a scope.

    Args:
        backend: Backend name, or 'auto' for the platform default
        scope: Persisted scope to bind
        **options: Backend specific keyword arguments

    Returns:
        Configured store
    """
    if backend == "auto":
        backend = default_backend()
    store_class = get_store_class(backend)
    return store_class(scope, **options)
