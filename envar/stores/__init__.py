"""Persisted variable stores.

Importing this package registers every built-in backend.
"""

from envar.stores.base import VariableStore
from envar.stores.file_store import FileStore
from envar.stores.memory_store import MemoryStore
from envar.stores.registry import (
    STORE_REGISTRY,
    create_store,
    default_backend,
    get_store_class,
    register_store,
)
from envar.stores.registry_store import RegistryStore

__all__ = [
    "VariableStore",
    "FileStore",
    "MemoryStore",
    "RegistryStore",
    "STORE_REGISTRY",
    "create_store",
    "default_backend",
    "get_store_class",
    "register_store",
]
