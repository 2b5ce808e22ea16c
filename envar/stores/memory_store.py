"""In-memory variable store, primarily for testing."""

from typing import Dict, Optional

from envar.errors import StoreUnavailableError
from envar.models import Scope, VariableSet
from envar.stores.base import VariableStore
from envar.stores.registry import register_store

# Shared backing data keyed by scope, mirroring a real persisted store
IN_MEMORY_STORE: Dict[Scope, Dict[str, str]] = {}


@register_store("memory")
class MemoryStore(VariableStore):
    """Store variables in a process-local dictionary.

    Passing ``data`` binds the store to that dictionary; otherwise the
    module level ``IN_MEMORY_STORE`` entry for the scope is used. A store
    created with ``available=False`` behaves like a missing location.
    """

    def __init__(
        self,
        scope: Scope,
        data: Optional[Dict[str, str]] = None,
        available: bool = True,
    ):
        super().__init__(scope)
        if data is None:
            data = IN_MEMORY_STORE.setdefault(scope, {})
        self.data = data
        self.available = available
        self.writes = 0

    @property
    def location(self) -> str:
        return f"memory:{self.scope.value}"

    def read(self) -> VariableSet:
        if not self.available:
            raise StoreUnavailableError(self.location, "store is offline")
        return VariableSet.from_mapping(self.data, location=self.location)

    def read_one(self, name: str) -> Optional[str]:
        if not self.available:
            return None
        return self.read().get(name)

    def write(self, name: str, value: str) -> None:
        if not self.available:
            raise StoreUnavailableError(self.location, "store is offline")
        stored_name = self.read().stored_name(name) or name
        self.data[stored_name] = value
        self.writes += 1
