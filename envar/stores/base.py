"""Store accessor contract.

A store binds one persisted scope (user or machine) to a concrete backing
location. Stores are stateless between calls: every ``read`` materializes a
fresh VariableSet from the backing location.
"""

from abc import ABC, abstractmethod
from typing import Optional

from envar.errors import ValidationError
from envar.models import Scope, VariableSet


class VariableStore(ABC):
    """Read and write the persisted variables of a single scope."""

    def __init__(self, scope: Scope):
        if not scope.is_persisted:
            raise ValidationError(
                "A process' environment block cannot be modified except by a "
                "parent process."
            )
        self.scope = scope

    @property
    @abstractmethod
    def location(self) -> str:
        """Human readable location of the backing store."""

    @abstractmethod
    def read(self) -> VariableSet:
        """Return every variable in the store.

        Raises:
            StoreUnavailableError: If the backing location cannot be opened
            PermissionDeniedError: If the caller may not read it
        """

    @abstractmethod
    def write(self, name: str, value: str) -> None:
        """Create or replace a single variable, leaving other keys alone.

        Raises:
            StoreUnavailableError: If the backing location cannot be written
            PermissionDeniedError: If the caller may not write it
        """

    def read_one(self, name: str) -> Optional[str]:
        """Return the value of one variable, or None if it is absent."""
        return self.read().get(name)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(scope={self.scope.value}, "
            f"location={self.location!r})"
        )
