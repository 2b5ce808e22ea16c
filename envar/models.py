"""Core data types shared by the stores, the engine and the CLI."""

from collections.abc import MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

DELIMITER = ";"


class Scope(Enum):
    """Where a variable set lives."""

    USER = "user"
    MACHINE = "machine"
    PROCESS = "process"

    @property
    def is_persisted(self) -> bool:
        """Return True for scopes backed by a durable store."""
        return self is not Scope.PROCESS


class SetMode(Enum):
    """How an existing variable is changed."""

    APPEND = "append"
    OVERWRITE = "overwrite"


def fold(text: str) -> str:
    """Fold text for case-insensitive comparison.

    Uses ``str.casefold`` so results never depend on the active locale.
    """
    return text.casefold()


@dataclass(frozen=True)
class Variable:
    """A single name/value pair."""

    name: str
    value: str


class VariableSet(MutableMapping):
    """Mapping of variable names to values with case-insensitive keys.

    The casing of the first occurrence of a name is kept; assigning the same
    name with different casing replaces the value only. Iteration is ordered
    by folded name.
    """

    def __init__(
        self,
        items: Optional[Iterable[Tuple[str, str]]] = None,
        location: str = "",
    ):
        self.location = location
        self._data: Dict[str, Tuple[str, str]] = {}
        if items is not None:
            for name, value in items:
                self[name] = value

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, str], location: str = ""
    ) -> "VariableSet":
        """Build a set from a plain dictionary."""
        return cls(mapping.items(), location=location)

    def __getitem__(self, name: str) -> str:
        return self._data[fold(name)][1]

    def __setitem__(self, name: str, value: str) -> None:
        key = fold(name)
        existing = self._data.get(key)
        stored_name = existing[0] if existing else name
        self._data[key] = (stored_name, value)

    def __delitem__(self, name: str) -> None:
        del self._data[fold(name)]

    def __iter__(self) -> Iterator[str]:
        for key in sorted(self._data):
            yield self._data[key][0]

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and fold(name) in self._data

    def __repr__(self) -> str:
        return f"VariableSet({dict(self.items())!r}, location={self.location!r})"

    def stored_name(self, name: str) -> Optional[str]:
        """Return the name as it is stored, or None if absent."""
        existing = self._data.get(fold(name))
        return existing[0] if existing else None

    def variables(self) -> Iterator[Variable]:
        """Iterate over the set as Variable objects."""
        for name in self:
            yield Variable(name, self[name])


def split_tokens(value: str) -> List[str]:
    """Split a list-valued variable into its tokens."""
    return value.split(DELIMITER)


def join_tokens(*parts: str) -> str:
    """Join values with the list delimiter."""
    return DELIMITER.join(parts)


@dataclass(frozen=True)
class MutationRequest:
    """A request to create or change one persisted variable."""

    scope: Scope
    name: str
    value: str
    mode: Optional[SetMode] = None


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a successful mutation."""

    scope: Scope
    name: str
    value: str
    previous: Optional[str]
    mode: Optional[SetMode]
    location: str = ""

    @property
    def created(self) -> bool:
        """Return True if the variable did not exist before."""
        return self.previous is None
