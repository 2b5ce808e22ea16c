"""Mutation engine: the create / append / overwrite rules for one variable.

The read-then-write below takes no lock. Two envar invocations targeting the
same scope at the same time can lose one of the updates; this is a known
limitation of the persisted stores, not something the engine guards against.
"""

from typing import Optional

from envar.errors import ValidationError, ValueAlreadyExistsError, VariableExistsError
from envar.logging import get_logger
from envar.models import (
    MutationRequest,
    MutationResult,
    Scope,
    SetMode,
    fold,
    join_tokens,
    split_tokens,
)
from envar.stores.base import VariableStore

logger = get_logger(__name__)

PROCESS_SCOPE_MESSAGE = (
    "A process' environment block cannot be modified except by a parent process."
)


def contains_token(current: str, value: str) -> bool:
    """Return True if value equals any token of current, ignoring case."""
    wanted = fold(value)
    return any(fold(token) == wanted for token in split_tokens(current))


def apply_mode(name: str, current: str, value: str, mode: SetMode) -> str:
    """Compute the new value of an existing variable.

    Raises:
        ValueAlreadyExistsError: If appending a token that is already present
    """
    if mode is SetMode.OVERWRITE:
        return value
    if contains_token(current, value):
        raise ValueAlreadyExistsError(name, value)
    return join_tokens(current, value)


class MutationEngine:
    """Apply mutation requests to a persisted store.

    Args:
        store: Store bound to the scope being changed
        default_mode: Mode used when a request carries none. ``None`` makes
            an unqualified request on an existing variable an error.
    """

    def __init__(
        self, store: VariableStore, default_mode: Optional[SetMode] = SetMode.APPEND
    ):
        self.store = store
        self.default_mode = default_mode

    def _validate(self, request: MutationRequest) -> None:
        if request.scope is Scope.PROCESS:
            raise ValidationError(PROCESS_SCOPE_MESSAGE)
        if request.scope is not self.store.scope:
            raise ValidationError(
                f"Request targets the {request.scope.value} scope but the store "
                f"holds {self.store.scope.value} variables"
            )
        if not request.name:
            raise ValidationError("A variable name must be specified.")
        if request.value is None:
            raise ValidationError("A variable value must be specified.")

    def mutate(self, request: MutationRequest) -> MutationResult:
        """Create, append to or overwrite a single variable.

        Raises:
            ValidationError: If the request targets process scope or is incomplete
            ValueAlreadyExistsError: If appending a token already present
            VariableExistsError: If the variable exists and no mode applies
        """
        self._validate(request)

        current = self.store.read_one(request.name)
        mode = request.mode or self.default_mode

        if current is None:
            logger.debug(f"'{request.name}' is absent, creating it")
            new_value = request.value
            mode = None
        elif mode is None:
            raise VariableExistsError(request.name)
        else:
            logger.debug(f"'{request.name}' exists, applying {mode.value}")
            new_value = apply_mode(request.name, current, request.value, mode)

        self.store.write(request.name, new_value)
        logger.info(
            f"Set {request.scope.value} variable '{request.name}' "
            f"({'created' if current is None else mode.value})"
        )

        return MutationResult(
            scope=request.scope,
            name=request.name,
            value=new_value,
            previous=current,
            mode=mode,
            location=self.store.location,
        )
