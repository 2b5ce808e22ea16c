"""Business operations for the envar CLI.

Each function performs one command against the configured components and
returns plain data; presentation stays in the display module.
"""

from typing import Optional, Tuple

from envar.cli.factories import (
    create_broadcaster,
    create_engine,
    create_store_for_scope,
)
from envar.config import EnvarConfig
from envar.logging import get_logger
from envar.models import MutationRequest, MutationResult, Scope, VariableSet
from envar.process import ProcessInfo, describe_process, read_process_variables

logger = get_logger(__name__)


def list_variables_operation(
    config: EnvarConfig, scope: Scope, pid: Optional[int] = None
) -> Tuple[VariableSet, Optional[ProcessInfo]]:
    """Read the variables of a scope.

    Args:
        config: Loaded configuration
        scope: Scope to list
        pid: Process identifier, required for process scope

    Returns:
        Tuple of (variables, process_info); process_info is None for
        persisted scopes

    Raises:
        StoreUnavailableError: If the store cannot be opened
        ProcessNotFoundError: If the process does not exist
    """
    if scope is Scope.PROCESS:
        if pid is None:
            raise ValueError("pid is required for process scope")
        info = describe_process(pid)
        variables = read_process_variables(pid)
        logger.debug(f"Listed {len(variables)} variables of process {pid}")
        return variables, info

    store = create_store_for_scope(config, scope)
    variables = store.read()
    logger.debug(f"Listed {len(variables)} {scope.value} variables")
    return variables, None


def set_variable_operation(
    config: EnvarConfig, request: MutationRequest
) -> MutationResult:
    """Apply a mutation request to its persisted scope.

    Raises:
        ValidationError: If the request targets process scope
        ValueAlreadyExistsError: If appending a token already present
        VariableExistsError: If the variable exists and no mode applies
    """
    engine = create_engine(config, request.scope)
    return engine.mutate(request)


def broadcast_operation(config: EnvarConfig) -> None:
    """Notify listeners that the persisted variables changed.

    Raises:
        BroadcastTimeoutError: If listeners did not respond in time
        BroadcastError: If the operating system rejected the broadcast
    """
    broadcaster = create_broadcaster(config)
    broadcaster.notify_change()
