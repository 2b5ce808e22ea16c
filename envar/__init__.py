"""envar - inspect and modify persisted environment variables."""

__version__ = "0.1.0"
__package_name__ = "envar"

from envar.errors import (
    BroadcastError,
    BroadcastTimeoutError,
    EnvarError,
    PermissionDeniedError,
    ProcessNotFoundError,
    StoreUnavailableError,
    ValidationError,
    ValueAlreadyExistsError,
    VariableExistsError,
)

__all__ = [
    "BroadcastError",
    "BroadcastTimeoutError",
    "EnvarError",
    "PermissionDeniedError",
    "ProcessNotFoundError",
    "StoreUnavailableError",
    "ValidationError",
    "ValueAlreadyExistsError",
    "VariableExistsError",
]
