"""Exception hierarchy for envar.

Every failure a command can hit is one of these. They all carry a human
readable message plus optional suggestions, which the CLI renders before
exiting with a failure status.
"""

from typing import List, Optional


class EnvarError(Exception):
    """Base exception for envar operations."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(message)


class StoreUnavailableError(EnvarError):
    """Raised when a persisted variable store cannot be opened or read."""

    def __init__(self, location: str, reason: Optional[str] = None):
        self.location = location
        self.reason = reason
        message = f"Variable store '{location}' is unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PermissionDeniedError(EnvarError):
    """Raised when the caller lacks the rights to read or write a store."""

    def __init__(self, location: str, operation: str = "access"):
        self.location = location
        self.operation = operation
        message = f"Permission denied trying to {operation} '{location}'"
        suggestions = [
            "Machine variables usually require an administrator or root shell",
        ]
        super().__init__(message, suggestions)


class ProcessNotFoundError(EnvarError):
    """Raised when no running process has the requested identifier."""

    def __init__(self, pid: int):
        self.pid = pid
        message = f"No process with identifier {pid} is running"
        super().__init__(message)


class ValidationError(EnvarError):
    """Raised when a request is malformed or contradictory."""


class ConfigError(ValidationError):
    """Raised when the configuration file cannot be used."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration in '{path}': {reason}")


class ValueAlreadyExistsError(EnvarError):
    """Raised when appending a token the variable already holds."""

    def __init__(self, name: str, value: str):
        self.name = name
        self.value = value
        message = f"The value '{value}' already exists in variable '{name}'"
        suggestions = ["Use -o to overwrite the variable instead"]
        super().__init__(message, suggestions)


class VariableExistsError(EnvarError):
    """Raised when a variable exists and no set mode was resolved."""

    def __init__(self, name: str):
        self.name = name
        message = f"The variable '{name}' already exists"
        suggestions = [
            "Use -a to append to the existing value",
            "Use -o to overwrite the existing value",
        ]
        super().__init__(message, suggestions)


class BroadcastTimeoutError(EnvarError):
    """Raised when listeners did not acknowledge a change in time."""

    def __init__(self, timeout_ms: int, pending: Optional[List[str]] = None):
        self.timeout_ms = timeout_ms
        self.pending = pending or []
        message = f"The change broadcast timed out after {timeout_ms} ms"
        if self.pending:
            message += f" (waiting on: {', '.join(self.pending)})"
        super().__init__(message)


class BroadcastError(EnvarError):
    """Raised when the operating system rejects a change broadcast."""

    def __init__(self, code: int, detail: Optional[str] = None):
        self.code = code
        self.detail = detail
        message = f"The change broadcast failed with error code {code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
