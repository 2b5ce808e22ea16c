"""Read-only inspection of a running process' environment block.

Process identifiers are reused by the operating system once a process
exits, so the snapshot returned for a pid may belong to an unrelated
process that was started later with the same identifier. Callers are
warned about this; nothing here tries to detect it.
"""

from dataclasses import dataclass
from typing import Optional

import psutil

from envar.errors import PermissionDeniedError, ProcessNotFoundError, ValidationError
from envar.logging import get_logger
from envar.models import VariableSet

logger = get_logger(__name__)

PID_REUSE_WARNING = (
    "Process identifiers are reused once a process exits; the variables shown "
    "may belong to a different process than the one you expect."
)


@dataclass(frozen=True)
class ProcessInfo:
    """Summary of a running process."""

    pid: int
    name: str
    status: str
    exe: Optional[str] = None


def _validate_pid(pid: int) -> None:
    if pid <= 0:
        raise ValidationError(f"Invalid process identifier: {pid}")


def _get_process(pid: int) -> psutil.Process:
    _validate_pid(pid)
    try:
        return psutil.Process(pid)
    except psutil.NoSuchProcess as e:
        raise ProcessNotFoundError(pid) from e


def describe_process(pid: int) -> ProcessInfo:
    """Return name, status and executable of a running process.

    Raises:
        ProcessNotFoundError: If no process has this identifier
    """
    process = _get_process(pid)
    try:
        with process.oneshot():
            name = process.name()
            status = process.status()
            try:
                exe = process.exe() or None
            except (psutil.AccessDenied, psutil.ZombieProcess):
                exe = None
    except psutil.NoSuchProcess as e:
        raise ProcessNotFoundError(pid) from e
    except psutil.AccessDenied as e:
        raise PermissionDeniedError(f"process {pid}", "inspect") from e

    return ProcessInfo(pid=pid, name=name, status=status, exe=exe)


def read_process_variables(pid: int) -> VariableSet:
    """Return the environment block of a running process.

    Raises:
        ProcessNotFoundError: If no process has this identifier
        PermissionDeniedError: If the caller may not read its environment
    """
    process = _get_process(pid)
    logger.info(f"Reading environment of process {pid}. {PID_REUSE_WARNING}")

    try:
        environ = process.environ()
    except psutil.NoSuchProcess as e:
        raise ProcessNotFoundError(pid) from e
    except psutil.AccessDenied as e:
        raise PermissionDeniedError(f"process {pid}", "read the environment of") from e

    logger.debug(f"Read {len(environ)} variables from process {pid}")
    return VariableSet.from_mapping(environ, location=f"process {pid}")
