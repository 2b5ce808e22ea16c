"""Turn parsed command line flags into a validated intent.

The Typer command only collects flags; every rule about which flags may be
combined lives here so it can be tested without invoking the CLI.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from envar.engine import PROCESS_SCOPE_MESSAGE
from envar.errors import ValidationError
from envar.logging import get_logger
from envar.models import MutationRequest, Scope, SetMode

logger = get_logger(__name__)


@dataclass(frozen=True)
class ListIntent:
    """List the variables of a scope, or of one process."""

    scope: Scope
    pid: Optional[int] = None


@dataclass(frozen=True)
class SetIntent:
    """Create or change one persisted variable, then broadcast."""

    request: MutationRequest


@dataclass(frozen=True)
class BroadcastIntent:
    """Broadcast a change notification without touching any store."""


Intent = Union[ListIntent, SetIntent, BroadcastIntent]


@dataclass
class CommandFlags:
    """Raw flag values as collected by the CLI."""

    list_vars: bool = False
    set_var: bool = False
    broadcast: bool = False
    machine: bool = False
    user: bool = False
    pid: Optional[int] = None
    append: bool = False
    overwrite: bool = False
    name: Optional[str] = None
    value: Optional[str] = None

    def actions(self) -> List[str]:
        flags = [("-l", self.list_vars), ("-s", self.set_var), ("-b", self.broadcast)]
        return [flag for flag, given in flags if given]

    def scope_flags(self) -> List[str]:
        flags = [("-m", self.machine), ("-u", self.user), ("-p", self.pid is not None)]
        return [flag for flag, given in flags if given]

    def set_flags(self) -> List[str]:
        flags = [
            ("-a", self.append),
            ("-o", self.overwrite),
            ("-n", self.name is not None),
            ("-v", self.value is not None),
        ]
        return [flag for flag, given in flags if given]


def resolve_scope(flags: CommandFlags) -> Scope:
    """Return the scope selected by -m, -u or -p (user by default)."""
    given = flags.scope_flags()
    if len(given) > 1:
        raise ValidationError(
            "Invalid Environment target. Valid options are -m (Machine), "
            "-u (User) or -p (Process).",
            [f"Only one of {', '.join(given)} may be given"],
        )
    if flags.machine:
        return Scope.MACHINE
    if flags.pid is not None:
        return Scope.PROCESS
    return Scope.USER


def resolve_mode(flags: CommandFlags) -> Optional[SetMode]:
    """Return the mode selected by -a or -o, or None if neither was given."""
    if flags.append and flags.overwrite:
        raise ValidationError("The -a and -o options are mutually exclusive.")
    if flags.append:
        return SetMode.APPEND
    if flags.overwrite:
        return SetMode.OVERWRITE
    return None


def _build_list(flags: CommandFlags) -> ListIntent:
    unexpected = flags.set_flags()
    if unexpected:
        raise ValidationError(f"Unexpected argument: {unexpected[0]}")
    scope = resolve_scope(flags)
    if scope is Scope.PROCESS and (flags.pid is None or flags.pid <= 0):
        raise ValidationError(
            "To view the variables for a process, a process identifier (PID) "
            "must be supplied."
        )
    return ListIntent(scope=scope, pid=flags.pid)


def _build_set(flags: CommandFlags) -> SetIntent:
    scope = resolve_scope(flags)
    if scope is Scope.PROCESS:
        raise ValidationError(PROCESS_SCOPE_MESSAGE)
    mode = resolve_mode(flags)
    if not flags.name:
        raise ValidationError("A variable name must be specified after the -n option.")
    if flags.value is None:
        raise ValidationError("A variable value must be specified after the -v option.")
    request = MutationRequest(
        scope=scope, name=flags.name, value=flags.value, mode=mode
    )
    return SetIntent(request=request)


def _build_broadcast(flags: CommandFlags) -> BroadcastIntent:
    unexpected = flags.scope_flags() + flags.set_flags()
    if unexpected:
        raise ValidationError(f"Unexpected argument: {unexpected[0]}")
    return BroadcastIntent()


def build_intent(flags: CommandFlags) -> Optional[Intent]:
    """Validate flags and build the intent they describe.

    Returns:
        The intent, or None when no action flag and no other flag was given
        (the caller shows help)

    Raises:
        ValidationError: If the flags are contradictory or incomplete
    """
    actions = flags.actions()
    if not actions:
        if flags.scope_flags() or flags.set_flags():
            raise ValidationError("One of -l, -s or -b must be specified.")
        return None
    if len(actions) > 1:
        raise ValidationError(
            f"The {', '.join(actions)} options are mutually exclusive."
        )

    action = actions[0]
    if action == "-l":
        intent: Intent = _build_list(flags)
    elif action == "-s":
        intent = _build_set(flags)
    else:
        intent = _build_broadcast(flags)

    logger.debug(f"Resolved command line to {intent}")
    return intent
