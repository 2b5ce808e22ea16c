"""File-backed variable store.

Each scope is kept in one dotenv-format file (``NAME=value`` per line).
Reads go through ``dotenv_values`` and writes through ``set_key``, which
upserts a single line and replaces the file atomically. Lines whose name
differs only in case from the one being written are removed first, so the
written line is the one every later read sees.
"""

import errno
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from dotenv import dotenv_values, set_key, unset_key

from envar.errors import PermissionDeniedError, StoreUnavailableError, ValidationError
from envar.logging import get_logger
from envar.models import Scope, VariableSet, fold
from envar.stores.base import VariableStore
from envar.stores.registry import register_store

logger = get_logger(__name__)

DEFAULT_USER_STORE = "~/.config/envar/environment"
DEFAULT_MACHINE_STORE = "/etc/envar/environment"

# Names that dotenv can parse back without quoting
_VALID_NAME = re.compile(r"^[^\s=#'\"]+$")

# An unquoted dotenv value loses trailing whitespace and " #..." comments
_INLINE_COMMENT = re.compile(r"\s#")


def _needs_quotes(value: str) -> bool:
    return (
        value != value.strip()
        or "\n" in value
        or "\r" in value
        or value[:1] in ("'", '"')
        or _INLINE_COMMENT.search(value) is not None
    )


def _encode(name: str, value: str) -> Tuple[str, str]:
    """Return (quote_mode, text) for writing value with set_key.

    Plain values are written unquoted so backslashes survive untouched.
    Quoted values get their backslashes escaped; a quoted value may not end
    in a backslash because dotenv would read the closing quote as escaped.
    """
    if not _needs_quotes(value):
        return "never", value
    if value.endswith("\\"):
        raise ValidationError(
            f"The value for '{name}' cannot be stored in a file",
            ["Values that need quoting may not end with a backslash"],
        )
    return "always", value.replace("\\", "\\\\")


@register_store("file")
class FileStore(VariableStore):
    """Store variables for one scope in a dotenv-format file."""

    def __init__(self, scope: Scope, path: Optional[Union[str, Path]] = None):
        super().__init__(scope)
        if path is None:
            if scope is Scope.USER:
                path = DEFAULT_USER_STORE
            else:
                path = DEFAULT_MACHINE_STORE
        self.path = Path(os.path.expandvars(str(path))).expanduser()

    @property
    def location(self) -> str:
        return str(self.path)

    def _translate_os_error(self, error: OSError, operation: str) -> Exception:
        if isinstance(error, PermissionError) or error.errno in (
            errno.EACCES,
            errno.EPERM,
        ):
            return PermissionDeniedError(self.location, operation)
        return StoreUnavailableError(self.location, error.strerror or str(error))

    def _load(self) -> Dict[str, Optional[str]]:
        if not self.path.is_file():
            raise StoreUnavailableError(self.location, "file does not exist")

        try:
            # Opening explicitly surfaces permission errors that dotenv hides
            with open(self.path, "r", encoding="utf-8") as stream:
                return dict(dotenv_values(stream=stream, interpolate=False))
        except UnicodeDecodeError as e:
            raise StoreUnavailableError(self.location, "file is not valid UTF-8") from e
        except OSError as e:
            raise self._translate_os_error(e, "read") from e

    def _variants(self, name: str) -> List[str]:
        """Return every spelling of name in the file, in file order."""
        if not self.path.exists():
            return []
        wanted = fold(name)
        return [key for key in self._load() if fold(key) == wanted]

    def read(self) -> VariableSet:
        variables = VariableSet(location=self.location)
        for name, value in self._load().items():
            variables[name] = value if value is not None else ""

        logger.debug(f"Read {len(variables)} variables from {self.location}")
        return variables

    def read_one(self, name: str) -> Optional[str]:
        if not self.path.exists():
            logger.debug(f"{self.location} does not exist, '{name}' is absent")
            return None
        return self.read().get(name)

    def write(self, name: str, value: str) -> None:
        if not _VALID_NAME.match(name):
            raise ValidationError(
                f"'{name}' is not a valid variable name for a file store",
                ["Names may not contain whitespace, quotes, '=' or '#'"],
            )

        quote_mode, text = _encode(name, value)

        # Keep the casing already on disk
        variants = self._variants(name)
        stored_name = variants[0] if variants else name

        try:
            for duplicate in variants[1:]:
                logger.warning(
                    f"Removing '{duplicate}' from {self.location}, "
                    f"it duplicates '{stored_name}'"
                )
                unset_key(str(self.path), duplicate, encoding="utf-8")

            self.path.parent.mkdir(parents=True, exist_ok=True)
            set_key(
                str(self.path),
                stored_name,
                text,
                quote_mode=quote_mode,
                encoding="utf-8",
            )
        except OSError as e:
            raise self._translate_os_error(e, "write") from e

        logger.info(f"Wrote '{stored_name}' to {self.location}")
