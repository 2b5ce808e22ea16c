"""Windows registry store.

User variables live under ``HKEY_CURRENT_USER\\Environment`` and machine
variables under ``HKEY_LOCAL_MACHINE\\SYSTEM\\CurrentControlSet\\Control\\
Session Manager\\Environment``.
"""

from types import ModuleType
from typing import Any, Optional

from envar.errors import PermissionDeniedError, StoreUnavailableError
from envar.logging import get_logger
from envar.models import DELIMITER, Scope, VariableSet
from envar.stores.base import VariableStore
from envar.stores.registry import register_store

logger = get_logger(__name__)

USER_KEY_PATH = "Environment"
MACHINE_KEY_PATH = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"

HIVE_NAMES = {
    Scope.USER: "HKEY_CURRENT_USER",
    Scope.MACHINE: "HKEY_LOCAL_MACHINE",
}


def _load_winreg() -> ModuleType:
    import winreg

    return winreg


def _to_text(data: Any) -> str:
    if isinstance(data, str):
        return data
    if isinstance(data, list):
        return DELIMITER.join(str(item) for item in data)
    return str(data)


@register_store("registry")
class RegistryStore(VariableStore):
    """Store variables for one scope in the Windows registry."""

    def __init__(self, scope: Scope, winreg_module: Optional[ModuleType] = None):
        super().__init__(scope)
        if winreg_module is None:
            try:
                winreg_module = _load_winreg()
            except ImportError as e:
                raise StoreUnavailableError(
                    self.location, "the registry is only available on Windows"
                ) from e
        self._winreg = winreg_module

    @property
    def key_path(self) -> str:
        return USER_KEY_PATH if self.scope is Scope.USER else MACHINE_KEY_PATH

    @property
    def location(self) -> str:
        return f"{HIVE_NAMES[self.scope]}\\{self.key_path}"

    def _hive(self) -> Any:
        return getattr(self._winreg, HIVE_NAMES[self.scope])

    def _fail(self, error: OSError, operation: str) -> Exception:
        if isinstance(error, FileNotFoundError):
            return StoreUnavailableError(self.location, "registry key does not exist")
        if isinstance(error, PermissionError):
            return PermissionDeniedError(self.location, operation)
        return StoreUnavailableError(self.location, str(error))

    def read(self) -> VariableSet:
        winreg = self._winreg
        try:
            key = winreg.OpenKey(self._hive(), self.key_path, 0, winreg.KEY_READ)
        except OSError as e:
            raise self._fail(e, "read") from e

        variables = VariableSet(location=self.location)
        with key:
            try:
                _, value_count, _ = winreg.QueryInfoKey(key)
                for index in range(value_count):
                    name, data, _ = winreg.EnumValue(key, index)
                    variables[name] = _to_text(data)
            except OSError as e:
                raise self._fail(e, "read") from e

        logger.debug(f"Read {len(variables)} variables from {self.location}")
        return variables

    def read_one(self, name: str) -> Optional[str]:
        winreg = self._winreg
        try:
            key = winreg.OpenKey(self._hive(), self.key_path, 0, winreg.KEY_READ)
            with key:
                data, _ = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise self._fail(e, "read") from e
        return _to_text(data)

    def write(self, name: str, value: str) -> None:
        winreg = self._winreg
        access = winreg.KEY_READ | winreg.KEY_SET_VALUE
        try:
            with winreg.CreateKeyEx(self._hive(), self.key_path, 0, access) as key:
                value_type = self._existing_type(key, name)
                if value_type is None:
                    value_type = winreg.REG_EXPAND_SZ if "%" in value else winreg.REG_SZ
                winreg.SetValueEx(key, name, 0, value_type, value)
        except OSError as e:
            raise self._fail(e, "write") from e

        logger.info(f"Wrote '{name}' to {self.location}")

    def _existing_type(self, key: Any, name: str) -> Optional[int]:
        """Return the registry type of an existing string value."""
        winreg = self._winreg
        try:
            _, existing_type = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        if existing_type in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
            return existing_type
        return None
