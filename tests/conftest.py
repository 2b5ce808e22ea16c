"""Pytest configuration for envar tests."""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from envar.broadcast.base import ChangeBroadcaster
from envar.config import BroadcastConfig, EnvarConfig
from envar.errors import BroadcastError, BroadcastTimeoutError
from envar.models import Scope
from envar.stores.memory_store import IN_MEMORY_STORE, MemoryStore


class FakeBroadcaster(ChangeBroadcaster):
    """Broadcaster test double that records calls and can be told to fail."""

    def __init__(self, outcome: str = "success", error_code: int = 5):
        super().__init__(timeout_ms=1000)
        self.outcome = outcome
        self.error_code = error_code
        self.calls: List[str] = []

    def notify_change(self) -> None:
        self.calls.append(self.category)
        if self.outcome == "timeout":
            raise BroadcastTimeoutError(self.timeout_ms, ["slow-shell"])
        if self.outcome == "error":
            raise BroadcastError(self.error_code, "access denied")


@pytest.fixture(autouse=True)
def clean_memory_store():
    """Give every test an empty shared in-memory store."""
    IN_MEMORY_STORE.clear()
    yield
    IN_MEMORY_STORE.clear()


@pytest.fixture(autouse=True)
def isolated_envar_environment(monkeypatch, tmp_path):
    """Keep tests away from the real configuration and stores."""
    for name in (
        "ENVAR_CONFIG",
        "ENVAR_STORE",
        "ENVAR_USER_STORE",
        "ENVAR_MACHINE_STORE",
        "ENVAR_BROADCAST_BACKEND",
        "ENVAR_SIGNAL_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def user_data() -> Dict[str, str]:
    """Backing dictionary of the user scope in the in-memory store."""
    return IN_MEMORY_STORE.setdefault(Scope.USER, {})


@pytest.fixture
def user_store(user_data) -> MemoryStore:
    """In-memory user store."""
    return MemoryStore(Scope.USER)


@pytest.fixture
def memory_config() -> EnvarConfig:
    """Configuration using the in-memory store and no broadcast."""
    return EnvarConfig(store="memory", broadcast=BroadcastConfig(backend="none"))


@pytest.fixture
def file_config(tmp_path: Path) -> EnvarConfig:
    """Configuration using dotenv files under a temporary directory."""
    return EnvarConfig(
        store="file",
        user_store=str(tmp_path / "user" / "environment"),
        machine_store=str(tmp_path / "machine" / "environment"),
        broadcast=BroadcastConfig(backend="none"),
    )


@pytest.fixture
def fake_broadcaster(monkeypatch) -> FakeBroadcaster:
    """Replace the configured broadcaster with a recording fake."""
    broadcaster = FakeBroadcaster()

    def create(config: Optional[EnvarConfig] = None) -> FakeBroadcaster:
        return broadcaster

    monkeypatch.setattr("envar.cli.business_operations.create_broadcaster", create)
    return broadcaster
