"""Tests for the dotenv file store."""

import os
import sys

import pytest

from envar.errors import PermissionDeniedError, StoreUnavailableError, ValidationError
from envar.engine import MutationEngine
from envar.models import MutationRequest, Scope, SetMode
from envar.stores.file_store import DEFAULT_MACHINE_STORE, FileStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "envar" / "environment"


@pytest.fixture
def store(store_path) -> FileStore:
    return FileStore(Scope.USER, path=store_path)


class TestRead:
    """Test reading dotenv files."""

    def test_missing_file_is_unavailable(self, store):
        """Test that reading a missing file fails."""
        with pytest.raises(StoreUnavailableError) as exc_info:
            store.read()
        assert exc_info.value.location == store.location

    def test_empty_file_is_empty_set(self, store, store_path):
        """Test that an existing empty file lists nothing."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("")

        variables = store.read()

        assert len(variables) == 0
        assert variables.location == str(store_path)

    def test_reads_hand_written_file(self, store, store_path):
        """Test parsing a file written by hand."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text(
            "# user variables\n"
            "EDITOR=vim\n"
            'GREETING="hello world"\n'
            "export PAGER=less\n"
            "REFERENCE=${HOME}/bin\n"
            "FLAG\n"
        )

        variables = store.read()

        assert variables["EDITOR"] == "vim"
        assert variables["GREETING"] == "hello world"
        assert variables["PAGER"] == "less"
        assert variables["REFERENCE"] == "${HOME}/bin"
        assert variables["FLAG"] == ""

    def test_invalid_utf8_is_unavailable(self, store, store_path):
        """Test that a file in another encoding is reported, not raised raw."""
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b"A=\xff\n")

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.read()
        assert "not valid UTF-8" in exc_info.value.message
        with pytest.raises(StoreUnavailableError):
            store.write("A", "1")

    def test_read_one_missing_file_is_absent(self, store):
        """Test that a missing file reports names as absent."""
        assert store.read_one("PATH") is None

    @pytest.mark.skipif(
        sys.platform == "win32" or os.geteuid() == 0,
        reason="file permissions are not enforced",
    )
    def test_unreadable_file_is_permission_denied(self, store, store_path):
        """Test that permission errors are translated."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("A=1\n")
        store_path.chmod(0)
        try:
            with pytest.raises(PermissionDeniedError):
                store.read()
        finally:
            store_path.chmod(0o600)


class TestWrite:
    """Test writing dotenv files."""

    def test_write_creates_file_and_directory(self, store, store_path):
        """Test that the first write creates the store."""
        store.write("EDITOR", "vim")

        assert store_path.is_file()
        assert store.read()["EDITOR"] == "vim"

    def test_write_keeps_unrelated_lines(self, store, store_path):
        """Test that a write only changes its own key."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("# keep me\nA=1\nB=2\n")

        store.write("A", "10")

        content = store_path.read_text()
        assert "# keep me" in content
        assert "B=2" in content
        assert store.read()["A"] == "10"
        assert store.read()["B"] == "2"

    @pytest.mark.parametrize(
        "value",
        [
            "C:\\A;C:\\B;C:\\Tools",
            "C:\\Program Files\\Tools\\",
            "it's quoted",
            'say "hi"',
            "back\\'slash",
            "$HOME/bin",
            "",
            "NULL",
        ],
    )
    def test_values_round_trip(self, store, value):
        """Test that awkward values read back unchanged."""
        store.write("VALUE", value)
        assert store.read_one("VALUE") == value

    @pytest.mark.parametrize(
        "value",
        [
            "  padded  ",
            "a # not a comment",
            "'starts with a quote",
            '"double quoted"',
            "line1\nline2",
            "C:\\Program Files # x\\bin",
        ],
    )
    def test_values_needing_quotes_round_trip(self, store, value):
        """Test values that must be quoted to survive parsing."""
        store.write("VALUE", value)
        assert store.read_one("VALUE") == value

    def test_trailing_backslash_does_not_leak_into_next_line(self, store):
        """Test that a path ending in a backslash keeps its neighbours intact."""
        store.write("TOOLS", "C:\\Tools\\")
        store.write("EDITOR", "vim")

        variables = store.read()
        assert variables["TOOLS"] == "C:\\Tools\\"
        assert variables["EDITOR"] == "vim"

    def test_quoted_value_ending_in_backslash_is_rejected(self, store):
        """Test a value that can only be stored quoted and ends in a backslash."""
        with pytest.raises(ValidationError):
            store.write("VALUE", " C:\\Tools\\")

    def test_write_replaces_case_variant_duplicates(self, store, store_path):
        """Test that a write wins over every spelling of the name in the file."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("Path=A\nEDITOR=vim\nPATH=B\n")

        store.write("path", "C")

        variables = store.read()
        assert list(variables) == ["EDITOR", "Path"]
        assert variables["PATH"] == "C"
        assert "PATH=" not in store_path.read_text()

    def test_overwrite_through_engine_with_case_variants(self, store, store_path):
        """Test that an overwrite lands when the file spells the name twice."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("Path=A\nPATH=B\n")
        engine = MutationEngine(store)

        result = engine.mutate(
            MutationRequest(Scope.USER, "PATH", "C", SetMode.OVERWRITE)
        )

        assert result.previous == "B"
        assert result.value == "C"
        assert store.read_one("PATH") == "C"

    def test_write_keeps_stored_casing(self, store):
        """Test that updating with other casing keeps the original key."""
        store.write("Path", "/bin")
        store.write("PATH", "/usr/bin")

        variables = store.read()
        assert list(variables) == ["Path"]
        assert variables["path"] == "/usr/bin"

    def test_invalid_name_is_rejected(self, store):
        """Test names dotenv cannot represent."""
        with pytest.raises(ValidationError):
            store.write("BAD NAME", "x")
        with pytest.raises(ValidationError):
            store.write("A=B", "x")

    def test_unwritable_location(self, tmp_path):
        """Test that a path under a regular file is unavailable."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = FileStore(Scope.USER, path=blocker / "environment")

        with pytest.raises((StoreUnavailableError, PermissionDeniedError)):
            store.write("A", "1")


class TestConstruction:
    """Test store construction."""

    def test_default_machine_path(self):
        """Test default location of the machine store."""
        store = FileStore(Scope.MACHINE)
        assert store.location == DEFAULT_MACHINE_STORE

    def test_user_path_expands_home(self, tmp_path):
        """Test that ~ expands to the home directory."""
        store = FileStore(Scope.USER)
        assert store.location.startswith(str(tmp_path / "home"))

    def test_process_scope_is_rejected(self, tmp_path):
        """Test that process scope cannot be bound to a store."""
        with pytest.raises(ValidationError):
            FileStore(Scope.PROCESS, path=tmp_path / "x")
