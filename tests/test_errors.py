"""Tests for prowl._errors."""

import pytest

from prowl._errors import (
    ConfigError,
    ExportError,
    InvariantError,
    ProwlError,
)


class TestErrorHierarchy:
    """All prowl errors inherit from ProwlError."""

    def test_prowl_error_is_exception(self) -> None:
        assert issubclass(ProwlError, Exception)

    def test_config_error_inherits(self) -> None:
        assert issubclass(ConfigError, ProwlError)

    def test_invariant_error_inherits(self) -> None:
        assert issubclass(InvariantError, ProwlError)

    def test_export_error_inherits(self) -> None:
        assert issubclass(ExportError, ProwlError)

    def test_catch_all_prowl_errors(self) -> None:
        """All specific errors are catchable via ProwlError."""
        for error_cls in (ConfigError, InvariantError, ExportError):
            with pytest.raises(ProwlError):
                raise error_cls("test")

    def test_message_preserved(self) -> None:
        err = InvariantError("Invariant: missing parent output p1")
        assert "missing parent output" in str(err)
