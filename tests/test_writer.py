"""Tests for prowl.export.writer."""

import json
from pathlib import Path

import pytest

from prowl._errors import ExportError
from prowl.export.writer import CONFIG_FILENAME, write_config
from prowl.routing.compiler import compile_routes

from .conftest import make_description


class TestWriteConfig:
    """write_config — the configuration document on disk."""

    def test_writes_document(self, tmp_path: Path) -> None:
        table = compile_routes(make_description())
        written = write_config(table, tmp_path / "out")

        assert written.output_path == tmp_path / "out" / CONFIG_FILENAME
        text = written.output_path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text)["version"] == 3
        assert written.size_bytes == len(text.encode("utf-8"))
        assert written.duration_ms >= 0

    def test_custom_filename(self, tmp_path: Path) -> None:
        table = compile_routes(make_description())
        written = write_config(table, tmp_path, filename="routes.json")
        assert written.output_path.name == "routes.json"

    def test_identical_tables_identical_bytes(self, tmp_path: Path) -> None:
        description = make_description()
        a = write_config(compile_routes(description), tmp_path / "a")
        b = write_config(compile_routes(description), tmp_path / "b")
        assert a.output_path.read_bytes() == b.output_path.read_bytes()

    def test_unwritable_raises_export_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        table = compile_routes(make_description())
        with pytest.raises(ExportError, match="Failed to write"):
            write_config(table, blocker / "out")
