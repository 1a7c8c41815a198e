"""Tests for prowl.config."""

from pathlib import Path

import pytest

from prowl.config import ProwlConfig


class TestProwlConfig:
    """ProwlConfig — frozen dataclass with sensible defaults."""

    def test_defaults(self) -> None:
        config = ProwlConfig()
        assert config.description == "build-description.json"
        assert config.output == Path(".vercel/output")
        assert config.config_name == "config.json"
        assert config.quiet is False

    def test_frozen(self) -> None:
        config = ProwlConfig()
        with pytest.raises(AttributeError):
            config.quiet = True  # type: ignore[misc]

    def test_paths_resolve_from_root(self, tmp_path: Path) -> None:
        config = ProwlConfig(root=tmp_path)
        assert config.description_path == tmp_path / "build-description.json"
        assert config.output_path == tmp_path / ".vercel" / "output"

    def test_absolute_output_preserved(self, tmp_path: Path) -> None:
        output = Path("/tmp/custom-output")
        config = ProwlConfig(root=tmp_path, output=output)
        assert config.output_path == output

    def test_absolute_description_preserved(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "desc.yaml"
        config = ProwlConfig(root=tmp_path / "project", description=str(target))
        assert config.description_path == target

    def test_relative_root_resolved_to_absolute(self) -> None:
        """Relative root is resolved to absolute in __post_init__."""
        config = ProwlConfig(root=Path("site"))
        assert config.root.is_absolute()

    def test_absolute_root_unchanged(self, tmp_path: Path) -> None:
        """Absolute root is not modified by __post_init__."""
        config = ProwlConfig(root=tmp_path)
        assert config.root == tmp_path
