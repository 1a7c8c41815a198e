"""Prowl configuration.

ProwlConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ProwlConfig:
    """Configuration for a prowl run.

    Attributes:
        root: Project root directory.  Always resolved to an absolute path
              on construction.
        description: Build description file, relative to ``root``
            (``.json``, ``.yaml``/``.yml`` or ``.toml``).
        output: Output directory for the configuration document.
        config_name: File name of the configuration document.
        quiet: Suppress the summary banner.

    """

    root: Path = field(default_factory=Path.cwd)
    description: str = "build-description.json"
    output: Path = field(default_factory=lambda: Path(".vercel/output"))
    config_name: str = "config.json"
    quiet: bool = False

    def __post_init__(self) -> None:
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def description_path(self) -> Path:
        """Absolute path to the build description."""
        path = Path(self.description)
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output
