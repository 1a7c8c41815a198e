"""Write the compiled route table as the platform's configuration document."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prowl._errors import ExportError

if TYPE_CHECKING:
    from pathlib import Path

    from prowl.routing.rules import RouteTable

CONFIG_FILENAME = "config.json"


@dataclass(frozen=True, slots=True)
class WrittenConfig:
    """Record of a written configuration document.

    Attributes:
        output_path: Absolute path to the written file.
        size_bytes: Size of the written file in bytes.
        duration_ms: Time taken to serialize and write.

    """

    output_path: Path
    size_bytes: int
    duration_ms: float


def write_config(
    table: RouteTable,
    output_dir: Path,
    *,
    filename: str = CONFIG_FILENAME,
) -> WrittenConfig:
    """Serialize *table* to ``output_dir/filename``, creating directories.

    Raises:
        ExportError: If the directory or file cannot be written.

    """
    t0 = time.perf_counter()
    filepath = output_dir / filename
    data = (table.to_json() + "\n").encode("utf-8")

    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(data)
    except OSError as exc:
        msg = f"Failed to write {filepath}: {exc}"
        raise ExportError(msg) from exc

    return WrittenConfig(
        output_path=filepath,
        size_bytes=len(data),
        duration_ms=(time.perf_counter() - t0) * 1000,
    )
