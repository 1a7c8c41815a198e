"""Compile banner — status output after a route table is produced.

Prints a short summary with timing, rule counts per phase and any warnings.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from prowl._types import PHASE_ORDER

if TYPE_CHECKING:
    from prowl.config import ProwlConfig
    from prowl.export.writer import WrittenConfig
    from prowl.routing.rules import RouteTable


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_ORANGE = "\033[38;5;214m" if _COLOR else ""


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: ProwlConfig,
    table: RouteTable,
    *,
    build_id: str,
    compile_ms: float = 0.0,
    written: WrittenConfig | None = None,
    warnings: list[str] | None = None,
) -> None:
    """Print the compile summary to stderr.

    Args:
        config: Resolved ProwlConfig.
        table: The compiled route table.
        build_id: Build the table was compiled for.
        compile_ms: Time spent loading and compiling in milliseconds.
        written: The written document, or ``None`` when printed to stdout.
        warnings: Optional list of warning messages to display.

    """
    from prowl import __version__

    header = f"  {_ORANGE}{_BOLD}prowl{_RESET} {_DIM}v{__version__}{_RESET}  [{build_id}]"
    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]
    lines.append(f"  {_DIM}├─{_RESET} root: {_DIM}{config.root}{_RESET}")

    timing = f" {_DIM}in {compile_ms:.0f}ms{_RESET}" if compile_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} {_plural(len(table.rules), 'rule')} compiled{timing}")

    initial = len(table.section(None))
    if initial:
        lines.append(f"  {_DIM}├─{_RESET} initial: {initial}")
    for phase in PHASE_ORDER:
        count = len(table.section(phase))
        if count:
            lines.append(f"  {_DIM}├─{_RESET} {phase}: {count}")

    if table.overrides:
        lines.append(f"  {_DIM}├─{_RESET} {_plural(len(table.overrides), 'override')}")
    if table.wildcard:
        lines.append(f"  {_DIM}├─{_RESET} {_plural(len(table.wildcard), 'wildcard domain')}")

    if written is not None:
        lines.append(
            f"  {_DIM}└─{_RESET} output: {_DIM}{written.output_path}{_RESET} "
            f"({written.size_bytes} bytes)"
        )
    else:
        lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}stdout{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
