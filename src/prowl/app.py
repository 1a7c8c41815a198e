"""Prowl application — load, compile and write a route table.

The two public functions (build, inspect) are the primary entry points used
by the CLI.
"""

import sys
import time
from pathlib import Path

from prowl.config_loader import load_config, load_description
from prowl.description import BuildDescription
from prowl.export.writer import write_config
from prowl.observability.events import FragmentBuilt
from prowl.observability.log import EventLog
from prowl.routing.compiler import RouteTableCompiler, compile_routes
from prowl.routing.rules import RouteTable

__all__ = ["build", "compile_routes", "inspect"]


def _warnings(description: BuildDescription) -> list[str]:
    """Collect non-fatal observations about a build description."""
    warnings: list[str] = []
    if description.middleware is not None and not description.middleware.matchers:
        warnings.append(f"middleware {description.middleware.pathname} has no matchers")
    for page, paths in description.prerender_fallback_false_map.items():
        if not paths:
            warnings.append(f"{page} uses fallback: false but has no prerendered paths")
    i18n = description.i18n
    if i18n is not None and i18n.default_locale not in i18n.locales:
        warnings.append(f"default locale {i18n.default_locale!r} is not in the locale list")
    return warnings


def build(
    root: str | Path = ".",
    *,
    stdout: bool = False,
    log: EventLog | None = None,
    **kwargs: object,
) -> RouteTable:
    """Compile the build description under *root* and write the config document.

    Args:
        root: Project root directory.
        stdout: Print the document to stdout instead of writing it.
        log: Optional event log collecting compile events.
        **kwargs: Override ProwlConfig fields.

    Returns:
        The compiled route table.

    Raises:
        ConfigError: If the configuration or build description is invalid.
        InvariantError: If the build outputs or route table are inconsistent.
        ExportError: If the document cannot be written.

    """
    from prowl.banner import print_banner

    config = load_config(Path(root), **kwargs)
    log = log if log is not None else EventLog()
    t0 = time.perf_counter()

    description = load_description(config.description_path, log=log)
    compiler = RouteTableCompiler(description, log=log)
    table = compiler.compile()
    compile_ms = (time.perf_counter() - t0) * 1000

    if stdout:
        print(table.to_json())
        written = None
    else:
        written = write_config(table, config.output_path, filename=config.config_name)

    if not config.quiet:
        print_banner(
            config,
            table,
            build_id=description.build_id,
            compile_ms=compile_ms,
            written=written,
            warnings=_warnings(description),
        )

    return table


def inspect(root: str | Path = ".", **kwargs: object) -> None:
    """Print each fragment of the compiled table with its phase and rule count.

    Args:
        root: Project root directory.
        **kwargs: Override ProwlConfig fields.

    """
    config = load_config(Path(root), **kwargs)
    log = EventLog()
    description = load_description(config.description_path, log=log)
    RouteTableCompiler(description, log=log).compile()

    lines = [f"build {description.build_id}"]
    for event in log.query(event_type=FragmentBuilt):
        if event.name.startswith("handle:"):
            lines.append(f"-- {event.phase} --")
        elif event.rule_count:
            lines.append(f"  {event.name:<32} {event.rule_count:>4}")

    totals = ", ".join(f"{phase} {count}" for phase, count in log.phase_counts().items())
    lines.append(f"rules per phase: {totals}")

    print("\n".join(lines), file=sys.stderr)
