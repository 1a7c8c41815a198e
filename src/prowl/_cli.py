"""Prowl CLI — prowl compile / prowl inspect.

Entry point for the ``prowl`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the prowl CLI."""
    parser = argparse.ArgumentParser(
        prog="prowl",
        description="Compile a framework build description into deployment routing config.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # prowl compile
    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile the route table and write config.json",
    )
    compile_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    compile_parser.add_argument(
        "--description", default=None, help="Build description file (json, yaml or toml)",
    )
    compile_parser.add_argument("--output", default=None, help="Output directory")
    compile_parser.add_argument(
        "--stdout", action="store_true", help="Print the document instead of writing it",
    )
    compile_parser.add_argument(
        "--quiet", action="store_true", default=None, help="Suppress the summary banner",
    )

    # prowl inspect
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show fragments of the compiled route table by phase",
    )
    inspect_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    inspect_parser.add_argument(
        "--description", default=None, help="Build description file (json, yaml or toml)",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from prowl import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from prowl._errors import ProwlError
    from prowl.app import build, inspect

    try:
        if args.command == "compile":
            build(
                root=args.root,
                stdout=args.stdout,
                description=args.description,
                output=args.output,
                quiet=args.quiet,
            )
        elif args.command == "inspect":
            inspect(root=args.root, description=args.description)
    except ProwlError as exc:
        print(f"prowl: error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
