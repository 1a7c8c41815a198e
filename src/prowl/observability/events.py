"""Compile events for build diagnostics.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class FragmentBuilt:
    """A route table fragment was assembled.

    Attributes:
        name: Fragment name (e.g. ``locale``, ``handle:filesystem``).
        phase: Most recent phase marker (``initial`` before the first).
        rule_count: Number of matching directives emitted (markers excluded).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    phase: str
    rule_count: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RouteTableCompiled:
    """A complete route table was produced.

    Attributes:
        build_id: Build the table was compiled for.
        rule_count: Total matching directives.
        i18n: Whether locale handling was emitted.
        duration_ms: Wall-clock compile time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    build_id: str
    rule_count: int
    i18n: bool
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class FactsDerived:
    """Build facts were derived from the framework's outputs.

    Attributes:
        functions: Number of function outputs scanned.
        static_files: Number of static file outputs scanned.
        prerenders: Number of prerender outputs scanned.
        fallback_false_pages: Pages with ``fallback: false`` prerenders.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    functions: int
    static_files: int
    prerenders: int
    fallback_false_pages: int
    timestamp_ns: int


CompileEvent: TypeAlias = FragmentBuilt | RouteTableCompiled | FactsDerived


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
