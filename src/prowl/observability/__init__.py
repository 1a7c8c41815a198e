"""Compile observability — structured events for route table builds.

Events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production when several builds compile at once.

Quick Start:
    >>> from prowl.observability import EventLog
    >>> from prowl.routing.compiler import compile_routes
    >>> log = EventLog()
    >>> table = compile_routes(description, log=log)  # doctest: +SKIP
    >>> log.query(event_type=FragmentBuilt)  # doctest: +SKIP

"""

from prowl.observability.events import (
    CompileEvent,
    FactsDerived,
    FragmentBuilt,
    RouteTableCompiled,
    now_ns,
)
from prowl.observability.log import EventLog

__all__ = [
    "CompileEvent",
    "EventLog",
    "FactsDerived",
    "FragmentBuilt",
    "RouteTableCompiled",
    "now_ns",
]
