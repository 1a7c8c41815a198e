"""Compile log — the events of one or more route table compilations.

Events are kept in emission order, so reading a log back replays the
compile: facts derived, each fragment in table order, then the summary.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Builds compiled
    concurrently may share one log.

"""

import threading

from prowl.observability.events import CompileEvent, FragmentBuilt


class EventLog:
    """Ordered store of compile events.

    Usage::

        log = EventLog()
        compile_routes(description, log=log)
        log.phase_counts()   # {"initial": 2, "filesystem": 1, ...}

    """

    __slots__ = ("_events", "_lock")

    def __init__(self) -> None:
        self._events: list[CompileEvent] = []
        self._lock = threading.Lock()

    def append(self, event: CompileEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        phase: str | None = None,
        name: str | None = None,
    ) -> list[CompileEvent]:
        """Return recorded events in emission order.

        Args:
            event_type: Only events of this type.
            phase: Only fragments emitted in this phase (``initial`` before
                the first marker).
            name: Only fragments whose name contains this substring.

        """
        with self._lock:
            events = list(self._events)

        if event_type is not None:
            events = [e for e in events if isinstance(e, event_type)]
        if phase is not None:
            events = [e for e in events if isinstance(e, FragmentBuilt) and e.phase == phase]
        if name is not None:
            events = [e for e in events if isinstance(e, FragmentBuilt) and name in e.name]
        return events

    def phase_counts(self) -> dict[str, int]:
        """Sum fragment rule counts per phase, in phase order of appearance."""
        counts: dict[str, int] = {}
        for event in self.query(event_type=FragmentBuilt):
            counts[event.phase] = counts.get(event.phase, 0) + event.rule_count
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
