"""Rule, phase marker and route table value types.

Every generated rule is a frozen ``Route``; phase markers are ``Handle``
sentinels.  Both serialize to the platform's configuration document with a
fixed key order, so an identical table always yields an identical document.
"""

import json
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from prowl._errors import InvariantError
from prowl._types import PHASE_ORDER, ConditionType, Phase


@dataclass(frozen=True, slots=True)
class RouteCondition:
    """A ``has`` / ``missing`` condition on a request attribute.

    Attributes:
        type: Which request attribute to inspect.
        key: Header, cookie or query name (``None`` for host conditions).
        value: Optional required value (a literal or a regex source).

    """

    type: ConditionType
    key: str | None = None
    value: str | None = None

    def to_dict(self) -> dict[str, str]:
        data: dict[str, str] = {"type": self.type}
        if self.key is not None:
            data["key"] = self.key
        if self.value is not None:
            data["value"] = self.value
        return data


@dataclass(frozen=True, slots=True)
class HeaderTransform:
    """A request-header mutation applied when a rule matches."""

    target_key: str
    args: str
    type: str = "request.headers"
    op: str = "append"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "op": self.op,
            "target": {"key": self.target_key},
            "args": self.args,
        }


@dataclass(frozen=True, slots=True)
class LocaleRedirect:
    """Locale-detection redirect table keyed by locale code.

    Attributes:
        redirect: Locale code -> redirect target, in insertion order.
        cookie: Cookie consulted for an explicit locale preference.

    """

    redirect: dict[str, str]
    cookie: str

    def to_dict(self) -> dict[str, Any]:
        return {"redirect": dict(self.redirect), "cookie": self.cookie}


@dataclass(frozen=True, slots=True)
class Route:
    """A single matching directive.

    ``continue_`` maps to the ``continue`` key (a Python keyword).

    Attributes:
        src: Regex source matched against the request path.
        dest: Destination template applied on match.
        headers: Response headers set on match.
        status: Status code to respond with.
        has: Conditions that must all be present.
        missing: Conditions that must all be absent.
        check: Re-run the filesystem check after rewriting.
        continue_: Keep evaluating subsequent rules after a match.
        override: Replace, rather than merge with, earlier matches.
        important: Elevate header-setting above normal priority.
        case_sensitive: Match ``src`` case-sensitively.
        locale: Locale-detection redirect table.
        transforms: Request mutations applied on match.
        middleware_path: Middleware output that handles the match.
        middleware_raw_src: The matcher sources as declared by the user.

    """

    src: str
    dest: str | None = None
    headers: dict[str, str] | None = None
    status: int | None = None
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None
    check: bool = False
    continue_: bool = False
    override: bool = False
    important: bool = False
    case_sensitive: bool = False
    locale: LocaleRedirect | None = None
    transforms: tuple[HeaderTransform, ...] | None = None
    middleware_path: str | None = None
    middleware_raw_src: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the platform's rule object, omitting unset keys."""
        data: dict[str, Any] = {"src": self.src}
        if self.dest is not None:
            data["dest"] = self.dest
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.status is not None:
            data["status"] = self.status
        if self.has is not None:
            data["has"] = [c.to_dict() for c in self.has]
        if self.missing is not None:
            data["missing"] = [c.to_dict() for c in self.missing]
        if self.locale is not None:
            data["locale"] = self.locale.to_dict()
        if self.transforms is not None:
            data["transforms"] = [t.to_dict() for t in self.transforms]
        if self.check:
            data["check"] = True
        if self.continue_:
            data["continue"] = True
        if self.override:
            data["override"] = True
        if self.important:
            data["important"] = True
        if self.case_sensitive:
            data["caseSensitive"] = True
        if self.middleware_path is not None:
            data["middlewarePath"] = self.middleware_path
        if self.middleware_raw_src is not None:
            data["middlewareRawSrc"] = list(self.middleware_raw_src)
        return data


@dataclass(frozen=True, slots=True)
class Handle:
    """Phase marker partitioning the rule list."""

    phase: Phase

    def to_dict(self) -> dict[str, str]:
        return {"handle": self.phase}


RouteEntry: TypeAlias = Route | Handle


@dataclass(frozen=True, slots=True)
class WildcardDomain:
    """Locale domain served with an implicit locale prefix."""

    domain: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"domain": self.domain, "value": self.value}


@dataclass(frozen=True, slots=True)
class ContentOverride:
    """Per-path content-type override for a statically optimized page."""

    content_type: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"contentType": self.content_type, "path": self.path}


@dataclass(frozen=True, slots=True)
class RouteTable:
    """The compiled deployment configuration.

    Attributes:
        routes: Ordered rules and phase markers.
        images: Projected image-optimization configuration.
        overrides: Output path -> content-type override.
        wildcard: Locale domain table, or ``None`` without locale domains.
        version: Configuration document version.

    """

    routes: tuple[RouteEntry, ...]
    images: dict[str, Any] = field(default_factory=dict)
    overrides: dict[str, ContentOverride] = field(default_factory=dict)
    wildcard: tuple[WildcardDomain, ...] | None = None
    version: int = 3

    @property
    def rules(self) -> tuple[Route, ...]:
        """All matching directives, without phase markers."""
        return tuple(r for r in self.routes if isinstance(r, Route))

    def section(self, after: Phase | None) -> tuple[Route, ...]:
        """Return the rules following the *after* marker up to the next marker.

        ``section(None)`` returns the rules before the first marker.

        """
        start = 0
        if after is not None:
            start = self.routes.index(Handle(after)) + 1
        rules: list[Route] = []
        for entry in self.routes[start:]:
            if isinstance(entry, Handle):
                break
            rules.append(entry)
        return tuple(rules)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "routes": [r.to_dict() for r in self.routes],
            "overrides": {k: v.to_dict() for k, v in self.overrides.items()},
        }
        if self.wildcard is not None:
            data["wildcard"] = [w.to_dict() for w in self.wildcard]
        data["images"] = self.images
        return data

    def to_json(self, *, indent: int = 2) -> str:
        """Serialize the table as the platform's ``config.json`` document."""
        return json.dumps(self.to_dict(), indent=indent)


def validate_phase_order(routes: tuple[RouteEntry, ...]) -> None:
    """Check that every phase marker appears exactly once, in order.

    Raises:
        InvariantError: If a marker is missing, duplicated or out of order.

    """
    seen = [r.phase for r in routes if isinstance(r, Handle)]
    if tuple(seen) != PHASE_ORDER:
        msg = (
            f"Route table phase markers out of order: got {seen}, "
            f"expected {list(PHASE_ORDER)}"
        )
        raise InvariantError(msg)
