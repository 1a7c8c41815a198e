"""Build-output bookkeeping — derive the compiler's caller-supplied facts.

The framework reports what a build produced: function outputs, static files
and prerenders.  Before routes can be compiled, the packaging step must know
which error pages exist and which dynamic pages use ``fallback: false`` (and
which of their paths were actually prerendered).  This module derives those
facts; it never touches the filesystem.
"""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, TypeAlias

from prowl._errors import InvariantError
from prowl.description import Middleware
from prowl.observability.events import FactsDerived, now_ns

if TYPE_CHECKING:
    from prowl._types import Runtime
    from prowl.description import BuildDescription
    from prowl.observability.log import EventLog


class OutputType(StrEnum):
    """Kinds of function output the framework emits."""

    APP_PAGE = "APP_PAGE"
    APP_ROUTE = "APP_ROUTE"
    PAGES = "PAGES"
    PAGES_API = "PAGES_API"
    MIDDLEWARE = "MIDDLEWARE"


OperationType: TypeAlias = Literal["PAGE", "API"]


@dataclass(frozen=True, slots=True)
class FunctionOutput:
    """A serverless or edge function produced by the build.

    Attributes:
        id: Unique output id referenced by prerenders.
        pathname: Request path served (includes the base path).
        type: Output kind.
        runtime: ``nodejs`` or ``edge``.

    """

    id: str
    pathname: str
    type: OutputType
    runtime: Runtime = "nodejs"


@dataclass(frozen=True, slots=True)
class StaticFile:
    """A static file produced by the build."""

    pathname: str
    file_path: str


@dataclass(frozen=True, slots=True)
class PrerenderOutput:
    """A prerendered path backed by a parent function output.

    Attributes:
        pathname: Prerendered request path (includes the base path).
        parent_output_id: Id of the function output that renders it.
        parent_fallback_mode: The parent's fallback mode; ``False`` means
            only prerendered paths are servable.

    """

    pathname: str
    parent_output_id: str
    parent_fallback_mode: bool | str | None = None


@dataclass(frozen=True, slots=True)
class BuildOutputs:
    """Everything the framework build reported."""

    functions: tuple[FunctionOutput, ...] = ()
    static_files: tuple[StaticFile, ...] = ()
    prerenders: tuple[PrerenderOutput, ...] = ()
    middleware: FunctionOutput | None = None


@dataclass(frozen=True, slots=True)
class BuildFacts:
    """Facts the route compiler needs, derived from ``BuildOutputs``."""

    has_not_found_output: bool = False
    has_404_output: bool = False
    has_500_output: bool = False
    has_app_dir: bool = False
    has_pages_dir: bool = False
    prerender_fallback_false_map: dict[str, tuple[str, ...]] = field(default_factory=dict)
    static_html_pathnames: tuple[str, ...] = ()
    middleware_pathname: str | None = None

    def apply(self, description: BuildDescription) -> BuildDescription:
        """Return *description* with these facts filled in.

        A reported middleware output enables middleware even when the
        description declares none; declared matchers are kept.

        """
        middleware = description.middleware
        if self.middleware_pathname is not None:
            if middleware is None:
                middleware = Middleware(pathname=self.middleware_pathname)
            else:
                middleware = replace(middleware, pathname=self.middleware_pathname)
        return replace(
            description,
            has_not_found_output=self.has_not_found_output,
            has_404_output=self.has_404_output,
            has_500_output=self.has_500_output,
            has_app_dir=self.has_app_dir,
            has_pages_dir=self.has_pages_dir,
            prerender_fallback_false_map=dict(self.prerender_fallback_false_map),
            static_html_pathnames=self.static_html_pathnames,
            middleware=middleware,
        )


def operation_type(output: FunctionOutput) -> OperationType:
    """Classify a function: app-router and pages-router pages are ``PAGE``."""
    if output.type in (OutputType.APP_PAGE, OutputType.PAGES):
        return "PAGE"
    return "API"


def validate_middleware(output: FunctionOutput) -> None:
    """Raise ``InvariantError`` unless the middleware runs on a known runtime."""
    if output.runtime not in ("nodejs", "edge"):
        msg = f"Invalid middleware output {json.dumps(_describe(output))}"
        raise InvariantError(msg)


def _describe(output: FunctionOutput | PrerenderOutput) -> dict[str, object]:
    if isinstance(output, PrerenderOutput):
        return {
            "pathname": output.pathname,
            "parentOutputId": output.parent_output_id,
            "parentFallbackMode": output.parent_fallback_mode,
        }
    return {
        "id": output.id,
        "pathname": output.pathname,
        "type": output.type.value,
        "runtime": output.runtime,
    }


def _error_page_flags(pathnames: list[str]) -> tuple[bool, bool, bool]:
    return (
        any(p.endswith("/_not-found") for p in pathnames),
        any(p.endswith("/404") for p in pathnames),
        any(p.endswith("/500") for p in pathnames),
    )


def derive_build_facts(
    outputs: BuildOutputs,
    *,
    base_path: str = "",
    log: EventLog | None = None,
) -> BuildFacts:
    """Derive compiler facts from the build's outputs.

    Must complete before routes are compiled: the facts are required,
    immutable compiler inputs.

    Raises:
        InvariantError: If a ``fallback: false`` prerender references a
            parent that is not a ``nodejs`` function output, or the
            middleware runtime is unknown.  The build graph is inconsistent;
            this is never retried.

    """
    if outputs.middleware is not None:
        validate_middleware(outputs.middleware)

    pathnames = [f.pathname for f in outputs.functions]
    pathnames += [s.pathname for s in outputs.static_files]
    has_not_found, has_404, has_500 = _error_page_flags(pathnames)

    parents = {f.id: f for f in outputs.functions if f.runtime == "nodejs"}

    fallback_false: dict[str, list[str]] = {}
    for prerender in outputs.prerenders:
        if (
            prerender.parent_fallback_mode is not False
            or "_next/data" in prerender.pathname
            or prerender.pathname.endswith(".rsc")
        ):
            continue

        parent = parents.get(prerender.parent_output_id)
        if parent is None:
            msg = (
                f"Invariant: missing parent output {prerender.parent_output_id} "
                f"for prerender {json.dumps(_describe(prerender))}"
            )
            raise InvariantError(msg)

        parent_page = parent.pathname[len(base_path):]
        fallback_false.setdefault(parent_page, []).append(prerender.pathname[len(base_path):])

    facts = BuildFacts(
        has_not_found_output=has_not_found,
        has_404_output=has_404,
        has_500_output=has_500,
        has_app_dir=any(
            f.type in (OutputType.APP_PAGE, OutputType.APP_ROUTE) for f in outputs.functions
        ),
        has_pages_dir=any(
            f.type in (OutputType.PAGES, OutputType.PAGES_API) for f in outputs.functions
        ),
        prerender_fallback_false_map={k: tuple(v) for k, v in fallback_false.items()},
        static_html_pathnames=tuple(
            s.pathname for s in outputs.static_files
            if posixpath.splitext(s.file_path)[1] == ".html"
        ),
        middleware_pathname=(
            outputs.middleware.pathname
            if outputs.middleware is not None
            else None
        ),
    )

    if log is not None:
        log.append(FactsDerived(
            functions=len(outputs.functions),
            static_files=len(outputs.static_files),
            prerenders=len(outputs.prerenders),
            fallback_false_pages=len(facts.prerender_fallback_false_map),
            timestamp_ns=now_ns(),
        ))

    return facts
