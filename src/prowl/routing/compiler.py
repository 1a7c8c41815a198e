"""Route table compiler — build description to ordered platform rules.

The table is assembled from named fragment builders concatenated in a fixed
order.  Each builder takes the compile context and returns zero or more
entries; a disabled feature yields an empty tuple rather than a branch at
the call site.  Phase markers are fragments too, so the emission order below
is the whole routing contract:

    priority redirects, pre-redirect data normalization, locale handling,
    user headers, redirects, middleware, beforeFiles rewrites, literal
    404/500, data denormalization, RSC rewriting
    ── filesystem ──
    basePath image, data normalization, index RSC, afterFiles rewrites
    ── resource ──
    fallback rewrites, directory 404
    ── miss ──
    static 404, locale public files, segment prefetch fallback
    ── rewrite ──
    data denormalization, dynamic routes, middleware data routes
    ── hit ──
    immutable caching, x-matched-path
    ── error ──
    not-found, server error

The compiler is pure: the same description always yields an identical table.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from prowl.description import BuildDescription
from prowl.images import get_images_config
from prowl.observability.events import FragmentBuilt, RouteTableCompiled, now_ns
from prowl.routing.data_routes import denormalize_data_routes, normalize_data_routes
from prowl.routing.escape import escape_string_regexp
from prowl.routing.headers import LOCALE_COOKIE, RSC_VARY, RoutingHeader
from prowl.routing.paths import join_path
from prowl.routing.rewrites import NormalizedRewrites, convert_rewrites
from prowl.routing.rules import (
    ContentOverride,
    Handle,
    LocaleRedirect,
    Route,
    RouteCondition,
    RouteEntry,
    RouteTable,
    WildcardDomain,
    validate_phase_order,
)

if TYPE_CHECKING:
    from prowl._types import Phase
    from prowl.observability.log import EventLog

MAX_AGE_ONE_YEAR = 31536000

# Rewrite target reporting that middleware produced no match
NEXT_DATA_CATCHALL = "__next_data_catchall"

_RSC_REQUEST = (RouteCondition(type="header", key=RoutingHeader.RSC.value, value="1"),)
_NO_REVALIDATE = (
    RouteCondition(type="header", key=RoutingHeader.PRERENDER_REVALIDATE.value),
)


@dataclass(frozen=True, slots=True)
class CompileContext:
    """Facts derived once from the description and shared by all builders.

    Attributes:
        description: The build being compiled.
        base_path: Mount prefix (``""`` at the root), used in destinations.
        escaped_base_path: ``base_path`` escaped for use in ``src`` patterns.
        has_custom_base_path: ``base_path`` is set and is not ``/``.
        locales_pattern: Escaped alternation of all locales, or ``None``
            without i18n.
        escaped_build_id: Build id escaped for regex use.
        rewrites: Converted rewrite groups.

    """

    description: BuildDescription
    base_path: str
    escaped_base_path: str
    has_custom_base_path: bool
    locales_pattern: str | None
    escaped_build_id: str
    rewrites: NormalizedRewrites

    @classmethod
    def from_description(cls, description: BuildDescription) -> CompileContext:
        i18n = description.i18n
        locales_pattern = None
        if i18n is not None:
            locales_pattern = "|".join(escape_string_regexp(loc) for loc in i18n.locales)

        return cls(
            description=description,
            base_path=description.base_path,
            escaped_base_path=escape_string_regexp(description.base_path),
            has_custom_base_path=bool(description.base_path) and description.base_path != "/",
            locales_pattern=locales_pattern,
            escaped_build_id=escape_string_regexp(description.build_id),
            rewrites=convert_rewrites(
                description.rewrites,
                should_handle_prefetch_rsc=description.should_handle_prefetch_rsc,
                should_handle_segment_prefetches=description.should_handle_segment_prefetches,
            ),
        )

    def non_locale_prefix(self) -> str:
        """Pattern prefix matching paths outside ``_next`` with no locale prefix."""
        return (
            "^" + join_path("/", self.escaped_base_path, "/")
            + f"(?!(?:_next/.*|{self.locales_pattern})(?:/.*|$))"
        )


FragmentBuilder: TypeAlias = Callable[[CompileContext], tuple[RouteEntry, ...]]


@dataclass(frozen=True, slots=True)
class Fragment:
    """A named, independently testable piece of the route table."""

    name: str
    build: FragmentBuilder


# ---------------------------------------------------------------------------
# Before filesystem
# ---------------------------------------------------------------------------


def _redirect_routes(ctx: CompileContext, *, priority: bool) -> tuple[Route, ...]:
    return tuple(
        Route(
            src=r.source_regex,
            headers={RoutingHeader.LOCATION.value: r.destination},
            status=r.status_code,
            has=r.has,
            missing=r.missing,
            # Keeps priority redirects from sinking beneath locale rules
            continue_=priority,
        )
        for r in ctx.description.redirects
        if r.priority == priority
    )


def priority_redirects(ctx: CompileContext) -> tuple[Route, ...]:
    return _redirect_routes(ctx, priority=True)


def data_normalize_pre_redirect(ctx: CompileContext) -> tuple[Route, ...]:
    return normalize_data_routes(ctx.description, is_override=True)


def locale_routes(ctx: CompileContext) -> tuple[Route, ...]:
    """Locale prefixing, domain/locale detection and default-locale rewrites."""
    i18n = ctx.description.i18n
    if i18n is None:
        return ()

    base_path = ctx.base_path
    wildcard_base = join_path("/", base_path) if ctx.has_custom_base_path else ""
    default_prefix = join_path("/", base_path, i18n.default_locale)

    routes: list[Route] = [
        # Split in two so /index is never matched (trailing slash redirects)
        Route(
            src=ctx.non_locale_prefix() + "$",
            dest=f"{wildcard_base}$wildcard{'/' if ctx.description.trailing_slash else ''}",
            continue_=True,
        ),
        Route(
            src=ctx.non_locale_prefix() + "(.*)$",
            dest=f"{wildcard_base}$wildcard/$1",
            continue_=True,
        ),
    ]

    if i18n.domains and i18n.locale_detection:
        redirect: dict[str, str] = {}
        for item in i18n.domains:
            scheme = "http" if item.http else "https"
            redirect[item.default_locale] = f"{scheme}://{item.domain}/"
            for locale in item.locales or ():
                redirect[locale] = f"{scheme}://{item.domain}/{locale}"
        routes.append(Route(
            src="^" + join_path("/", ctx.escaped_base_path) + f"/?(?:{ctx.locales_pattern})?/?$",
            locale=LocaleRedirect(redirect=redirect, cookie=LOCALE_COOKIE),
            continue_=True,
        ))

    if i18n.locale_detection:
        routes.append(Route(
            src="/",
            locale=LocaleRedirect(
                redirect={
                    loc: "/" if loc == i18n.default_locale else f"/{loc}"
                    for loc in i18n.locales
                },
                cookie=LOCALE_COOKIE,
            ),
            continue_=True,
        ))

    routes.append(Route(
        src="^" + join_path("/", ctx.escaped_base_path) + "$",
        dest=default_prefix,
        continue_=True,
    ))
    routes.append(Route(
        src=ctx.non_locale_prefix() + "(.*)$",
        dest=f"{default_prefix}/$1",
        continue_=True,
    ))
    return tuple(routes)


def user_headers(ctx: CompileContext) -> tuple[Route, ...]:
    return tuple(
        Route(
            src=h.source_regex,
            headers=dict(h.headers),
            continue_=True,
            has=h.has,
            missing=h.missing,
            important=h.priority,
        )
        for h in ctx.description.headers
    )


def redirects(ctx: CompileContext) -> tuple[Route, ...]:
    return _redirect_routes(ctx, priority=False)


def middleware_matchers(ctx: CompileContext) -> tuple[Route, ...]:
    middleware = ctx.description.middleware
    if middleware is None:
        return ()
    return tuple(
        Route(
            src=m.source_regex,
            has=m.has,
            missing=m.missing,
            continue_=True,
            override=True,
            middleware_path=middleware.pathname,
            middleware_raw_src=(m.source,) if m.source else (),
        )
        for m in middleware.matchers
    )


def before_files_rewrites(ctx: CompileContext) -> tuple[Route, ...]:
    return ctx.rewrites.before_files


def literal_status_routes(ctx: CompileContext) -> tuple[Route, ...]:
    """Short-circuit literal ``/404`` and ``/500`` requests to their status."""
    src_base = ctx.escaped_base_path
    if ctx.locales_pattern is not None:
        prefix = join_path("/", src_base, "/") + f"(?:{ctx.locales_pattern})?[/]?"
        not_found_src = prefix + "404/?"
        error_src = prefix + "500/?"
    else:
        not_found_src = join_path("/", src_base, "404/?")
        error_src = join_path("/", src_base, "500/?")

    return (
        Route(src=not_found_src, status=404, continue_=True, missing=_NO_REVALIDATE),
        Route(src=error_src, status=500, continue_=True),
    )


def data_denormalize_pre_filesystem(ctx: CompileContext) -> tuple[Route, ...]:
    return denormalize_data_routes(ctx.description, is_override=True)


def rsc_rewrites(ctx: CompileContext) -> tuple[Route, ...]:
    """Rewrite ``rsc: 1`` requests to their ``.rsc`` output."""
    if not ctx.description.has_app_dir:
        return ()
    base_path = ctx.base_path
    vary = {RoutingHeader.VARY.value: RSC_VARY}
    return (
        Route(
            src="^" + join_path("/", ctx.escaped_base_path, "/?"),
            has=_RSC_REQUEST,
            dest=join_path("/", base_path, "/index.rsc"),
            headers=dict(vary),
            continue_=True,
            override=True,
        ),
        Route(
            src="^" + join_path("/", ctx.escaped_base_path, "/((?!.+\\.rsc).+?)(?:/)?$"),
            has=_RSC_REQUEST,
            dest=join_path("/", base_path, "/$1.rsc"),
            headers=dict(vary),
            continue_=True,
            override=True,
        ),
    )


# ---------------------------------------------------------------------------
# filesystem -> resource
# ---------------------------------------------------------------------------


def image_base_path(ctx: CompileContext) -> tuple[Route, ...]:
    if not ctx.base_path:
        return ()
    return (
        Route(
            src=join_path("/", ctx.escaped_base_path, "_next/image/?"),
            dest="/_next/image",
            check=True,
        ),
    )


def data_normalize_post_filesystem(ctx: CompileContext) -> tuple[Route, ...]:
    routes = normalize_data_routes(ctx.description)
    if not ctx.description.has_middleware:
        # No-op rewrite forcing the rewrite phase, then 404 on no match
        routes += (
            Route(
                src=join_path("/", ctx.escaped_base_path, "_next/data/(.*)"),
                dest=join_path("/", ctx.base_path, "_next/data/$1"),
                check=True,
            ),
        )
    return routes


def index_rsc(ctx: CompileContext) -> tuple[Route, ...]:
    if not ctx.description.has_app_dir:
        return ()
    return (
        Route(
            src=join_path("/", ctx.escaped_base_path, "/index(\\.action|\\.rsc)"),
            dest=join_path("/", ctx.base_path),
            continue_=True,
        ),
    )


def after_files_rewrites(ctx: CompileContext) -> tuple[Route, ...]:
    routes = ctx.rewrites.after_files
    if ctx.description.has_app_dir:
        # Repair rewrites that produced a bare /.rsc
        routes += (
            Route(
                src=join_path("/", ctx.escaped_base_path, "/\\.rsc$"),
                dest=join_path("/", ctx.base_path, "/index.rsc"),
                check=True,
            ),
            Route(
                src=join_path("/", ctx.escaped_base_path, "(.+)/\\.rsc$"),
                dest=join_path("/", ctx.base_path, "$1.rsc"),
                check=True,
            ),
        )
    return routes


# ---------------------------------------------------------------------------
# resource -> miss -> rewrite
# ---------------------------------------------------------------------------


def fallback_rewrites(ctx: CompileContext) -> tuple[Route, ...]:
    return ctx.rewrites.fallback


def directory_not_found(ctx: CompileContext) -> tuple[Route, ...]:
    return (Route(src=join_path("/", ctx.escaped_base_path, ".*"), status=404),)


def static_not_found(ctx: CompileContext) -> tuple[Route, ...]:
    return (
        Route(
            src=join_path("/", ctx.escaped_base_path, "_next/static/.+"),
            status=404,
            check=True,
            dest=join_path("/", ctx.base_path, "_next/static/not-found.txt"),
            headers={RoutingHeader.CONTENT_TYPE.value: "text/plain; charset=utf-8"},
        ),
    )


def locale_public_files(ctx: CompileContext) -> tuple[Route, ...]:
    """Strip locale prefixes so public files and unprefixed outputs resolve."""
    i18n = ctx.description.i18n
    if i18n is None:
        return ()

    base_path = ctx.base_path
    routes: list[Route] = []

    if not i18n.locale_detection:
        # Default-locale rewrite only once all other routing has run
        default_prefix = join_path("/", base_path, i18n.default_locale)
        routes.append(Route(
            src="^" + join_path("/", ctx.escaped_base_path) + "$",
            dest=default_prefix,
            check=True,
        ))
        routes.append(Route(
            src=ctx.non_locale_prefix() + "(.*)$",
            dest=f"{default_prefix}/$1",
            check=True,
        ))

    routes.append(Route(
        src=join_path("/", ctx.escaped_base_path, escape_string_regexp(i18n.default_locale)),
        dest="/",
        check=True,
    ))
    routes.append(Route(
        src="^" + join_path("/", ctx.escaped_base_path) + f"/?(?:{ctx.locales_pattern})/(.*)",
        dest=join_path("/", base_path, "/") + "$1",
        check=True,
    ))
    return tuple(routes)


def segment_prefetch_fallback(ctx: CompileContext) -> tuple[Route, ...]:
    description = ctx.description
    if not description.should_handle_segment_prefetches:
        return ()
    suffix = ".prefetch.rsc" if description.should_handle_prefetch_rsc else ".rsc"
    return (
        Route(
            src="^/(?<path>.+)(?<rscSuffix>\\.segments/.+\\.segment\\.rsc)(?:/)?$",
            dest=f"/$path{suffix}",
            check=True,
        ),
    )


# ---------------------------------------------------------------------------
# rewrite -> hit
# ---------------------------------------------------------------------------


def data_denormalize_post_rewrite(ctx: CompileContext) -> tuple[Route, ...]:
    return denormalize_data_routes(ctx.description)


def dynamic_routes(ctx: CompileContext) -> tuple[Route, ...]:
    """Dynamic page routes, guarded against malformed ``_next/data`` URLs."""
    description = ctx.description
    guard_data = description.has_pages_dir and not description.has_middleware
    added_guard = False

    routes: list[Route] = []
    for route in description.dynamic_routes:
        if guard_data and not added_guard and "_next/data" not in route.source_regex:
            added_guard = True
            routes.append(Route(
                src=join_path("/", ctx.escaped_base_path, "_next/data/(.*)"),
                dest=join_path("/", ctx.base_path, "404"),
                status=404,
                check=True,
            ))
        routes.append(Route(
            src=route.source_regex,
            dest=route.destination,
            check=True,
            has=route.has,
            missing=route.missing,
        ))
    return tuple(routes)


def middleware_data_routes(ctx: CompileContext) -> tuple[Route, ...]:
    if not ctx.description.has_middleware:
        return ()
    src = "^" + join_path(
        "/", ctx.escaped_base_path, "/_next/data/", ctx.escaped_build_id, "/(.*).json",
    )
    return (
        Route(
            src=src,
            headers={RoutingHeader.NEXTJS_MATCHED_PATH.value: "/$1"},
            continue_=True,
            override=True,
        ),
        # Catch-all so middleware effects on data requests never 404
        Route(src=src, dest=NEXT_DATA_CATCHALL),
    )


# ---------------------------------------------------------------------------
# hit -> error
# ---------------------------------------------------------------------------


def immutable_assets(ctx: CompileContext) -> tuple[Route, ...]:
    """Cache hashed framework assets indefinitely."""
    kinds = f"(?:[^/]+/pages|pages|chunks|runtime|css|image|media|{ctx.escaped_build_id})"
    return (
        Route(
            src=join_path("/", ctx.escaped_base_path, f"_next/static/{kinds}/.+"),
            headers={
                RoutingHeader.CACHE_CONTROL.value: f"public,max-age={MAX_AGE_ONE_YEAR},immutable",
            },
            continue_=True,
            important=True,
        ),
    )


def matched_path(ctx: CompileContext) -> tuple[Route, ...]:
    if ctx.has_custom_base_path:
        root_src = join_path("/", ctx.escaped_base_path, "/?(?:index)?(?:/)?$")
    else:
        root_src = "/(?:index)?(?:/)?$"
    header = RoutingHeader.MATCHED_PATH.value
    return (
        Route(src=root_src, headers={header: "/"}, continue_=True, important=True),
        Route(
            src=join_path("/", ctx.escaped_base_path, "/((?!index$).*?)(?:/)?$"),
            headers={header: "/$1"},
            continue_=True,
            important=True,
        ),
    )


# ---------------------------------------------------------------------------
# error
# ---------------------------------------------------------------------------


def _error_routes(
    ctx: CompileContext,
    *,
    status: int,
    page: str,
    localized: bool,
) -> tuple[Route, ...]:
    base_path = ctx.base_path
    src_base = ctx.escaped_base_path
    i18n = ctx.description.i18n
    if localized and i18n is not None:
        return (
            Route(
                src=join_path("/", src_base, "/") + f"(?<nextLocale>{ctx.locales_pattern})(/.*|$)",
                dest=join_path("/", base_path, "/$nextLocale", page),
                status=status,
                case_sensitive=True,
            ),
            Route(
                src=join_path("/", src_base, ".*"),
                dest=join_path("/", base_path, f"/{i18n.default_locale}", page),
                status=status,
            ),
        )
    # With a base path the base path itself must match, slash or not
    return (
        Route(
            src=join_path("/", src_base, "?.*" if ctx.has_custom_base_path else ".*"),
            dest=join_path("/", base_path, page),
            status=status,
        ),
    )


def not_found(ctx: CompileContext) -> tuple[Route, ...]:
    return _error_routes(
        ctx,
        status=404,
        page=ctx.description.not_found_path,
        localized=True,
    )


def server_error(ctx: CompileContext) -> tuple[Route, ...]:
    # Localized 500 pages exist only when a 500 page was built
    has_500 = ctx.description.has_500_output
    return _error_routes(
        ctx,
        status=500,
        page="/500" if has_500 else "/_error",
        localized=has_500,
    )


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _marker(phase: Phase) -> Fragment:
    def build(_ctx: CompileContext) -> tuple[RouteEntry, ...]:
        return (Handle(phase),)

    return Fragment(name=f"handle:{phase}", build=build)


FRAGMENTS: tuple[Fragment, ...] = (
    Fragment("priority-redirects", priority_redirects),
    Fragment("data-normalize-pre-redirect", data_normalize_pre_redirect),
    Fragment("locale", locale_routes),
    Fragment("headers", user_headers),
    Fragment("redirects", redirects),
    Fragment("middleware", middleware_matchers),
    Fragment("before-files-rewrites", before_files_rewrites),
    Fragment("literal-status", literal_status_routes),
    Fragment("data-denormalize-pre-filesystem", data_denormalize_pre_filesystem),
    Fragment("rsc-rewrites", rsc_rewrites),
    _marker("filesystem"),
    Fragment("image-base-path", image_base_path),
    Fragment("data-normalize-post-filesystem", data_normalize_post_filesystem),
    Fragment("index-rsc", index_rsc),
    Fragment("after-files-rewrites", after_files_rewrites),
    _marker("resource"),
    Fragment("fallback-rewrites", fallback_rewrites),
    Fragment("directory-not-found", directory_not_found),
    _marker("miss"),
    Fragment("static-not-found", static_not_found),
    Fragment("locale-public-files", locale_public_files),
    Fragment("segment-prefetch-fallback", segment_prefetch_fallback),
    _marker("rewrite"),
    Fragment("data-denormalize-post-rewrite", data_denormalize_post_rewrite),
    Fragment("dynamic-routes", dynamic_routes),
    Fragment("middleware-data", middleware_data_routes),
    _marker("hit"),
    Fragment("immutable-assets", immutable_assets),
    Fragment("matched-path", matched_path),
    _marker("error"),
    Fragment("not-found", not_found),
    Fragment("server-error", server_error),
)


class RouteTableCompiler:
    """Compiles a ``BuildDescription`` into a ``RouteTable``.

    Usage::

        compiler = RouteTableCompiler(description)
        table = compiler.compile()
        table.to_json()

    Args:
        description: The complete, resolved build description.
        log: Optional event log receiving one ``FragmentBuilt`` event per
            fragment and a final ``RouteTableCompiled`` event.

    """

    __slots__ = ("_ctx", "_description", "_log")

    def __init__(self, description: BuildDescription, *, log: EventLog | None = None) -> None:
        self._description = description
        self._log = log
        self._ctx = CompileContext.from_description(description)

    def iter_fragments(self) -> Iterator[tuple[str, str, tuple[RouteEntry, ...]]]:
        """Yield ``(name, phase, entries)`` for each fragment in emission order.

        ``phase`` is the most recent marker (``"initial"`` before the first).

        """
        phase = "initial"
        for fragment in FRAGMENTS:
            entries = fragment.build(self._ctx)
            for entry in entries:
                if isinstance(entry, Handle):
                    phase = entry.phase
            yield fragment.name, phase, entries

    def compile(self) -> RouteTable:
        """Assemble the full route table.

        Raises:
            InvariantError: If the assembled table violates the phase order.

        """
        start = time.perf_counter()
        routes: list[RouteEntry] = []

        for name, phase, entries in self.iter_fragments():
            routes.extend(entries)
            if self._log is not None:
                self._log.append(FragmentBuilt(
                    name=name,
                    phase=phase,
                    rule_count=sum(1 for e in entries if isinstance(e, Route)),
                    timestamp_ns=now_ns(),
                ))

        assembled = tuple(routes)
        validate_phase_order(assembled)

        table = RouteTable(
            routes=assembled,
            images=get_images_config(self._description.images),
            overrides=self._overrides(),
            wildcard=self._wildcard(),
        )

        if self._log is not None:
            self._log.append(RouteTableCompiled(
                build_id=self._description.build_id,
                rule_count=len(table.rules),
                i18n=self._description.i18n is not None,
                duration_ms=(time.perf_counter() - start) * 1000,
                timestamp_ns=now_ns(),
            ))

        return table

    def _wildcard(self) -> tuple[WildcardDomain, ...] | None:
        i18n = self._description.i18n
        if i18n is None or i18n.domains is None:
            return None
        return tuple(
            WildcardDomain(
                domain=item.domain,
                value=(
                    ""
                    if item.default_locale == i18n.default_locale
                    else f"/{item.default_locale}"
                ),
            )
            for item in i18n.domains
        )

    def _overrides(self) -> dict[str, ContentOverride]:
        return {
            join_path("./", pathname + ".html"): ContentOverride(
                content_type="text/html; charset=utf-8",
                path=join_path("./", pathname),
            )
            for pathname in self._description.static_html_pathnames
        }


def compile_routes(description: BuildDescription, *, log: EventLog | None = None) -> RouteTable:
    """Compile *description* into a route table (see ``RouteTableCompiler``)."""
    return RouteTableCompiler(description, log=log).compile()
