"""Rewrite normalizer — user rewrites to platform rules.

Rewrites arrive in three groups.  ``beforeFiles`` rules run ahead of the
filesystem check and merge with later matches (``continue`` + ``override``);
``afterFiles`` and ``fallback`` rules stop on match and re-check the
filesystem.

Every internal rewrite also carries ``x-nextjs-rewritten-path`` /
``x-nextjs-rewritten-query`` headers so the rendering function can recover the
rewrite target.  When prefetch RSC or segment prefetches are active,
``afterFiles`` patterns are widened to forward an RSC suffix through the
rewrite.
"""

import re
from dataclasses import dataclass, replace

from prowl.description import RewriteEntry, RewriteGroups
from prowl.routing.headers import RoutingHeader
from prowl.routing.rules import Route

# Matches the compiled "optional trailing slash" tail of a source pattern,
# optionally preceded by an escaped slash: (?:\/)?$  or  \/(?:\/)?$
_OPTIONAL_TRAILING_SLASH = re.compile(r"(\\/(\?)?)?\(\?:\\/\)\?\$$")

# Destination placeholder for the forwarded suffix
RSC_SUFFIX_PLACEHOLDER = "$rscsuff"

_EXTERNAL_PREFIXES = ("http://", "https://")


@dataclass(frozen=True, slots=True)
class NormalizedRewrites:
    """Rewrite groups converted to platform rules."""

    before_files: tuple[Route, ...] = ()
    after_files: tuple[Route, ...] = ()
    fallback: tuple[Route, ...] = ()


def _to_route(entry: RewriteEntry) -> Route:
    return Route(
        src=entry.source_regex,
        dest=entry.destination,
        has=entry.has,
        missing=entry.missing,
        check=True,
    )


def normalize_rewrites(groups: RewriteGroups) -> NormalizedRewrites:
    """Map each rewrite 1:1 to a rule, applying per-group semantics."""
    return NormalizedRewrites(
        before_files=tuple(
            replace(_to_route(e), check=False, continue_=True, override=True)
            for e in groups.before_files
        ),
        after_files=tuple(_to_route(e) for e in groups.after_files),
        fallback=tuple(_to_route(e) for e in groups.fallback),
    )


def rsc_suffix_pattern(
    *,
    should_handle_prefetch_rsc: bool,
    should_handle_segment_prefetches: bool,
) -> str:
    """Alternation of RSC suffixes an ``afterFiles`` rewrite must forward."""
    parts = [r"\.rsc"]
    if should_handle_prefetch_rsc:
        parts.append(r"\.prefetch\.rsc")
    if should_handle_segment_prefetches:
        parts.append(r"\.segments/.+\.segment\.rsc")
    return "|".join(parts)


def split_destination(dest: str) -> tuple[str | None, str | None]:
    """Split an internal rewrite destination into ``(pathname, query)``.

    Splits on the first ``?`` and drops any ``#`` fragment from each half.
    External destinations (``http://`` / ``https://``) are not split and
    yield ``(None, None)``; the destination is a pattern, not a URL, so it is
    never handed to a URL parser.

    """
    if dest.startswith(_EXTERNAL_PREFIXES):
        return None, None

    pathname, sep, query = dest.partition("?")
    pathname = pathname.split("#", 1)[0]
    query = query.split("#", 1)[0]

    return pathname or None, (query or None) if sep else None


def _with_rsc_suffix(route: Route, suffix: str) -> Route:
    src, count = _OPTIONAL_TRAILING_SLASH.subn(
        lambda _m: f"(?:/)?(?<rscsuff>{suffix})?",
        route.src,
        count=1,
    )
    if not count or route.dest is None:
        return route

    dest = route.dest
    query_index = dest.find("?")
    if query_index == -1:
        dest = f"{dest}{RSC_SUFFIX_PLACEHOLDER}"
    else:
        dest = f"{dest[:query_index]}{RSC_SUFFIX_PLACEHOLDER}{dest[query_index:]}"
    return replace(route, src=src, dest=dest)


def with_rewrite_headers(
    routes: tuple[Route, ...],
    *,
    rsc_suffix: str | None = None,
) -> tuple[Route, ...]:
    """Attach rewritten-path/query headers and, optionally, an RSC suffix.

    Args:
        routes: Normalized rewrite rules.
        rsc_suffix: Suffix alternation to forward (``afterFiles`` only);
            ``None`` leaves patterns untouched.

    Rules lacking a source or destination are returned unmodified.

    """
    result: list[Route] = []
    for route in routes:
        if not route.src or not route.dest:
            result.append(route)
            continue

        pathname, query = split_destination(route.dest)

        if rsc_suffix is not None:
            route = _with_rsc_suffix(route, rsc_suffix)

        if pathname or query:
            headers = dict(route.headers or {})
            if pathname:
                headers[RoutingHeader.REWRITTEN_PATH.value] = pathname
            if query:
                headers[RoutingHeader.REWRITTEN_QUERY.value] = query
            route = replace(route, headers=headers)

        result.append(route)
    return tuple(result)


def convert_rewrites(
    groups: RewriteGroups,
    *,
    should_handle_prefetch_rsc: bool = False,
    should_handle_segment_prefetches: bool = False,
) -> NormalizedRewrites:
    """Normalize all rewrite groups and attach rewrite signalling.

    ``afterFiles`` rewrites ending in the optional-trailing-slash tail are
    widened to forward RSC suffixes only when a prefetch flag is active.

    """
    normalized = normalize_rewrites(groups)

    after_suffix: str | None = None
    if should_handle_prefetch_rsc or should_handle_segment_prefetches:
        after_suffix = rsc_suffix_pattern(
            should_handle_prefetch_rsc=should_handle_prefetch_rsc,
            should_handle_segment_prefetches=should_handle_segment_prefetches,
        )

    return NormalizedRewrites(
        before_files=with_rewrite_headers(normalized.before_files),
        after_files=with_rewrite_headers(normalized.after_files, rsc_suffix=after_suffix),
        fallback=with_rewrite_headers(normalized.fallback),
    )
