"""Page matching that honors ``fallback: false`` prerenders.

A dynamic page built with ``fallback: false`` serves only the paths that
were prerendered.  Any other path that matches its pattern must fall through
to later routes (and eventually the not-found page) instead of rendering on
demand.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

_DATA_PREFIX = re.compile(r"/_next/data/[^/]{1,}")
_JSON_SUFFIX = re.compile(r"\.json$")

# Stripped in order: segment prefetch, prefetch, plain RSC
_RSC_SUFFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\.segments(/.*)\.segment\.rsc$"),
    re.compile(r"\.prefetch\.rsc$"),
    re.compile(r"\.rsc$"),
)

# JS-style named group opener, excluding lookbehind (?<= and (?<!
_JS_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")


def to_python_regex(source: str) -> str:
    """Rewrite routing-engine named groups ``(?<name>`` as ``(?P<name>``."""
    return _JS_NAMED_GROUP.sub("(?P<", source)


@dataclass(frozen=True, slots=True)
class PageRoute:
    """A page and the compiled pattern of request paths it serves."""

    page: str
    regex: re.Pattern[str]

    @classmethod
    def from_source(cls, page: str, source_regex: str) -> PageRoute:
        return cls(page=page, regex=re.compile(to_python_regex(source_regex)))


def normalize_data_path(pathname: str) -> str:
    """``/_next/data/<id>/blog/a.json`` -> ``/blog/a``; ``.../index.json`` -> ``/``."""
    if not (pathname or "/").startswith("/_next/data"):
        return pathname
    pathname = _DATA_PREFIX.sub("", pathname, count=1)
    pathname = _JSON_SUFFIX.sub("", pathname)
    if pathname == "/index":
        return "/"
    return pathname


def strip_locale(pathname: str, locales: Sequence[str]) -> str:
    """Remove a leading locale segment (case-insensitive)."""
    if not locales:
        return pathname
    segment = pathname.split("/", 2)[1] if pathname.startswith("/") else ""
    lowered = {loc.lower() for loc in locales}
    if segment and segment.lower() in lowered:
        return pathname[len(segment) + 1:] or "/"
    return pathname


def match_page(
    pathname: str,
    routes: Sequence[PageRoute],
    fallback_false_map: Mapping[str, Sequence[str]],
    *,
    locales: Sequence[str] = (),
) -> str | None:
    """Return the page serving *pathname*, or ``None`` to fall through.

    The path is normalized (data prefix, RSC suffixes, locale prefix,
    trailing slash) before routes are tested in order.  A route whose page
    is in *fallback_false_map* only matches prerendered paths, compared both
    with and without the locale prefix.

    """
    path = normalize_data_path(pathname)
    for suffix in _RSC_SUFFIXES:
        path = suffix.sub("", path)

    path_with_locale = path
    path = strip_locale(path, locales)
    path = path.removesuffix("/") or "/"

    for route in routes:
        if not route.regex.search(path):
            continue
        prerendered = fallback_false_map.get(route.page)
        if prerendered is not None and (
            path not in prerendered and path_with_locale not in prerendered
        ):
            continue
        return route.page

    return None
