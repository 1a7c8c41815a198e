"""Data-route normalization between ``/_next/data/<buildId>/*.json`` and pages.

Only active for a pages-style route tree behind middleware: the middleware
sees canonical paths, so data requests are normalized to their page path
before routing and denormalized back to the data path afterwards.  The
``x-nextjs-data`` request header marks a request as a data request once the
prefix has been stripped.
"""

from prowl.description import BuildDescription
from prowl.routing.escape import escape_string_regexp
from prowl.routing.headers import RoutingHeader
from prowl.routing.paths import join_path
from prowl.routing.rules import HeaderTransform, Route, RouteCondition

_DATA_HEADER = RoutingHeader.NEXTJS_DATA.value

_HAS_DATA_HEADER = (RouteCondition(type="header", key=_DATA_HEADER),)


def normalize_data_routes(
    description: BuildDescription,
    *,
    is_override: bool = False,
) -> tuple[Route, ...]:
    """Rules converting data paths to canonical page paths.

    1. Tag ``_next/data/*`` requests with ``x-nextjs-data: 1`` when absent.
    2. Strip ``/_next/data/<buildId>/<rest>.json`` to ``/<rest>``.
    3. Map the resulting ``/index`` to ``/``.

    Args:
        description: The build being compiled.
        is_override: Mark the rewriting rules ``override`` (pre-redirect pass).

    """
    if not description.should_handle_middleware_data_resolving:
        return ()

    base_path = description.base_path
    src_base = escape_string_regexp(base_path)
    trailing = "/" if description.trailing_slash else ""

    return (
        Route(
            src=join_path("/", src_base, "/_next/data/(.*)"),
            missing=_HAS_DATA_HEADER,
            transforms=(HeaderTransform(target_key=_DATA_HEADER, args="1"),),
            continue_=True,
        ),
        Route(
            src="^" + join_path(
                "/",
                src_base,
                "/_next/data/",
                escape_string_regexp(description.build_id),
                "/(.*).json",
            ),
            dest=join_path("/", base_path, "/$1", trailing),
            override=is_override,
            continue_=True,
            has=_HAS_DATA_HEADER,
        ),
        Route(
            src=join_path("^/", src_base, "/index(?:/)?"),
            has=_HAS_DATA_HEADER,
            dest=join_path("/", base_path, trailing),
            override=is_override,
            continue_=True,
        ),
    )


def denormalize_data_routes(
    description: BuildDescription,
    *,
    is_override: bool = False,
) -> tuple[Route, ...]:
    """Rules converting canonical page paths back to data paths.

    The root maps to ``/_next/data/<buildId>/index.json``; every other
    non-``_next`` path maps to ``/_next/data/<buildId>/<path>.json``.  Both
    apply only to requests carrying ``x-nextjs-data``.

    """
    if not description.should_handle_middleware_data_resolving:
        return ()

    base_path = description.base_path
    src_base = escape_string_regexp(base_path)
    build_id = description.build_id

    if base_path and base_path != "/":
        root = f"{src_base}{'/$' if description.trailing_slash else '$'}"
    else:
        root = "$"

    return (
        Route(
            src=join_path("^/", root),
            has=_HAS_DATA_HEADER,
            dest=join_path("/", base_path, "/_next/data/", build_id, "/index.json"),
            continue_=True,
            override=is_override,
        ),
        Route(
            src=join_path("^/", src_base, "((?!_next/)(?:.*[^/]|.*))/?$"),
            has=_HAS_DATA_HEADER,
            dest=join_path("/", base_path, "/_next/data/", build_id, "/$1.json"),
            continue_=True,
            override=is_override,
        ),
    )
