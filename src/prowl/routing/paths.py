"""POSIX path joining for route patterns and destinations.

Generated patterns are assembled from path-like pieces (``"/"``, the base
path, ``"/_next/data/(.*)"``).  ``join_path`` joins them the way a POSIX
path joiner does: separators are collapsed, ``.`` and ``..`` segments are
resolved and a trailing separator is preserved.  Regex fragments survive
because their characters never form a lone ``.`` or ``..`` segment.
"""


def join_path(*parts: str) -> str:
    """Join *parts* with ``/`` and normalize the result.

    ``join_path("/", "", "/_next/data/(.*)")``  -> ``/_next/data/(.*)``
    ``join_path("/", "/docs", "404/?")``        -> ``/docs/404/?``
    ``join_path("./", "/about.html")``          -> ``about.html``

    """
    joined = "/".join(p for p in parts if p)
    return normalize_path(joined)


def normalize_path(path: str) -> str:
    """Normalize a POSIX path string without touching the filesystem."""
    if not path:
        return "."

    is_absolute = path.startswith("/")
    trailing = path.endswith("/")

    segments: list[str] = []
    for seg in path.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if segments and segments[-1] != "..":
                segments.pop()
            elif not is_absolute:
                segments.append("..")
            continue
        segments.append(seg)

    result = "/".join(segments)
    if not result and not is_absolute:
        result = "."
    if trailing and result:
        result += "/"
    if is_absolute:
        result = "/" + result
    return result
