"""Image configuration projector.

Maps the framework's image-optimization settings into the platform's shape.
Glob-style remote/local patterns become anchored regex sources; everything
else is carried through unchanged.
"""

from typing import Any

from wcmatch import glob

from prowl.description import ImagesConfig

_GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.FORCEUNIX


def glob_to_regex(pattern: str, *, dot: bool = False) -> str:
    """Translate a glob *pattern* into an anchored regex source.

    ``**`` as a whole segment matches any number of segments; elsewhere ``*``
    stays within a segment.  Brace alternatives expand into one alternation.

    ``glob_to_regex("/assets/**")``   matches ``/assets/a/b.png``
    ``glob_to_regex("*.example.com")`` matches ``cdn.example.com``

    """
    flags = _GLOB_FLAGS | (glob.DOTGLOB if dot else 0)
    include, _ = glob.translate(pattern, flags=flags)
    if len(include) == 1:
        return include[0]
    return "|".join(f"(?:{source})" for source in include)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is ``None``."""
    return {k: v for k, v in data.items() if v is not None}


def get_images_config(images: ImagesConfig | None) -> dict[str, Any]:
    """Project *images* into the platform's image configuration.

    Absent collections become empty lists; unset scalar settings are omitted.

    """
    images = images or ImagesConfig()

    remote_patterns = [
        _compact({
            "protocol": p.protocol.removesuffix(":") if p.protocol else None,
            "hostname": glob_to_regex(p.hostname),
            "port": p.port,
            "pathname": glob_to_regex(p.pathname or "**", dot=True),
            "search": p.search,
        })
        for p in images.remote_patterns
    ]

    local_patterns = [
        _compact({
            "pathname": glob_to_regex(p.pathname or "**", dot=True),
            "search": p.search,
        })
        for p in images.local_patterns or ()
    ]

    return _compact({
        "localPatterns": local_patterns,
        "remotePatterns": remote_patterns,
        "sizes": [*images.image_sizes, *images.device_sizes],
        "domains": list(images.domains),
        "qualities": list(images.qualities) if images.qualities is not None else None,
        "minimumCacheTTL": images.minimum_cache_ttl,
        "formats": list(images.formats) if images.formats is not None else None,
        "dangerouslyAllowSVG": images.dangerously_allow_svg,
        "contentSecurityPolicy": images.content_security_policy,
        "contentDispositionType": images.content_disposition_type,
    })
