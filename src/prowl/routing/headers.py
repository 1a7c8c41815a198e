"""Header names used by generated rules and by the platform proxy.

Header names are a closed set.  Rules reference members of these
enumerations instead of free-form strings so a typo cannot leak into the
generated configuration.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import unquote


class RoutingHeader(StrEnum):
    """Headers read or written by the generated routing rules."""

    NEXTJS_DATA = "x-nextjs-data"
    REWRITTEN_PATH = "x-nextjs-rewritten-path"
    REWRITTEN_QUERY = "x-nextjs-rewritten-query"
    MATCHED_PATH = "x-matched-path"
    NEXTJS_MATCHED_PATH = "x-nextjs-matched-path"
    PRERENDER_REVALIDATE = "x-prerender-revalidate"
    RSC = "rsc"
    VARY = "vary"
    CACHE_CONTROL = "cache-control"
    CONTENT_TYPE = "content-type"
    LOCATION = "Location"


class IncomingHeader(StrEnum):
    """Client geo/IP headers injected by the platform proxy."""

    CITY = "x-vercel-ip-city"
    """City of the original client IP."""

    COUNTRY = "x-vercel-ip-country"
    """Country of the original client IP."""

    IP = "x-real-ip"
    """IP of the platform proxy, not the client."""

    LATITUDE = "x-vercel-ip-latitude"
    LONGITUDE = "x-vercel-ip-longitude"

    REGION = "x-vercel-ip-country-region"
    """Region of the original client IP."""


# Vary value attached to RSC rewrites
RSC_VARY = "RSC, Next-Router-State-Tree, Next-Router-Prefetch"

# Cookie the platform reads to remember the preferred locale
LOCALE_COOKIE = "NEXT_LOCALE"


@dataclass(frozen=True, slots=True)
class ClientGeo:
    """Client location as reported by the platform proxy.

    Attributes:
        ip: Proxy-reported IP address.
        city: Decoded city name.
        country: Decoded country code.
        region: Decoded region code.
        latitude: Latitude as reported (not parsed).
        longitude: Longitude as reported (not parsed).

    """

    ip: str | None = None
    city: str | None = None
    country: str | None = None
    region: str | None = None
    latitude: str | None = None
    longitude: str | None = None


def _header(
    headers: Mapping[str, str],
    name: IncomingHeader,
    *,
    decode: bool = False,
) -> str | None:
    value = headers.get(name.value)
    if value is None:
        # Header maps are case-insensitive on the wire
        lowered = {k.lower(): v for k, v in headers.items()}
        value = lowered.get(name.value)
    if value is None or value == "":
        return None
    return unquote(value) if decode else value


def client_geo(headers: Mapping[str, str]) -> ClientGeo:
    """Extract client geo/IP data from request *headers*.

    City, country and region values are URI-encoded by the proxy and are
    decoded here.  Missing or empty headers become ``None``.

    """
    return ClientGeo(
        ip=_header(headers, IncomingHeader.IP),
        city=_header(headers, IncomingHeader.CITY, decode=True),
        country=_header(headers, IncomingHeader.COUNTRY, decode=True),
        region=_header(headers, IncomingHeader.REGION, decode=True),
        latitude=_header(headers, IncomingHeader.LATITUDE),
        longitude=_header(headers, IncomingHeader.LONGITUDE),
    )
