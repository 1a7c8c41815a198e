"""Build description — the compiler's complete, immutable input.

A ``BuildDescription`` is constructed once per build by the framework build
step (or loaded via ``prowl.config_loader.load_description``) and handed to
the compiler.  Optional groups default to "absent", which disables the
corresponding feature.
"""

from dataclasses import dataclass, field

from prowl.routing.rules import RouteCondition


@dataclass(frozen=True, slots=True)
class DomainLocale:
    """A domain dedicated to a default locale (and optionally others).

    Attributes:
        domain: Host name, e.g. ``example.fr``.
        default_locale: Locale served at the domain root.
        locales: Additional locales served under this domain.
        http: Serve over plain HTTP instead of HTTPS.

    """

    domain: str
    default_locale: str
    locales: tuple[str, ...] | None = None
    http: bool = False


@dataclass(frozen=True, slots=True)
class I18nConfig:
    """Internationalization settings.

    Attributes:
        default_locale: Locale used when none is requested.
        locales: All supported locales, in declaration order.
        domains: Locale-specific domains, or ``None`` when not configured.
        locale_detection: Redirect based on ``Accept-Language``.

    """

    default_locale: str
    locales: tuple[str, ...]
    domains: tuple[DomainLocale, ...] | None = None
    locale_detection: bool = True


@dataclass(frozen=True, slots=True)
class RewriteEntry:
    """A user-declared rewrite, already compiled to a regex source."""

    source_regex: str
    destination: str
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None


@dataclass(frozen=True, slots=True)
class RewriteGroups:
    """The three rewrite groups, evaluated at different phases."""

    before_files: tuple[RewriteEntry, ...] = ()
    after_files: tuple[RewriteEntry, ...] = ()
    fallback: tuple[RewriteEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class Redirect:
    """A user-declared redirect.

    ``priority`` redirects are emitted ahead of locale handling.
    """

    source_regex: str
    destination: str
    status_code: int = 307
    priority: bool = False
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None


@dataclass(frozen=True, slots=True)
class HeaderRule:
    """User-declared response headers for matching paths."""

    source_regex: str
    headers: dict[str, str]
    priority: bool = False
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None


@dataclass(frozen=True, slots=True)
class DynamicRoute:
    """A dynamic page route (e.g. ``/posts/[slug]``).

    Attributes:
        source_regex: Regex matching concrete request paths.
        destination: Destination template (usually the page with params).
        page: The page this route renders, used for fallback-false matching.
        has: Required conditions.
        missing: Forbidden conditions.

    """

    source_regex: str
    destination: str
    page: str | None = None
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None


@dataclass(frozen=True, slots=True)
class MiddlewareMatcher:
    """One middleware matcher: which requests invoke the middleware."""

    source_regex: str
    source: str | None = None
    has: tuple[RouteCondition, ...] | None = None
    missing: tuple[RouteCondition, ...] | None = None


@dataclass(frozen=True, slots=True)
class Middleware:
    """The build's middleware output, identified by its pathname."""

    pathname: str
    matchers: tuple[MiddlewareMatcher, ...] = ()


@dataclass(frozen=True, slots=True)
class RemotePattern:
    """Glob-style allow-list entry for remote images."""

    hostname: str
    protocol: str | None = None
    port: str | None = None
    pathname: str | None = None
    search: str | None = None


@dataclass(frozen=True, slots=True)
class LocalPattern:
    """Glob-style allow-list entry for local images."""

    pathname: str | None = None
    search: str | None = None


@dataclass(frozen=True, slots=True)
class ImagesConfig:
    """The framework's image-optimization configuration."""

    remote_patterns: tuple[RemotePattern, ...] = ()
    local_patterns: tuple[LocalPattern, ...] | None = None
    image_sizes: tuple[int, ...] = ()
    device_sizes: tuple[int, ...] = ()
    domains: tuple[str, ...] = ()
    qualities: tuple[int, ...] | None = None
    minimum_cache_ttl: int | None = None
    formats: tuple[str, ...] | None = None
    dangerously_allow_svg: bool | None = None
    content_security_policy: str | None = None
    content_disposition_type: str | None = None


@dataclass(frozen=True, slots=True)
class BuildDescription:
    """Everything the route compiler needs to know about one build.

    Attributes:
        build_id: Identifier embedded in data routes and static asset paths.
        base_path: Path prefix the application is mounted under (``""`` for root).
        trailing_slash: Canonical URLs end in ``/``.
        i18n: Internationalization settings, or ``None`` when disabled.
        rewrites: User rewrites, grouped by phase.
        redirects: User redirects, in declaration order.
        headers: User header rules, in declaration order.
        dynamic_routes: Dynamic page routes, in match order.
        middleware: The middleware output, or ``None`` without middleware.
        cache_components: Partial prerendering with prefetch RSC outputs.
        client_segment_cache: Per-segment prefetch outputs.
        has_app_dir: The build produced app-directory routes.
        has_pages_dir: The build produced pages-directory routes.
        has_not_found_output: A ``/_not-found`` output exists.
        has_404_output: A ``/404`` output exists.
        has_500_output: A ``/500`` output exists.
        prerender_fallback_false_map: Page -> prerendered paths for pages
            using ``fallback: false``.
        static_html_pathnames: Statically optimized HTML pages needing a
            content-type override.
        images: Image-optimization configuration.

    """

    build_id: str
    base_path: str = ""
    trailing_slash: bool = False
    i18n: I18nConfig | None = None
    rewrites: RewriteGroups = field(default_factory=RewriteGroups)
    redirects: tuple[Redirect, ...] = ()
    headers: tuple[HeaderRule, ...] = ()
    dynamic_routes: tuple[DynamicRoute, ...] = ()
    middleware: Middleware | None = None
    cache_components: bool = False
    client_segment_cache: bool = False
    has_app_dir: bool = False
    has_pages_dir: bool = False
    has_not_found_output: bool = False
    has_404_output: bool = False
    has_500_output: bool = False
    prerender_fallback_false_map: dict[str, tuple[str, ...]] = field(default_factory=dict)
    static_html_pathnames: tuple[str, ...] = ()
    images: ImagesConfig | None = None

    @property
    def has_middleware(self) -> bool:
        return self.middleware is not None

    @property
    def should_handle_middleware_data_resolving(self) -> bool:
        """Data routes are rewritten only for pages-style trees behind middleware."""
        return self.has_pages_dir and self.has_middleware

    @property
    def should_handle_prefetch_rsc(self) -> bool:
        return self.cache_components

    @property
    def should_handle_segment_prefetches(self) -> bool:
        return self.client_segment_cache or self.cache_components

    @property
    def not_found_path(self) -> str:
        """Not-found destination: ``/_not-found`` > ``/404`` > ``/_error``."""
        if self.has_not_found_output:
            return "/_not-found"
        if self.has_404_output:
            return "/404"
        return "/_error"
