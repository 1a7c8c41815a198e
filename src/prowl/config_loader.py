"""Load ProwlConfig and BuildDescription from files.

``load_config`` merges ``prowl.yaml`` / ``prowl.toml`` with CLI kwargs (CLI
overrides file).  ``load_description`` reads a build description written by
the framework build step, using the framework's camelCase keys.
"""

from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from prowl._errors import ConfigError
from prowl.config import ProwlConfig
from prowl.description import (
    BuildDescription,
    DomainLocale,
    DynamicRoute,
    HeaderRule,
    I18nConfig,
    ImagesConfig,
    LocalPattern,
    Middleware,
    MiddlewareMatcher,
    Redirect,
    RemotePattern,
    RewriteEntry,
    RewriteGroups,
)
from prowl.export.outputs import (
    BuildOutputs,
    FunctionOutput,
    OutputType,
    PrerenderOutput,
    StaticFile,
    derive_build_facts,
)
from prowl.routing.rules import RouteCondition

if TYPE_CHECKING:
    from prowl.observability.log import EventLog

_CONFIG_KEYS = frozenset({"description", "output", "config_name", "quiet"})


# ---------------------------------------------------------------------------
# ProwlConfig
# ---------------------------------------------------------------------------


def load_config(root: Path, **overrides: object) -> ProwlConfig:
    """Load ProwlConfig from root, optionally merging prowl.yaml.

    Looks for prowl.yaml, prowl.yml, or prowl.toml in root.  If found, loads
    and merges with overrides.  Overrides take precedence; ``None`` overrides
    are ignored so unset CLI flags never mask file values.

    Raises:
        ConfigError: If the config file is malformed or has unknown keys.

    """
    file_config = _read_prowl_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    if "output" in merged and not isinstance(merged["output"], Path):
        merged["output"] = Path(str(merged["output"]))
    return ProwlConfig(root=root, **merged)  # type: ignore[arg-type]


def _read_prowl_config(root: Path) -> dict[str, object]:
    for name in ("prowl.yaml", "prowl.yml"):
        path = root / name
        if path.is_file():
            return _flatten_prowl_section(_read_mapping(path), path)
    toml_path = root / "prowl.toml"
    if toml_path.is_file():
        return _flatten_prowl_section(_read_mapping(toml_path), toml_path)
    return {}


def _flatten_prowl_section(data: Mapping[str, Any], path: Path) -> dict[str, object]:
    """Extract prowl.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("prowl")
    if isinstance(section, Mapping):
        result.update(section)
    for k, v in data.items():
        if k != "prowl":
            result[k] = v

    unknown = sorted(set(result) - _CONFIG_KEYS)
    if unknown:
        msg = f"Unknown keys in {path}: {', '.join(unknown)}"
        raise ConfigError(msg)
    return result


def _read_mapping(path: Path) -> Mapping[str, Any]:
    """Parse a JSON, YAML or TOML file into a mapping.

    Raises:
        ConfigError: If the file cannot be read, parsed, or is not a mapping.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ConfigError(msg) from exc

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        elif suffix == ".toml":
            data = tomllib.loads(text)
        elif suffix == ".json":
            data = json.loads(text)
        else:
            msg = f"Unsupported file type {path.suffix!r} for {path}"
            raise ConfigError(msg)
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, Mapping):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


# ---------------------------------------------------------------------------
# BuildDescription
# ---------------------------------------------------------------------------


def load_description(path: Path, *, log: EventLog | None = None) -> BuildDescription:
    """Read a build description file.

    When the file carries an ``outputs`` section, build facts are derived
    from it (see ``prowl.export.outputs``) and override the explicit fact
    fields.

    Raises:
        ConfigError: If the file is missing, malformed, or lacks ``buildId``.
        InvariantError: If ``outputs`` describes an inconsistent build graph.

    """
    if not path.is_file():
        msg = f"Build description not found: {path}"
        raise ConfigError(msg)
    return parse_description(_read_mapping(path), source=str(path), log=log)


def parse_description(
    data: Mapping[str, Any],
    *,
    source: str = "<description>",
    log: EventLog | None = None,
) -> BuildDescription:
    """Build a ``BuildDescription`` from a camelCase mapping."""
    build_id = data.get("buildId")
    if not isinstance(build_id, str) or not build_id:
        msg = f"{source}: 'buildId' must be a non-empty string"
        raise ConfigError(msg)

    config = _mapping(data.get("config"), "config", source)
    experimental = _mapping(config.get("experimental"), "config.experimental", source)
    routes = _mapping(data.get("routes"), "routes", source)
    rewrites = _mapping(routes.get("rewrites"), "routes.rewrites", source)

    try:
        description = BuildDescription(
            build_id=build_id,
            base_path=config.get("basePath") or "",
            trailing_slash=bool(config.get("trailingSlash", False)),
            i18n=_i18n(config.get("i18n")),
            rewrites=RewriteGroups(
                before_files=tuple(_rewrite(r) for r in rewrites.get("beforeFiles") or ()),
                after_files=tuple(_rewrite(r) for r in rewrites.get("afterFiles") or ()),
                fallback=tuple(_rewrite(r) for r in rewrites.get("fallback") or ()),
            ),
            redirects=tuple(_redirect(r) for r in routes.get("redirects") or ()),
            headers=tuple(_header_rule(h) for h in routes.get("headers") or ()),
            dynamic_routes=tuple(_dynamic_route(r) for r in routes.get("dynamicRoutes") or ()),
            middleware=_middleware(data.get("middleware")),
            cache_components=bool(experimental.get("cacheComponents", False)),
            client_segment_cache=bool(experimental.get("clientSegmentCache", False)),
            has_app_dir=bool(data.get("hasAppDir", False)),
            has_pages_dir=bool(data.get("hasPagesDir", False)),
            has_not_found_output=bool(data.get("hasNotFoundOutput", False)),
            has_404_output=bool(data.get("has404Output", False)),
            has_500_output=bool(data.get("has500Output", False)),
            prerender_fallback_false_map={
                str(page): tuple(paths)
                for page, paths in (data.get("prerenderFallbackFalseMap") or {}).items()
            },
            static_html_pathnames=tuple(data.get("staticHtmlPathnames") or ()),
            images=_images(config.get("images")),
        )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        msg = f"{source}: malformed build description: {exc}"
        raise ConfigError(msg) from exc

    outputs = data.get("outputs")
    if outputs is not None:
        section = _mapping(outputs, "outputs", source)
        try:
            build_outputs = _outputs(section)
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            msg = f"{source}: malformed build outputs: {exc}"
            raise ConfigError(msg) from exc
        facts = derive_build_facts(
            build_outputs,
            base_path=description.base_path,
            log=log,
        )
        description = facts.apply(description)

    return description


def _mapping(value: object, name: str, source: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        msg = f"{source}: {name!r} must be a mapping, got {type(value).__name__}"
        raise ConfigError(msg)
    return value


def _conditions(items: object) -> tuple[RouteCondition, ...] | None:
    if items is None:
        return None
    return tuple(
        RouteCondition(type=c["type"], key=c.get("key"), value=c.get("value"))
        for c in items  # type: ignore[attr-defined]
    )


def _rewrite(data: Mapping[str, Any]) -> RewriteEntry:
    return RewriteEntry(
        source_regex=data["sourceRegex"],
        destination=data["destination"],
        has=_conditions(data.get("has")),
        missing=_conditions(data.get("missing")),
    )


def _redirect(data: Mapping[str, Any]) -> Redirect:
    return Redirect(
        source_regex=data["sourceRegex"],
        destination=data["destination"],
        status_code=int(data.get("statusCode", 307)),
        priority=bool(data.get("priority", False)),
        has=_conditions(data.get("has")),
        missing=_conditions(data.get("missing")),
    )


def _header_rule(data: Mapping[str, Any]) -> HeaderRule:
    headers = data["headers"]
    if isinstance(headers, list):
        # Framework form: [{"key": ..., "value": ...}]
        headers = {h["key"]: h["value"] for h in headers}
    return HeaderRule(
        source_regex=data["sourceRegex"],
        headers={str(k): str(v) for k, v in headers.items()},
        priority=bool(data.get("priority", False)),
        has=_conditions(data.get("has")),
        missing=_conditions(data.get("missing")),
    )


def _dynamic_route(data: Mapping[str, Any]) -> DynamicRoute:
    return DynamicRoute(
        source_regex=data["sourceRegex"],
        destination=data["destination"],
        page=data.get("page"),
        has=_conditions(data.get("has")),
        missing=_conditions(data.get("missing")),
    )


def _middleware(data: Mapping[str, Any] | None) -> Middleware | None:
    if data is None:
        return None
    return Middleware(
        pathname=data["pathname"],
        matchers=tuple(
            MiddlewareMatcher(
                source_regex=m["sourceRegex"],
                source=m.get("source"),
                has=_conditions(m.get("has")),
                missing=_conditions(m.get("missing")),
            )
            for m in data.get("matchers") or ()
        ),
    )


def _i18n(data: Mapping[str, Any] | None) -> I18nConfig | None:
    if data is None:
        return None
    return I18nConfig(
        default_locale=data["defaultLocale"],
        locales=tuple(data["locales"]),
        domains=(
            tuple(
                DomainLocale(
                    domain=d["domain"],
                    default_locale=d["defaultLocale"],
                    locales=tuple(d["locales"]) if d.get("locales") is not None else None,
                    http=bool(d.get("http", False)),
                )
                for d in data["domains"]
            )
            if data.get("domains") is not None
            else None
        ),
        locale_detection=data.get("localeDetection") is not False,
    )


def _optional_tuple(value: object) -> tuple[Any, ...] | None:
    return tuple(value) if value is not None else None  # type: ignore[arg-type]


def _images(data: Mapping[str, Any] | None) -> ImagesConfig | None:
    if data is None:
        return None
    return ImagesConfig(
        remote_patterns=tuple(
            RemotePattern(
                hostname=p["hostname"],
                protocol=p.get("protocol"),
                port=p.get("port"),
                pathname=p.get("pathname"),
                search=p.get("search"),
            )
            for p in data.get("remotePatterns") or ()
        ),
        local_patterns=(
            tuple(
                LocalPattern(pathname=p.get("pathname"), search=p.get("search"))
                for p in data["localPatterns"]
            )
            if data.get("localPatterns") is not None
            else None
        ),
        image_sizes=tuple(data.get("imageSizes") or ()),
        device_sizes=tuple(data.get("deviceSizes") or ()),
        domains=tuple(data.get("domains") or ()),
        qualities=_optional_tuple(data.get("qualities")),
        minimum_cache_ttl=data.get("minimumCacheTTL"),
        formats=_optional_tuple(data.get("formats")),
        dangerously_allow_svg=data.get("dangerouslyAllowSVG"),
        content_security_policy=data.get("contentSecurityPolicy"),
        content_disposition_type=data.get("contentDispositionType"),
    )


def _outputs(data: Mapping[str, Any]) -> BuildOutputs:
    middleware = data.get("middleware")
    return BuildOutputs(
        functions=tuple(_function_output(f) for f in data.get("functions") or ()),
        static_files=tuple(
            StaticFile(pathname=s["pathname"], file_path=s["filePath"])
            for s in data.get("staticFiles") or ()
        ),
        prerenders=tuple(
            PrerenderOutput(
                pathname=p["pathname"],
                parent_output_id=p["parentOutputId"],
                parent_fallback_mode=p.get("parentFallbackMode"),
            )
            for p in data.get("prerenders") or ()
        ),
        middleware=_function_output(middleware) if middleware is not None else None,
    )


def _function_output(data: Mapping[str, Any]) -> FunctionOutput:
    return FunctionOutput(
        id=data["id"],
        pathname=data["pathname"],
        type=OutputType(data["type"]),
        runtime=data.get("runtime", "nodejs"),
    )
