"""Tests for prowl.config_loader — config files and build descriptions."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from prowl._errors import ConfigError, InvariantError
from prowl.config_loader import load_config, load_description, parse_description
from prowl.observability import EventLog, FactsDerived
from prowl.routing.rules import RouteCondition

_DESCRIPTION = {
    "buildId": "abc123",
    "config": {
        "basePath": "/docs",
        "trailingSlash": True,
        "i18n": {
            "defaultLocale": "en",
            "locales": ["en", "fr"],
            "localeDetection": False,
            "domains": [{"domain": "example.fr", "defaultLocale": "fr", "http": True}],
        },
        "images": {
            "remotePatterns": [{"hostname": "*.example.com", "protocol": "https"}],
            "imageSizes": [16],
            "deviceSizes": [640],
            "minimumCacheTTL": 60,
        },
        "experimental": {"cacheComponents": True},
    },
    "routes": {
        "rewrites": {
            "beforeFiles": [{"sourceRegex": "^/a$", "destination": "/b"}],
            "afterFiles": [],
            "fallback": [
                {
                    "sourceRegex": "^/(.*)$",
                    "destination": "https://old.example.com/$1",
                    "has": [{"type": "header", "key": "x-legacy"}],
                },
            ],
        },
        "redirects": [
            {"sourceRegex": "^/old$", "destination": "/new", "statusCode": 308, "priority": True},
        ],
        "headers": [
            {"sourceRegex": "^/h$", "headers": [{"key": "x-frame-options", "value": "DENY"}]},
        ],
        "dynamicRoutes": [
            {"sourceRegex": "^/blog/(?<slug>[^/]+?)$", "destination": "/blog/[slug]", "page": "/blog/[slug]"},
        ],
    },
    "middleware": {
        "pathname": "/_middleware",
        "matchers": [{"sourceRegex": "^/(?!_next).*$", "source": "/((?!_next).*)"}],
    },
    "hasPagesDir": True,
    "has404Output": True,
}


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """load_config — prowl.yaml / prowl.toml merged with overrides."""

    def test_no_file_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.root == tmp_path
        assert config.description == "build-description.json"

    def test_yaml_prowl_section(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text(
            "prowl:\n  description: desc.yaml\n  output: dist\n  quiet: true\n"
        )
        config = load_config(tmp_path)
        assert config.description == "desc.yaml"
        assert config.output_path == tmp_path / "dist"
        assert config.quiet is True

    def test_toml_top_level(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.toml").write_text('config_name = "routes.json"\n')
        assert load_config(tmp_path).config_name == "routes.json"

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yml").write_text("description: from-file.json\n")
        config = load_config(tmp_path, description="from-cli.json")
        assert config.description == "from-cli.json"

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yml").write_text("description: from-file.json\n")
        config = load_config(tmp_path, description=None, output=None)
        assert config.description == "from-file.json"

    def test_unknown_key(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: 8000\n")
        with pytest.raises(ConfigError, match="Unknown keys"):
            load_config(tmp_path)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("prowl: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(tmp_path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(tmp_path)


# ---------------------------------------------------------------------------
# parse_description
# ---------------------------------------------------------------------------


class TestParseDescription:
    """parse_description — camelCase mapping to BuildDescription."""

    def test_top_level(self) -> None:
        description = parse_description(_DESCRIPTION)
        assert description.build_id == "abc123"
        assert description.base_path == "/docs"
        assert description.trailing_slash is True
        assert description.cache_components is True
        assert description.client_segment_cache is False
        assert description.has_pages_dir is True
        assert description.not_found_path == "/404"

    def test_i18n(self) -> None:
        i18n = parse_description(_DESCRIPTION).i18n
        assert i18n is not None
        assert i18n.locales == ("en", "fr")
        assert i18n.locale_detection is False
        assert i18n.domains[0].http is True
        assert i18n.domains[0].locales is None

    def test_i18n_domains_absent_or_empty(self) -> None:
        i18n = {"defaultLocale": "en", "locales": ["en"]}
        absent = parse_description({"buildId": "x", "config": {"i18n": i18n}})
        empty = parse_description(
            {"buildId": "x", "config": {"i18n": {**i18n, "domains": []}}},
        )
        assert absent.i18n is not None
        assert absent.i18n.domains is None
        assert empty.i18n is not None
        assert empty.i18n.domains == ()

    def test_routes(self) -> None:
        description = parse_description(_DESCRIPTION)
        assert description.rewrites.before_files[0].destination == "/b"
        assert description.rewrites.fallback[0].has == (
            RouteCondition(type="header", key="x-legacy"),
        )
        assert description.redirects[0].status_code == 308
        assert description.redirects[0].priority is True
        assert description.headers[0].headers == {"x-frame-options": "DENY"}
        assert description.dynamic_routes[0].page == "/blog/[slug]"

    def test_header_mapping_form(self) -> None:
        data = {
            "buildId": "x",
            "routes": {"headers": [{"sourceRegex": "^/h$", "headers": {"x-a": "1"}}]},
        }
        assert parse_description(data).headers[0].headers == {"x-a": "1"}

    def test_middleware(self) -> None:
        middleware = parse_description(_DESCRIPTION).middleware
        assert middleware is not None
        assert middleware.pathname == "/_middleware"
        assert middleware.matchers[0].source == "/((?!_next).*)"

    def test_images(self) -> None:
        images = parse_description(_DESCRIPTION).images
        assert images is not None
        assert images.remote_patterns[0].hostname == "*.example.com"
        assert images.image_sizes == (16,)
        assert images.minimum_cache_ttl == 60
        assert images.local_patterns is None

    def test_minimal(self) -> None:
        description = parse_description({"buildId": "x"})
        assert description.i18n is None
        assert description.middleware is None
        assert description.rewrites.after_files == ()

    @pytest.mark.parametrize("build_id", [None, "", 42])
    def test_build_id_required(self, build_id: object) -> None:
        with pytest.raises(ConfigError, match="buildId"):
            parse_description({"buildId": build_id})

    def test_missing_field(self) -> None:
        data = {"buildId": "x", "routes": {"redirects": [{"destination": "/b"}]}}
        with pytest.raises(ConfigError, match="malformed"):
            parse_description(data)

    def test_section_not_mapping(self) -> None:
        with pytest.raises(ConfigError, match="'routes' must be a mapping"):
            parse_description({"buildId": "x", "routes": []})

    def test_outputs_derive_facts(self) -> None:
        data = {
            "buildId": "x",
            "outputs": {
                "functions": [
                    {"id": "p", "pathname": "/posts/[id]", "type": "PAGES"},
                    {"id": "e", "pathname": "/500", "type": "PAGES"},
                ],
                "staticFiles": [{"pathname": "/about", "filePath": "about.html"}],
                "prerenders": [
                    {"pathname": "/posts/1", "parentOutputId": "p", "parentFallbackMode": False},
                ],
            },
        }
        log = EventLog()
        description = parse_description(data, log=log)
        assert description.has_pages_dir is True
        assert description.has_500_output is True
        assert description.prerender_fallback_false_map == {"/posts/[id]": ("/posts/1",)}
        assert description.static_html_pathnames == ("/about",)
        assert len(log.query(event_type=FactsDerived)) == 1

    def test_outputs_inconsistent(self) -> None:
        data = {
            "buildId": "x",
            "outputs": {
                "prerenders": [
                    {"pathname": "/a", "parentOutputId": "gone", "parentFallbackMode": False},
                ],
            },
        }
        with pytest.raises(InvariantError):
            parse_description(data)

    @pytest.mark.parametrize(
        "outputs",
        [
            {"functions": [{"id": "p", "pathname": "/p", "type": "BOGUS"}]},
            {"functions": [{"id": "p", "type": "PAGES"}]},
            {"staticFiles": [{"pathname": "/about"}]},
            {"prerenders": [{"parentOutputId": "p"}]},
        ],
    )
    def test_outputs_malformed(self, outputs: dict[str, object]) -> None:
        with pytest.raises(ConfigError, match="malformed build outputs"):
            parse_description({"buildId": "x", "outputs": outputs})

    def test_outputs_middleware_enables_middleware(self) -> None:
        data = {
            "buildId": "x",
            "outputs": {
                "middleware": {
                    "id": "mw", "pathname": "/_middleware", "type": "MIDDLEWARE",
                    "runtime": "edge",
                },
            },
        }
        description = parse_description(data)
        assert description.has_middleware is True
        assert description.middleware is not None
        assert description.middleware.pathname == "/_middleware"
        assert description.middleware.matchers == ()


# ---------------------------------------------------------------------------
# load_description
# ---------------------------------------------------------------------------


class TestLoadDescription:
    """load_description — JSON, YAML and TOML files."""

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "build-description.json"
        path.write_text(json.dumps(_DESCRIPTION))
        assert load_description(path).build_id == "abc123"

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "build-description.yaml"
        path.write_text(yaml.safe_dump(_DESCRIPTION))
        assert load_description(path).i18n is not None

    def test_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "build-description.toml"
        path.write_text('buildId = "t1"\n\n[config]\nbasePath = "/app"\n')
        description = load_description(path)
        assert description.build_id == "t1"
        assert description.base_path == "/app"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_description(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "build-description.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_description(path)

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "build-description.ini"
        path.write_text("[x]\n")
        with pytest.raises(ConfigError, match="Unsupported file type"):
            load_description(path)
