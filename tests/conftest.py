"""Shared test fixtures for prowl."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

import pytest

from prowl.description import BuildDescription, I18nConfig
from prowl.routing.matcher import to_python_regex
from prowl.routing.rules import Route, RouteTable

_PLACEHOLDER = re.compile(r"\$(\d+|[A-Za-z_]\w*)")


def apply_rule(route: Route, path: str) -> str | None:
    """Match *path* against ``route.src`` and expand ``route.dest``.

    Returns ``None`` when the rule does not match.  ``$1`` and ``$name``
    placeholders are replaced with captured groups (unmatched groups expand
    to ``""``); placeholders that name no group, such as ``$wildcard``, are
    left as-is.  A rule without ``dest`` returns *path* unchanged.
    """
    match = re.search(to_python_regex(route.src), path)
    if match is None:
        return None
    if route.dest is None:
        return path

    def expand(m: re.Match[str]) -> str:
        key = m.group(1)
        try:
            group = match.group(int(key) if key.isdigit() else key)
        except IndexError:
            return m.group(0)
        return group or ""

    return _PLACEHOLDER.sub(expand, route.dest)


def find_rule(table: RouteTable, **attrs: Any) -> Route:
    """Return the first rule whose attributes equal *attrs*."""
    for rule in table.rules:
        if all(getattr(rule, k) == v for k, v in attrs.items()):
            return rule
    msg = f"no rule with {attrs}"
    raise AssertionError(msg)


def make_description(**kwargs: Any) -> BuildDescription:
    """Create a BuildDescription with a fixed build id."""
    return replace(BuildDescription(build_id="abc123"), **kwargs)


@pytest.fixture
def description() -> BuildDescription:
    """Minimal description: no i18n, middleware, rewrites or base path."""
    return make_description()


@pytest.fixture
def i18n() -> I18nConfig:
    return I18nConfig(default_locale="en", locales=("en", "fr", "nl-NL"))
