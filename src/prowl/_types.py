"""Shared type definitions for prowl."""

from typing import Literal, TypeAlias

# Phase markers, in the only order the routing engine accepts
Phase: TypeAlias = Literal["filesystem", "resource", "rewrite", "miss", "hit", "error"]

PHASE_ORDER: tuple[Phase, ...] = ("filesystem", "resource", "rewrite", "miss", "hit", "error")

# Condition kinds understood by has/missing matchers
ConditionType: TypeAlias = Literal["header", "cookie", "query", "host"]

# Regular expression source string in the routing engine's grammar
RegexSource: TypeAlias = str

# Destination template (may reference $1, $name, $wildcard, ...)
DestinationTemplate: TypeAlias = str

# Page identifier, e.g. "/posts/[slug]"
PagePath: TypeAlias = str

# Function runtime reported by the framework build
Runtime: TypeAlias = Literal["nodejs", "edge"]
