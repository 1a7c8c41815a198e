"""Tests for prowl.routing.rewrites — rewrite normalization and signalling."""

from prowl.description import RewriteEntry, RewriteGroups
from prowl.routing.rewrites import (
    RSC_SUFFIX_PLACEHOLDER,
    convert_rewrites,
    normalize_rewrites,
    rsc_suffix_pattern,
    split_destination,
    with_rewrite_headers,
)
from prowl.routing.rules import Route, RouteCondition

from .conftest import apply_rule

_REWRITTEN_PATH = "x-nextjs-rewritten-path"
_REWRITTEN_QUERY = "x-nextjs-rewritten-query"


def _groups() -> RewriteGroups:
    return RewriteGroups(
        before_files=(RewriteEntry(source_regex="^/before$", destination="/b"),),
        after_files=(RewriteEntry(source_regex=r"^/blog(?:\/)?$", destination="/news?x=1"),),
        fallback=(RewriteEntry(source_regex="^/(.*)$", destination="https://old.example.com/$1"),),
    )


class TestNormalizeRewrites:
    """normalize_rewrites — per-group flags."""

    def test_before_files_flags(self) -> None:
        (route,) = normalize_rewrites(_groups()).before_files
        assert route.check is False
        assert route.continue_ is True
        assert route.override is True

    def test_after_files_and_fallback_check(self) -> None:
        normalized = normalize_rewrites(_groups())
        assert normalized.after_files[0].check is True
        assert normalized.after_files[0].continue_ is False
        assert normalized.fallback[0].check is True

    def test_conditions_carried(self) -> None:
        has = (RouteCondition(type="query", key="preview"),)
        groups = RewriteGroups(after_files=(RewriteEntry("^/a$", "/b", has=has),))
        assert normalize_rewrites(groups).after_files[0].has == has

    def test_order_preserved(self) -> None:
        entries = tuple(RewriteEntry(f"^/{i}$", f"/d{i}") for i in range(5))
        normalized = normalize_rewrites(RewriteGroups(fallback=entries))
        assert [r.dest for r in normalized.fallback] == [f"/d{i}" for i in range(5)]


class TestSplitDestination:
    """split_destination — pathname and query of internal rewrites."""

    def test_path_and_query(self) -> None:
        assert split_destination("/docs/$1?lang=en") == ("/docs/$1", "lang=en")

    def test_fragment_dropped(self) -> None:
        assert split_destination("/a#top") == ("/a", None)
        assert split_destination("/a?b=1#top") == ("/a", "b=1")

    def test_query_only(self) -> None:
        assert split_destination("?q=1") == (None, "q=1")

    def test_external_not_split(self) -> None:
        assert split_destination("https://example.com/a?b=1") == (None, None)
        assert split_destination("http://example.com/") == (None, None)


class TestRscSuffixPattern:
    """rsc_suffix_pattern — forwarded suffix alternation."""

    def test_plain(self) -> None:
        pattern = rsc_suffix_pattern(
            should_handle_prefetch_rsc=False, should_handle_segment_prefetches=False,
        )
        assert pattern == r"\.rsc"

    def test_all(self) -> None:
        pattern = rsc_suffix_pattern(
            should_handle_prefetch_rsc=True, should_handle_segment_prefetches=True,
        )
        assert pattern == r"\.rsc|\.prefetch\.rsc|\.segments/.+\.segment\.rsc"


class TestWithRewriteHeaders:
    """with_rewrite_headers — rewritten path/query signalling."""

    def test_headers_attached(self) -> None:
        (route,) = with_rewrite_headers((Route(src="^/a$", dest="/b?c=1", check=True),))
        assert route.headers == {_REWRITTEN_PATH: "/b", _REWRITTEN_QUERY: "c=1"}

    def test_existing_headers_kept(self) -> None:
        (route,) = with_rewrite_headers((Route(src="^/a$", dest="/b", headers={"x": "1"}),))
        assert route.headers == {"x": "1", _REWRITTEN_PATH: "/b"}

    def test_external_unmodified(self) -> None:
        original = Route(src="^/a$", dest="https://example.com/a")
        assert with_rewrite_headers((original,)) == (original,)

    def test_missing_dest_unmodified(self) -> None:
        original = Route(src="^/a$", status=404)
        assert with_rewrite_headers((original,), rsc_suffix=r"\.rsc") == (original,)

    def test_rsc_suffix_requires_trailing_slash_tail(self) -> None:
        original = Route(src="^/exact$", dest="/b")
        (route,) = with_rewrite_headers((original,), rsc_suffix=r"\.rsc")
        assert route.src == "^/exact$"
        assert route.dest == "/b"


class TestConvertRewrites:
    """convert_rewrites — the compiler-facing entry point."""

    def test_no_suffix_without_prefetch_flags(self) -> None:
        converted = convert_rewrites(_groups())
        route = converted.after_files[0]
        assert route.src == r"^/blog(?:\/)?$"
        assert route.dest == "/news?x=1"
        assert route.headers == {_REWRITTEN_PATH: "/news", _REWRITTEN_QUERY: "x=1"}

    def test_suffix_forwarded_before_query(self) -> None:
        converted = convert_rewrites(
            _groups(), should_handle_prefetch_rsc=True, should_handle_segment_prefetches=True,
        )
        route = converted.after_files[0]
        assert route.src == (
            r"^/blog(?:/)?(?<rscsuff>\.rsc|\.prefetch\.rsc|\.segments/.+\.segment\.rsc)?"
        )
        assert route.dest == f"/news{RSC_SUFFIX_PLACEHOLDER}?x=1"
        # Headers describe the destination before the suffix was inserted
        assert route.headers == {_REWRITTEN_PATH: "/news", _REWRITTEN_QUERY: "x=1"}

    def test_suffixed_rule_forwards_suffix(self) -> None:
        converted = convert_rewrites(
            _groups(), should_handle_prefetch_rsc=False, should_handle_segment_prefetches=True,
        )
        route = converted.after_files[0]
        assert apply_rule(route, "/blog.rsc") == "/news.rsc?x=1"
        assert apply_rule(route, "/blog/") == "/news?x=1"

    def test_suffix_appended_without_query(self) -> None:
        groups = RewriteGroups(after_files=(RewriteEntry(r"^/a(?:\/)?$", "/b"),))
        converted = convert_rewrites(groups, should_handle_segment_prefetches=True)
        assert converted.after_files[0].dest == f"/b{RSC_SUFFIX_PLACEHOLDER}"

    def test_before_files_and_fallback_never_suffixed(self) -> None:
        groups = RewriteGroups(
            before_files=(RewriteEntry(r"^/a(?:\/)?$", "/b"),),
            fallback=(RewriteEntry(r"^/c(?:\/)?$", "/d"),),
        )
        converted = convert_rewrites(groups, should_handle_prefetch_rsc=True)
        assert converted.before_files[0].dest == "/b"
        assert converted.fallback[0].dest == "/d"

    def test_external_fallback_untouched(self) -> None:
        converted = convert_rewrites(_groups())
        assert converted.fallback[0].headers is None
