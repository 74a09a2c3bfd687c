import re

import pytest

from heirlooms.services.slugs import to_slug

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def test_basic_title():
    assert to_slug("Grandpa's Watch") == "grandpa-s-watch"


def test_runs_of_symbols_collapse_and_edges_trim():
    assert to_slug("  --Hello,   World!!  ") == "hello-world"


@pytest.mark.parametrize("title", [
    "A" * 200,
    "word " * 30,
    "Ünïcödé Heirloom: 1920s pocket watch",
    "x" * 59 + " y",
])
def test_slug_shape(title):
    slug = to_slug(title)
    assert slug
    assert len(slug) <= 60
    assert SLUG_RE.match(slug)


def test_truncation_does_not_leave_trailing_hyphen():
    assert to_slug("a" * 59 + " bcd") == "a" * 59


@pytest.mark.parametrize("title", ["", "!!!", "   ", "~~"])
def test_empty_slug_gets_random_fallback(title):
    assert re.fullmatch(r"artifact-[0-9a-z]{6}", to_slug(title))


def test_collection_prefix():
    assert re.fullmatch(r"collection-[0-9a-z]{6}", to_slug("???", prefix="collection"))


def test_deterministic():
    assert to_slug("Grandma's Ring") == to_slug("Grandma's Ring")
