"""Tests for URL normalization used as the web dedup key."""
import pytest

from osint_investigator.analysis.urls import display_domain, normalize_url


def test_scheme_www_case_and_trailing_slash_are_ignored():
    assert normalize_url("https://WWW.Example.com/page/") == normalize_url("http://example.com/page")


@pytest.mark.parametrize(
    "url",
    [
        "http://Example.com/a",
        "https://example.com/a/",
        "http://www.example.com/a?utm_source=x",
        "https://EXAMPLE.com/A#section",
        "example.com/a",
    ],
)
def test_variants_share_one_key(url):
    assert normalize_url(url) == "example.com/a"


def test_distinct_paths_keep_distinct_keys():
    assert normalize_url("https://example.com/a") != normalize_url("https://example.com/b")


def test_empty_url_has_empty_key():
    assert normalize_url("") == ""


def test_display_domain_drops_www_and_path():
    assert display_domain("https://www.linkedin.com/in/jane-doe") == "linkedin.com"
