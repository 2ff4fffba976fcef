"""
Unit tests for identifier normalization.

Tests normalize_identifier and the list-page comparison helpers from
src.utils.url_utils.
"""

import pytest
from src.utils.url_utils import normalize_identifier, same_page, without_query, domain_of, validate_url


class TestNormalizeIdentifier:
    """Test suite for normalize_identifier."""

    def test_query_string_stripped_by_default(self):
        """Test that the whole query string is volatile by default."""
        result = normalize_identifier("https://app-recruteur.hellowork.com/applicant/detail/42?pos=3&sort=date")
        assert result == "https://app-recruteur.hellowork.com/applicant/detail/42"

    def test_fragment_always_dropped(self):
        """Test that fragments are removed even when the query is kept."""
        result = normalize_identifier("https://x.com/p/1?id=9#top", volatile_params=[])
        assert result == "https://x.com/p/1?id=9"

    def test_refs_differing_only_by_volatile_suffix_are_equal(self):
        """Test that two refs differing by a volatile query suffix collapse to one identifier."""
        a = normalize_identifier("https://app-recruteur.hellowork.com/applicant/detail/7?from=list&idx=1")
        b = normalize_identifier("https://app-recruteur.hellowork.com/applicant/detail/7?from=list&idx=2")
        assert a == b

    def test_only_named_volatile_params_removed(self):
        """Test that a profile's volatile params are removed and others kept in order."""
        result = normalize_identifier(
            "https://www.linkedin.com/talent/hire/1/manage/all/profile/AB?project=1&trk=x&start=25",
            volatile_params=["trk", "start"],
        )
        assert result == "https://www.linkedin.com/talent/hire/1/manage/all/profile/AB?project=1"

    def test_volatile_param_names_case_insensitive(self):
        """Test that volatile parameter names match regardless of case."""
        result = normalize_identifier("https://x.com/p/1?TRK=abc&id=9", volatile_params={"trk"})
        assert result == "https://x.com/p/1?id=9"

    def test_relative_ref_resolved_against_base(self):
        """Test that relative hrefs are resolved against the list page."""
        result = normalize_identifier("/applicant/detail/42", "https://app-recruteur.hellowork.com/campaign/detail/7")
        assert result == "https://app-recruteur.hellowork.com/applicant/detail/42"

    def test_scheme_and_host_lowercased(self):
        """Test that scheme and host are lowercased but the path is not."""
        result = normalize_identifier("HTTPS://App-Recruteur.HelloWork.com/Applicant/Detail/42")
        assert result == "https://app-recruteur.hellowork.com/Applicant/Detail/42"

    def test_whitespace_trimmed(self):
        """Test that surrounding whitespace is ignored."""
        assert normalize_identifier("  https://x.com/p/1  ") == "https://x.com/p/1"

    @pytest.mark.parametrize("raw", ["", "   ", None, "javascript:void(0)", "mailto:a@b.c", "/relative/without/base"])
    def test_unusable_refs_return_none(self, raw):
        """Test that empty, non-http and unresolvable refs yield None."""
        assert normalize_identifier(raw) is None


class TestSamePage:
    """Test suite for list page comparison."""

    def test_query_ignored(self):
        """Test that rewritten search parameters still match the origin page."""
        assert same_page(
            "https://app-recruteur.hellowork.com/campaign/detail/9001?searchGuid=new",
            "https://app-recruteur.hellowork.com/campaign/detail/9001?searchGuid=abc-123",
        )

    def test_trailing_slash_ignored(self):
        assert same_page("https://x.com/list/", "https://x.com/list")

    def test_different_paths_differ(self):
        assert not same_page("https://x.com/list/1", "https://x.com/list/2")

    def test_missing_values_never_match(self):
        assert not same_page(None, "https://x.com")
        assert not same_page("https://x.com", "")


class TestUrlHelpers:
    """Test suite for the small URL helpers."""

    def test_without_query(self):
        assert without_query("https://x.com/a?b=1#c") == "https://x.com/a"

    def test_domain_of(self):
        assert domain_of("https://WWW.LinkedIn.com/talent/hire/") == "www.linkedin.com"

    @pytest.mark.parametrize("url,expected", [
        ("https://example.com/jobs/123", True),
        ("http://example.com", True),
        ("/jobs/123", False),
        ("ftp://example.com/file", False),
        ("", False),
    ])
    def test_validate_url(self, url, expected):
        assert validate_url(url) is expected
