"""
Tests for page identity normalization.
"""

import pytest

from pagenotes.config import NotesConfig
from pagenotes.core.page_key import PageKeyPolicy, PageKeyResolver, normalize_page_key
from pagenotes.utils.exceptions import ValidationError


class TestNormalizePageKey:
    """Tests for normalize_page_key."""

    def test_default_policy_drops_fragment(self):
        """Test the default url policy keeps path and query but drops the fragment."""
        key = normalize_page_key("https://example.com/docs?page=2#intro")

        assert key == "https://example.com/docs?page=2"

    def test_origin_policy(self):
        """Test the origin policy keeps only scheme, host and port."""
        key = normalize_page_key("https://example.com/docs?page=2#intro", PageKeyPolicy.ORIGIN)

        assert key == "https://example.com"

    def test_full_policy_keeps_fragment(self):
        """Test the full policy keeps the fragment."""
        key = normalize_page_key("https://example.com/docs#intro", "full")

        assert key == "https://example.com/docs#intro"

    def test_lowercases_scheme_and_host(self):
        """Test scheme and host are lowercased."""
        assert normalize_page_key("HTTPS://Example.COM/Path") == "https://example.com/Path"

    def test_drops_default_ports(self):
        """Test default http/https ports are dropped."""
        assert normalize_page_key("https://example.com:443/a") == "https://example.com/a"
        assert normalize_page_key("http://example.com:80/a") == "http://example.com/a"

    def test_keeps_custom_port(self):
        """Test non-default ports are kept."""
        assert normalize_page_key("http://localhost:8080", "origin") == "http://localhost:8080"

    def test_empty_path_becomes_root(self):
        """Test an empty path normalizes to "/"."""
        assert normalize_page_key("https://example.com") == "https://example.com/"

    def test_same_page_variants_share_key(self):
        """Test spelling variants of one page map to one key."""
        variants = [
            "https://example.com/a",
            "https://EXAMPLE.com:443/a",
            "https://example.com/a#section",
        ]

        assert len({normalize_page_key(url) for url in variants}) == 1

    @pytest.mark.parametrize("url", ["", "   ", "example.com/path", "/relative/path"])
    def test_rejects_non_absolute_urls(self, url):
        """Test URLs without scheme or host are rejected."""
        with pytest.raises(ValidationError):
            normalize_page_key(url)

    def test_rejects_unknown_policy(self):
        """Test an unknown policy name is rejected."""
        with pytest.raises(ValidationError):
            normalize_page_key("https://example.com", "domain")


class TestPageKeyResolver:
    """Tests for PageKeyResolver."""

    def test_from_config(self):
        """Test the resolver picks its policy from NotesConfig."""
        resolver = PageKeyResolver.from_config(NotesConfig(page_key_policy="origin"))

        assert resolver.policy == PageKeyPolicy.ORIGIN
        assert resolver.resolve("https://example.com/a?b=1") == "https://example.com"

    def test_default_policy(self):
        """Test the resolver defaults to the url policy."""
        assert PageKeyResolver().resolve("https://example.com/a#x") == "https://example.com/a"

    def test_unknown_policy(self):
        """Test the resolver rejects an unknown policy."""
        with pytest.raises(ValidationError):
            PageKeyResolver("domain")
