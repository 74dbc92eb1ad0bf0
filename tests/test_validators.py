"""
Tests for URL validation and slug sanitizing.
"""

from app.core.validators import MAX_URL_LENGTH, is_valid_url, sanitize_slug


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        valid_urls = [
            "http://example.com",
            "https://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "http://localhost:8000/admin",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",  # FTP not supported
            "example.com",  # Missing scheme
            "",
            "http://",  # Missing domain
            "http://intranet/page",  # No dot and not localhost
            "javascript:alert(1)",
            "https://example.com/with space",
            "http://example.com:notaport/",
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"

    def test_non_string_rejected(self):
        assert not is_valid_url(None)
        assert not is_valid_url(42)

    def test_length_limit(self):
        base = "https://example.com/"
        assert is_valid_url(base + "a" * (MAX_URL_LENGTH - len(base)))
        assert not is_valid_url(base + "a" * (MAX_URL_LENGTH - len(base) + 1))


class TestSanitizeSlug:

    def test_accepts_url_safe_slugs(self):
        assert sanitize_slug("abc") == "abc"
        assert sanitize_slug("My-Link_2") == "My-Link_2"

    def test_surrounding_whitespace_rejected(self):
        assert sanitize_slug("abc ") is None
        assert sanitize_slug(" abc") is None

    def test_rejects_bad_slugs(self):
        for slug in ["", "   ", "a/b", "a.b", "ünï", "x" * 33, None]:
            assert sanitize_slug(slug) is None, f"Should be rejected: {slug!r}"
