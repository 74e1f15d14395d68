"""Tests for content fingerprinting."""

import hashlib

from news_mirror.articles.fingerprint import content_fingerprint


class TestContentFingerprint:
    """Tests for content_fingerprint."""

    def test_deterministic(self):
        assert content_fingerprint("<p>Body</p>") == content_fingerprint("<p>Body</p>")

    def test_ignores_surrounding_whitespace(self):
        assert content_fingerprint(" x ") == content_fingerprint("x")
        assert content_fingerprint("\n\t<p>Body</p>\n") == content_fingerprint("<p>Body</p>")

    def test_inner_whitespace_is_significant(self):
        assert content_fingerprint("a b") != content_fingerprint("a  b")

    def test_distinguishes_bodies(self):
        assert content_fingerprint("<p>Version one</p>") != content_fingerprint("<p>Version two</p>")

    def test_sha256_hex_digest(self):
        digest = content_fingerprint("  hello  ")

        assert len(digest) == 64
        assert digest == hashlib.sha256(b"hello").hexdigest()

    def test_unicode_body(self):
        assert content_fingerprint("Kuvendi miratoi buxhetin për vitin 2025") == hashlib.sha256(
            "Kuvendi miratoi buxhetin për vitin 2025".encode("utf-8")
        ).hexdigest()
