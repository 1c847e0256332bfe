"""Tests for content hashing and line-ending normalisation."""

import hashlib

from vault_sync.sync.hashing import (
    blob_hash,
    line_count,
    normalize_line_endings,
    same_content,
)


class TestBlobHash:
    """Tests for blob_hash(content)."""

    def test_empty_blob_matches_git(self):
        """Empty content hashes to git's well-known empty blob id."""
        assert blob_hash("") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"

    def test_hello_world_matches_git(self):
        """`echo 'hello world' | git hash-object --stdin` agrees."""
        assert blob_hash("hello world\n") == "3b18e512dba79e4c8300dd08aeb37f8e728b8dad"

    def test_uses_utf8_byte_length(self):
        """Header length counts UTF-8 bytes, not characters."""
        text = "café"
        data = text.encode("utf-8")
        expected = hashlib.sha1(b"blob 5\0" + data).hexdigest()
        assert len(data) == 5
        assert blob_hash(text) == expected

    def test_deterministic(self):
        """Same content always yields the same hash."""
        assert blob_hash("# Note\n") == blob_hash("# Note\n")

    def test_line_endings_change_hash(self):
        """Hash is byte-exact; CRLF and LF differ."""
        assert blob_hash("a\r\nb") != blob_hash("a\nb")


class TestNormalizeLineEndings:
    """Tests for normalize_line_endings(text)."""

    def test_crlf(self):
        assert normalize_line_endings("a\r\nb\r\n") == "a\nb\n"

    def test_lone_cr(self):
        assert normalize_line_endings("a\rb") == "a\nb"

    def test_mixed(self):
        assert normalize_line_endings("a\r\nb\rc\n") == "a\nb\nc\n"

    def test_lf_untouched(self):
        assert normalize_line_endings("a\nb") == "a\nb"


class TestSameContent:
    """Tests for same_content(local, remote)."""

    def test_crlf_vs_lf_is_same(self):
        """Line-ending style alone never makes content differ."""
        assert same_content("a\r\nb", "a\nb")

    def test_different_text(self):
        assert not same_content("a\nb", "a\nc")

    def test_trailing_newline_matters(self):
        """A trailing newline is real content."""
        assert not same_content("a\n", "a")


class TestLineCount:
    """Tests for line_count(text)."""

    def test_two_lines(self):
        assert line_count("first\nsecond") == 2

    def test_trailing_newline_adds_empty_line(self):
        assert line_count("first\nsecond\n") == 3

    def test_empty_text_is_one_line(self):
        assert line_count("") == 1

    def test_crlf_counted_once(self):
        assert line_count("a\r\nb") == 2
