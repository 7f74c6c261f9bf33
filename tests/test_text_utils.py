"""Tests for line and title helpers."""

from tab_icons.text_utils import (
    BoundedCache,
    cached_lower,
    count_indent,
    extract_proc_name,
    is_blank_or_comment,
    opens_nested_block,
    parse_bool,
    sanitize_value,
    tokenize_title,
)


class TestSanitizeValue:
    """Tests for sanitize_value()."""

    def test_strips_whitespace_and_quotes(self):
        assert sanitize_value('  "abc"  ') == "abc"
        assert sanitize_value("'abc'") == "abc"

    def test_only_one_quote_layer_removed(self):
        assert sanitize_value("\"'x'\"") == "'x'"

    def test_mismatched_quotes_kept(self):
        assert sanitize_value("\"abc'") == "\"abc'"

    def test_inline_comment_removed(self):
        assert sanitize_value(' "X"  # git icon') == "X"

    def test_hash_without_space_is_kept(self):
        """Colors like #ff0000 must survive comment stripping."""
        assert sanitize_value(' "#ff0000"') == "#ff0000"
        assert sanitize_value(" #ff0000") == "#ff0000"

    def test_none_passthrough(self):
        assert sanitize_value(None) is None


class TestLineHelpers:
    """Tests for indentation and comment detection."""

    def test_count_indent(self):
        assert count_indent("    key: v") == 4
        assert count_indent("key: v") == 0
        assert count_indent("\tkey: v") == 1

    def test_blank_and_comment_lines(self):
        assert is_blank_or_comment("")
        assert is_blank_or_comment("   ")
        assert is_blank_or_comment("   # note")
        assert not is_blank_or_comment("  key: v # note")

    def test_nested_block_openers(self):
        assert opens_nested_block("")
        assert opens_nested_block(None)
        assert opens_nested_block("{a: b}")
        assert opens_nested_block("|")
        assert not opens_nested_block("X")


class TestParseBool:
    """Tests for parse_bool()."""

    def test_truthy_words(self):
        for word in ("true", "YES", "1", "On"):
            assert parse_bool(word) is True

    def test_everything_else_is_false(self):
        for word in ("false", "no", "0", "", None, "maybe"):
            assert parse_bool(word) is False


class TestTitleHelpers:
    """Tests for tokenization and process names."""

    def test_tokenize_includes_whole_title_first(self):
        assert tokenize_title("git status") == ("git status", "git", "status")

    def test_tokenize_splits_on_punctuation(self):
        assert tokenize_title("vim: main.py (~/src)") == (
            "vim: main.py (~/src)", "vim", "main.py", "src",
        )

    def test_tokenize_empty(self):
        assert tokenize_title("") == ()
        assert tokenize_title(None) == ()

    def test_tokenize_is_stable(self):
        assert tokenize_title("htop -d 5") is tokenize_title("htop -d 5")

    def test_extract_proc_name(self):
        assert extract_proc_name("/usr/bin/ssh") == "ssh"
        assert extract_proc_name("ssh") == "ssh"
        assert extract_proc_name(None) is None

    def test_cached_lower(self):
        assert cached_lower("GiT") == "git"


class TestBoundedCache:
    """Tests for BoundedCache."""

    def test_computes_once(self):
        calls = []
        cache = BoundedCache(10)

        def compute(key):
            calls.append(key)
            return key * 2

        assert cache.get_or_compute(2, compute) == 4
        assert cache.get_or_compute(2, compute) == 4
        assert calls == [2]

    def test_reset_wholesale_when_full(self):
        cache = BoundedCache(3)
        for i in range(3):
            cache.get_or_compute(i, str)
        assert len(cache) == 3
        cache.get_or_compute(99, str)
        assert len(cache) == 1
        assert 99 in cache
