"""Line and string helpers shared by the block parser and the resolver."""

import re
from typing import Callable, Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")

COMMENT_MARKER = "#"
INLINE_COMMENT = " #"

# Values opening a nested block instead of a scalar
NESTED_VALUE_OPENERS = ("|", ">", "{", "[")

TRUE_WORDS = frozenset({"true", "yes", "1", "on"})

TOKEN_RE = re.compile(r"[A-Za-z0-9._+-]+")

TOKENIZE_CACHE_SIZE = 100
LOWER_CACHE_SIZE = 200


# =============================================================================
# Bounded Memoization
# =============================================================================


class BoundedCache(Generic[K, V]):
    """Memo table that is reset wholesale once it grows past ``max_size``.

    Entries are pure functions of their key, so a race between two threads
    only costs a redundant computation.
    """

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._data: dict[K, V] = {}

    def get_or_compute(self, key: K, compute: Callable[[K], V]) -> V:
        try:
            return self._data[key]
        except KeyError:
            pass
        value = compute(key)
        if len(self._data) >= self.max_size:
            self._data = {}
        self._data[key] = value
        return value

    def clear(self) -> None:
        self._data = {}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key) -> bool:
        return key in self._data


_lower_cache: BoundedCache[str, str] = BoundedCache(LOWER_CACHE_SIZE)
_tokenize_cache: BoundedCache[str, tuple[str, ...]] = BoundedCache(TOKENIZE_CACHE_SIZE)


def cached_lower(text: str) -> str:
    """Case-fold ``text`` through a small memo table."""
    return _lower_cache.get_or_compute(text, str.lower)


# =============================================================================
# Line Helpers
# =============================================================================


def count_indent(line: str) -> int:
    """Number of leading whitespace characters (tabs count as one)."""
    return len(line) - len(line.lstrip())


def is_blank_or_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT_MARKER)


def strip_inline_comment(value: str) -> str:
    idx = value.find(INLINE_COMMENT)
    if idx != -1:
        return value[:idx]
    return value


def unquote(value: str) -> str:
    """Remove one layer of matching single or double quotes."""
    if len(value) >= 2 and value[0] in ("'", '"') and value[0] == value[-1]:
        return value[1:-1]
    return value


def sanitize_value(value: str | None) -> str | None:
    """Strip a trailing inline comment, whitespace and one quote layer."""
    if value is None:
        return None
    return unquote(strip_inline_comment(value.strip()).strip())


def opens_nested_block(value: str | None) -> bool:
    """True when a key's value introduces a sub-block rather than a scalar."""
    return not value or value.startswith(NESTED_VALUE_OPENERS)


def parse_bool(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUE_WORDS


# =============================================================================
# Title Helpers
# =============================================================================


def extract_proc_name(path: str | None) -> str | None:
    """Basename of an executable path (``/usr/bin/ssh`` -> ``ssh``)."""
    if not path:
        return None
    return path.rstrip("/").rsplit("/", 1)[-1] or path


def _tokenize(title: str) -> tuple[str, ...]:
    return (title, *TOKEN_RE.findall(title))


def tokenize_title(title: str | None) -> tuple[str, ...]:
    """Lookup candidates for a title: the whole title, then each word.

    Words are runs of ``[A-Za-z0-9._+-]``, so ``"git status"`` yields
    ``("git status", "git", "status")``.
    """
    if not title:
        return ()
    return _tokenize_cache.get_or_compute(title, _tokenize)


def clear_caches() -> None:
    _lower_cache.clear()
    _tokenize_cache.clear()
