"""Shell-style wildcard matching for host keys and title patterns.

``*`` matches any run of characters (including none), ``?`` exactly one
character and ``[...]`` a character class (``[!...]`` negated). Every other
character, ``.`` included, is literal. Matching is case-insensitive.

Host patterns are anchored (the whole hostname must match); title patterns
match anywhere inside the title.
"""

import re

from .text_utils import BoundedCache

WILDCARD_CHARS = ("*", "?", "[")

PATTERN_CACHE_SIZE = 256

_compiled_cache: BoundedCache[tuple[str, bool], re.Pattern] = BoundedCache(PATTERN_CACHE_SIZE)


def is_wildcard(key: str) -> bool:
    """True when a host key must be routed to the pattern list."""
    return any(ch in key for ch in WILDCARD_CHARS)


def wildcard_to_regex(pattern: str) -> str:
    """Translate a wildcard pattern into an (unanchored) regex source."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        i += 1
        if ch == "*":
            # Collapse runs of stars
            if not parts or parts[-1] != ".*":
                parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            j = i
            if j < n and pattern[j] == "!":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                # Unterminated class is a literal bracket
                parts.append(re.escape(ch))
                continue
            body = pattern[i:j].replace("\\", "\\\\").replace("[", "\\[")
            i = j + 1
            if body.startswith("!"):
                body = "^" + body[1:]
            elif body.startswith("^"):
                body = "\\" + body
            parts.append(f"[{body}]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def _compile(key: tuple[str, bool]) -> re.Pattern:
    pattern, anchored = key
    source = wildcard_to_regex(pattern)
    if anchored:
        source = f"(?:{source})\\Z"
    return re.compile(source, re.IGNORECASE | re.DOTALL)


def compile_pattern(pattern: str, anchored: bool = True) -> re.Pattern:
    """Compiled matcher for ``pattern``, memoized by pattern text."""
    return _compiled_cache.get_or_compute((pattern, anchored), _compile)


def match_host(pattern: str, host: str) -> bool:
    """Whole-string, case-insensitive wildcard match."""
    if not pattern or not host:
        return False
    return compile_pattern(pattern, anchored=True).match(host) is not None


def match_title(pattern: str, title: str) -> bool:
    """Substring, case-insensitive wildcard match."""
    if not pattern or not title:
        return False
    return compile_pattern(pattern, anchored=False).search(title) is not None


def clear_pattern_cache() -> None:
    _compiled_cache.clear()
