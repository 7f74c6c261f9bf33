"""Indentation-scoped block reader for the nerd-icons config format.

The format is a small subset of YAML: ``key: value`` scalars and keys whose
value is empty (or a flow/block opener) introducing an indented sub-block.
There are no lists, anchors or multi-document streams.

Block membership rule: the first significant line after a label sets the
block's indent level. Following lines belong to the block while they are
indented deeper than the label and at least as deep as that level. Blank
lines and ``#`` comment lines are dropped before any indent bookkeeping.

Malformed lines never raise; they contribute nothing.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from loguru import logger

from .patterns import is_wildcard, match_host
from .text_utils import (
    count_indent,
    is_blank_or_comment,
    opens_nested_block,
    sanitize_value,
)


@dataclass(frozen=True)
class ScannedLine:
    """A significant (non-blank, non-comment) source line."""
    number: int
    indent: int
    text: str


@dataclass(frozen=True)
class Entry:
    """One ``key: value`` line plus the lines nested under it."""
    key: str
    value: str | None
    line: ScannedLine
    children: tuple[ScannedLine, ...] = ()

    @property
    def folded_key(self) -> str:
        return self.key.lower()

    @property
    def is_nested(self) -> bool:
        return self.value is None


def scan_lines(raw_lines: Iterable[str]) -> list[ScannedLine]:
    """Drop blank and comment lines, recording indent and 1-based line number."""
    scanned = []
    for number, raw in enumerate(raw_lines, start=1):
        raw = raw.rstrip("\r\n")
        if is_blank_or_comment(raw):
            continue
        scanned.append(ScannedLine(number=number, indent=count_indent(raw), text=raw.strip()))
    return scanned


def split_key_value(text: str) -> tuple[str, str | None] | None:
    """Parse ``key: value``.

    Returns ``(key, value)`` where key keeps its case and value is ``None``
    when the line opens a nested block, or ``None`` for a malformed line.
    """
    if ":" not in text:
        return None
    key_part, rest = text.split(":", 1)
    key = sanitize_value(key_part)
    if not key:
        return None
    value = sanitize_value(rest)
    if opens_nested_block(value):
        return key, None
    return key, value


def _label_matches(label: str, key: str) -> bool:
    folded_label = label.rstrip(":").strip().lower()
    folded_key = key.lower()
    if is_wildcard(folded_label):
        return match_host(folded_label, folded_key)
    return folded_key == folded_label


def read_block(lines: list[ScannedLine], label_index: int) -> tuple[list[ScannedLine], int]:
    """Collect the block belonging to the label at ``label_index``.

    Returns the block lines and the index of the first line after it.
    """
    parent_indent = lines[label_index].indent
    block: list[ScannedLine] = []
    level = None
    i = label_index + 1
    while i < len(lines):
        line = lines[i]
        if line.indent <= parent_indent:
            break
        if level is None:
            level = line.indent
        elif line.indent < level:
            break
        block.append(line)
        i += 1
    return block, i


def find_block(lines: list[ScannedLine], label: str, top_level_only: bool = True) -> list[ScannedLine] | None:
    """Block introduced by the first line whose key matches ``label``.

    ``label`` may be a fixed key (``icons`` or ``icons:``) or a wildcard
    key. With ``top_level_only`` only lines at the shallowest indent are
    considered. Returns ``None`` when the label is absent.
    """
    if not lines:
        return None
    top_indent = min(line.indent for line in lines)
    for index, line in enumerate(lines):
        if top_level_only and line.indent != top_indent:
            continue
        parsed = split_key_value(line.text)
        if parsed is None:
            continue
        if _label_matches(label, parsed[0]):
            block, _ = read_block(lines, index)
            return block
    return None


def iter_entries(block: list[ScannedLine] | tuple[ScannedLine, ...]) -> Iterator[Entry]:
    """Yield the entries at the block's own indent level.

    Deeper lines are attached to the preceding entry as its children.
    """
    lines = list(block)
    i = 0
    while i < len(lines):
        line = lines[i]
        children, next_index = read_block(lines, i)
        i = next_index
        parsed = split_key_value(line.text)
        if parsed is None:
            logger.debug(
                "Skipping malformed config line",
                operation="iter_entries",
                status="skip",
                line_number=line.number,
                line_content=line.text[:80]
            )
            continue
        key, value = parsed
        yield Entry(key=key, value=value, line=line, children=tuple(children))


def parse_key_values(block: list[ScannedLine] | tuple[ScannedLine, ...]) -> dict[str, str]:
    """Flat ``folded key -> scalar`` view of a block (nested entries skipped)."""
    values: dict[str, str] = {}
    for entry in iter_entries(block):
        if entry.value is not None:
            values[entry.folded_key] = entry.value
    return values
