"""Markdown block-tree service.

The parser and exporter only need a flat, line-addressed view of a document:
headings, list items, and everything else. MarkdownService is the seam they
depend on; LineBlockService is the default implementation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

_HEADING = re.compile(r"^ {0,3}(#{1,6})\s+(.*?)\s*#*\s*$")
_LIST_ITEM = re.compile(r"^(\s*)([-*+]|\d+[.)])\s+(.*)$")
_FENCE = re.compile(r"^\s*(```|~~~)")


class BlockKind(str, Enum):
    """Kinds of line blocks."""

    HEADING = "heading"
    LIST_ITEM = "list_item"
    TEXT = "text"
    BLANK = "blank"
    CODE = "code"  # Lines inside (and including) a fenced code block


@dataclass(frozen=True)
class Block:
    """One line of a markdown document, classified."""

    kind: BlockKind
    line: int  # 1-based
    raw: str
    indent: int = 0
    depth: int = 0  # Heading level
    text: str = ""  # Heading text or list item content


class MarkdownService(Protocol):
    """Parse a document into blocks and turn blocks back into text."""

    def parse(self, text: str) -> list[Block]: ...

    def stringify(self, blocks: list[Block]) -> str: ...


class LineBlockService:
    """Line-oriented block parser.

    Fenced code blocks are reported as CODE so that "#" lines inside them are
    never mistaken for headings.
    """

    def parse(self, text: str) -> list[Block]:
        blocks: list[Block] = []
        in_fence = False
        for number, raw in enumerate(text.splitlines(), start=1):
            indent = len(raw) - len(raw.lstrip(" \t"))

            if _FENCE.match(raw):
                in_fence = not in_fence
                blocks.append(Block(BlockKind.CODE, number, raw, indent))
                continue
            if in_fence:
                blocks.append(Block(BlockKind.CODE, number, raw, indent))
                continue

            if not raw.strip():
                blocks.append(Block(BlockKind.BLANK, number, raw))
                continue

            heading = _HEADING.match(raw)
            if heading:
                blocks.append(
                    Block(
                        BlockKind.HEADING,
                        number,
                        raw,
                        indent,
                        depth=len(heading.group(1)),
                        text=heading.group(2),
                    )
                )
                continue

            item = _LIST_ITEM.match(raw)
            if item:
                blocks.append(Block(BlockKind.LIST_ITEM, number, raw, indent, text=item.group(3)))
                continue

            blocks.append(Block(BlockKind.TEXT, number, raw, indent, text=raw.strip()))
        return blocks

    def stringify(self, blocks: list[Block]) -> str:
        if not blocks:
            return ""
        return "\n".join(block.raw for block in blocks) + "\n"


_HEADING_LINE = re.compile(r"^( {0,3})(\\*#{1,6}(?:\s|$))")
_ESCAPED_HEADING_LINE = re.compile(r"^( {0,3})\\(\\*#{1,6}(?:\s|$))")


def escape_headings(text: str) -> str:
    """Backslash-escape heading lines so embedded text cannot open a section.

    Lines already starting with escaped hashes gain one more backslash, which
    keeps the mapping reversible. Fenced code is left alone.
    """
    return _map_outside_fences(text, lambda line: _HEADING_LINE.sub(r"\1\\\2", line, count=1))


def unescape_headings(text: str) -> str:
    """Inverse of escape_headings."""
    return _map_outside_fences(
        text, lambda line: _ESCAPED_HEADING_LINE.sub(r"\1\2", line, count=1)
    )


def _map_outside_fences(text: str, transform) -> str:
    lines = []
    in_fence = False
    for line in text.split("\n"):
        if _FENCE.match(line):
            in_fence = not in_fence
            lines.append(line)
            continue
        lines.append(line if in_fence else transform(line))
    return "\n".join(lines)
