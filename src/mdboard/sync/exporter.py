"""Board -> markdown exporter.

Each board item becomes one single-story file (see story_file). When the file
already exists, only the status value and the description body are rewritten;
every other section (acceptance criteria, notes, ...) is left byte-identical.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..models.board import Board, BoardItem
from ..models.story import ParsedStory
from ..utils.slug import generate_filename
from ..utils.story_id import normalize_key
from .markdown import Block, BlockKind, LineBlockService, MarkdownService, escape_headings
from .story_file import NO_DESCRIPTION, STORY_HEADING, strip_story_prefix

logger = logging.getLogger(__name__)

_DOUBLE_PREFIX = re.compile(r"^##\s*Story:\s*Story:", re.IGNORECASE)
_INLINE_FIELD = re.compile(r"^\s*(?:story[ \-_]?id|description)\s*:", re.IGNORECASE)
_DESCRIPTION_HEADING = re.compile(r"^\s*###\s*Description\s*$", re.IGNORECASE)


@dataclass
class ExportedFile:
    """Rendered content of one story file."""

    text: str
    changed: bool
    created: bool = False
    title_fixed: bool = False


@dataclass
class _Section:
    heading: int  # Index of the heading block
    end: int  # Index one past the section's last block

    def body(self, blocks: list[Block]) -> list[Block]:
        return blocks[self.heading + 1 : self.end]


def clean_body(body: str | None) -> str:
    """Item body as story description: inline field lines and headers removed."""
    if not body or not body.strip():
        return ""
    lines = [
        line
        for line in body.splitlines()
        if not _INLINE_FIELD.match(line) and not _DESCRIPTION_HEADING.match(line)
    ]
    return "\n".join(lines).strip()


class MarkdownExporter:
    """Render board items as story files and splice updates into existing ones."""

    def __init__(self, markdown: MarkdownService | None = None) -> None:
        self._markdown = markdown or LineBlockService()

    def file_name_for(self, item: BoardItem) -> str:
        """File name for an item: slug of "<story id>-<title>"."""
        title = strip_story_prefix(item.title)
        story_id = item.resolve_story_id()
        return generate_filename(f"{story_id}-{title}" if story_id else title)

    def export_item(
        self,
        item: BoardItem,
        existing_text: str | None = None,
        column: str | None = None,
    ) -> ExportedFile:
        """Render an item, updating existing_text in place when given.

        Args:
            item: Board item to export
            existing_text: Current file content, or None if there is no file
            column: Column name, used when the item carries no status

        Returns:
            ExportedFile; changed is False when existing_text is already current
        """
        status = (item.status or column or "").strip()
        # Escaped so headings in the body stay inside the Description section
        description = escape_headings(clean_body(item.body)) or NO_DESCRIPTION

        if existing_text is None:
            return ExportedFile(
                text=self.render_item(item, status, description), changed=True, created=True
            )

        blocks = self._markdown.parse(existing_text)
        sections = self._sections(blocks)
        status_section = sections.get("status")
        description_section = sections.get("description")

        current_status = _first_value(status_section.body(blocks)) if status_section else None
        current_description = (
            _joined(description_section.body(blocks)) if description_section else None
        )
        title_fixed = any(
            block.kind == BlockKind.HEADING and _DOUBLE_PREFIX.match(block.raw.strip())
            for block in blocks
        )

        if current_status == status and current_description == description and not title_fixed:
            return ExportedFile(text=existing_text, changed=False)

        updated = self._splice(blocks, status, description)
        return ExportedFile(
            text=self._markdown.stringify(updated),
            changed=True,
            title_fixed=title_fixed,
        )

    def render_item(self, item: BoardItem, status: str, description: str) -> str:
        """Canonical single-story file for an item."""
        lines = [f"## Story: {strip_story_prefix(item.title)}", ""]
        story_id = item.resolve_story_id()
        if story_id:
            lines += ["### Story ID", "", story_id, ""]
        lines += ["### Status", "", status, ""]
        lines += ["### Description", "", *description.split("\n")]
        return self._markdown.stringify(_text_blocks(lines))

    def render_board(self, board: Board) -> str:
        """Render the whole board as one story document.

        Columns become "##" sections and items become story list items, so the
        result reads back through StoryParser.
        """
        parts = [f"# {board.name or board.id}", ""]
        for column in board.columns:
            parts += [f"## {column.name}", ""]
            for item in column.items:
                title = strip_story_prefix(item.title)
                if not title:
                    continue
                story = ParsedStory(
                    title=title,
                    id=item.resolve_story_id(),
                    status=item.status or column.name,
                    description=clean_body(item.body),
                    state=item.state,
                    url=item.url,
                )
                parts += story.to_markdown().rstrip("\n").split("\n")
            parts.append("")
        while parts and not parts[-1]:
            parts.pop()
        return self._markdown.stringify(_text_blocks(parts))

    def _sections(self, blocks: list[Block]) -> dict[str, _Section]:
        """First section of each name, keyed by normalized heading text."""
        sections: dict[str, _Section] = {}
        current: tuple[str, int] | None = None
        for index, block in enumerate(blocks):
            if block.kind != BlockKind.HEADING:
                continue
            if current is not None:
                sections.setdefault(current[0], _Section(current[1], index))
                current = None
            if block.depth >= 3:
                current = (normalize_key(block.text), index)
        if current is not None:
            sections.setdefault(current[0], _Section(current[1], len(blocks)))
        return sections

    def _splice(self, blocks: list[Block], status: str, description: str) -> list[Block]:
        """Rewrite the title, status value and description body of a story file."""
        result = list(blocks)

        for index, block in enumerate(result):
            if block.kind == BlockKind.HEADING and STORY_HEADING.match(block.raw.strip()):
                if _DOUBLE_PREFIX.match(block.raw.strip()):
                    result[index] = _text(f"## Story: {strip_story_prefix(block.text)}")
                break

        sections = self._sections(result)
        status_section = sections.get("status")
        if status_section is not None:
            value_index = _first_value_index(result, status_section)
            if value_index is not None:
                result[value_index] = _text(status)
            else:
                result[status_section.heading + 1 : status_section.heading + 1] = _text_blocks(
                    ["", status]
                )

        # Boundaries may have moved
        sections = self._sections(result)
        description_blocks = _text_blocks(["", *description.split("\n")])
        description_section = sections.get("description")
        if description_section is not None:
            if description_section.end < len(result):
                description_blocks.append(_text(""))
            result[description_section.heading + 1 : description_section.end] = description_blocks
            return result

        new_section = [_text("### Description"), *description_blocks]
        status_section = sections.get("status")
        if status_section is None:
            logger.debug("No status section; appending description")
            return [*result, _text(""), *new_section]
        if status_section.end < len(result):
            new_section.append(_text(""))
        insert_at = status_section.end
        while insert_at > status_section.heading + 1 and not result[insert_at - 1].raw.strip():
            insert_at -= 1
        return [*result[:insert_at], _text(""), *new_section, *result[status_section.end :]]


def _text(raw: str) -> Block:
    kind = BlockKind.TEXT if raw.strip() else BlockKind.BLANK
    return Block(kind, 0, raw)


def _text_blocks(lines: list[str]) -> list[Block]:
    return [_text(line) for line in lines]


def _first_value_index(blocks: list[Block], section: _Section) -> int | None:
    for index in range(section.heading + 1, section.end):
        if blocks[index].raw.strip():
            return index
    return None


def _first_value(blocks: list[Block]) -> str | None:
    for block in blocks:
        if block.raw.strip():
            return block.raw.strip()
    return None


def _joined(blocks: list[Block]) -> str:
    return "\n".join(block.raw for block in blocks).strip()
