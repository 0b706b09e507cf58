"""Multi-story markdown parser.

A story document groups list items under section headings:

    ## Ready
    - Story: Login page
      story id: WEB-1
      description:
        Users can log in with email.

The nearest preceding section heading decides a story's status. Field lines
under a story are `key: value` pairs; only "story id" and "description" are
recognized, with spaces, hyphens and underscores ignored in the key.
"""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass, field

from ..models.config import SyncConfig
from ..models.log import LogEntry, RunLog
from ..models.story import ItemState, ParsedStory, SourceLocation
from ..utils.story_id import normalize_key, suggest_story_id, validate_story_id
from .markdown import Block, BlockKind, LineBlockService, MarkdownService

logger = logging.getLogger(__name__)

_STORY_START = re.compile(r"^(?:\[([ xX])\]\s+)?Story:\s*(.*?)\s*$")
_FIELD = re.compile(r"^(\s*)(?:[-*+]\s+)?([A-Za-z][\w \t\-]*?)\s*:(?:\s+(.*)|\s*)$")
_LINK_TITLE = re.compile(r"^\[(.+?)\]\((\S+?)\)$")

KEY_STORY_ID = "storyid"
KEY_DESCRIPTION = "description"
RECOGNIZED_KEYS = (KEY_STORY_ID, KEY_DESCRIPTION)


@dataclass
class IdPatch:
    """A suggested id for a story written without one."""

    title: str
    suggested_id: str
    file: str | None
    line: int  # Line of the story list item

    def field_line(self) -> str:
        """The line to add under the story item."""
        return f"  story id: {self.suggested_id}"


@dataclass
class ParseResult:
    """Stories parsed from one document plus diagnostics."""

    stories: list[ParsedStory] = field(default_factory=list)
    warnings: list[LogEntry] = field(default_factory=list)
    errors: list[LogEntry] = field(default_factory=list)
    log: list[LogEntry] = field(default_factory=list)  # Every entry, in order
    id_patches: list[IdPatch] = field(default_factory=list)


@dataclass
class _FieldLine:
    indent: int
    key: str
    value: str

    @property
    def normalized(self) -> str:
        return normalize_key(self.key)


@dataclass
class _StoryDraft:
    """A story being assembled line by line."""

    title: str
    status: str
    line: int
    state: ItemState = ItemState.OPEN
    url: str | None = None
    story_id: str | None = None
    description_parts: list[str] = field(default_factory=list)

    # Current description segment
    in_description: bool = False
    description_indent: int = 0
    inline_value: str = ""
    segment_lines: list[str] = field(default_factory=list)

    def start_description(self, indent: int, inline_value: str) -> None:
        self.end_description()
        self.in_description = True
        self.description_indent = indent
        self.inline_value = inline_value.strip()
        self.segment_lines = []

    def end_description(self) -> None:
        if not self.in_description:
            return
        body = textwrap.dedent("\n".join(self.segment_lines)).strip("\n").rstrip()
        segment = "\n".join(part for part in (self.inline_value, body) if part)
        if segment:
            self.description_parts.append(segment)
        self.in_description = False
        self.inline_value = ""
        self.segment_lines = []

    @property
    def description(self) -> str:
        return "\n".join(self.description_parts).rstrip()


class StoryParser:
    """Parse markdown text into ParsedStory records."""

    def __init__(
        self,
        config: SyncConfig | None = None,
        markdown: MarkdownService | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            config: Sync configuration (status aliases, id validation)
            markdown: Block-tree service; defaults to LineBlockService
        """
        self._config = config or SyncConfig()
        self._markdown = markdown or LineBlockService()

    def parse(
        self,
        text: str,
        file_name: str | None = None,
        known_ids: set[str] | None = None,
    ) -> ParseResult:
        """Parse all stories from a document.

        Args:
            text: Markdown content
            file_name: Source name used in diagnostics
            known_ids: Ids in use elsewhere (other files, the board); id
                suggestions for stories without one avoid them

        Returns:
            ParseResult with stories (first occurrence of each id), warnings
            (duplicate ids, unknown fields), errors (missing ids or titles)
            and an id suggestion for every story missing an id
        """
        log = RunLog(__name__)
        stories: list[ParsedStory] = []
        seen_ids: set[str] = set()
        missing: list[_StoryDraft] = []
        section = self._config.default_status
        current: _StoryDraft | None = None

        def flush() -> None:
            nonlocal current
            if current is None:
                return
            current.end_description()
            self._finish(current, file_name, stories, seen_ids, missing, log)
            current = None

        for block in self._markdown.parse(text):
            if block.kind == BlockKind.HEADING:
                flush()
                if block.depth >= 2:
                    section = self._config.resolve_heading(block.text)
                    logger.debug("Section %r -> status %r", block.text, section)
                continue

            if block.kind == BlockKind.LIST_ITEM:
                start = _STORY_START.match(block.text)
                if start:
                    flush()
                    current = self._open_story(start, section, block.line)
                    continue

            if current is None:
                continue

            field_line = None if block.kind == BlockKind.CODE else self._parse_field(block)

            if current.in_description:
                if field_line is None or field_line.indent > current.description_indent:
                    current.segment_lines.append(block.raw)
                    continue
                # A field at or above the description's indent ends it
                current.end_description()
                if field_line.normalized not in RECOGNIZED_KEYS:
                    log.warn(
                        f'Unknown field key "{field_line.key}"',
                        file=file_name,
                        line=block.line,
                    )
                    continue

            if field_line is None:
                continue

            if field_line.normalized == KEY_STORY_ID:
                if field_line.value.strip():
                    current.story_id = field_line.value.strip()
            elif field_line.normalized == KEY_DESCRIPTION:
                current.start_description(field_line.indent, field_line.value)
            else:
                log.warn(
                    f'Unknown field key "{field_line.key}"',
                    file=file_name,
                    line=block.line,
                )

        flush()

        # Suggestions are unique across the whole document, not just earlier stories
        taken = seen_ids | (known_ids or set())
        id_patches = []
        for draft in missing:
            suggested_id = suggest_story_id(draft.title, taken)
            taken.add(suggested_id)
            id_patches.append(IdPatch(draft.title, suggested_id, file_name, draft.line))

        log.debug(
            f"Parsed {len(stories)} stories",
            file=file_name,
            warnings=len(log.warnings),
            errors=len(log.errors),
        )
        return ParseResult(
            stories=stories,
            warnings=log.warnings,
            errors=log.errors,
            log=log.entries,
            id_patches=id_patches,
        )

    def _open_story(self, match: re.Match[str], section: str, line: int) -> _StoryDraft:
        checkbox, title = match.group(1), match.group(2)
        url = None
        link = _LINK_TITLE.match(title)
        if link:
            title, url = link.group(1).strip(), link.group(2)
        state = ItemState.CLOSED if checkbox in ("x", "X") else ItemState.OPEN
        return _StoryDraft(title=title, status=section, line=line, state=state, url=url)

    def _parse_field(self, block: Block) -> _FieldLine | None:
        match = _FIELD.match(block.raw)
        if not match:
            return None
        return _FieldLine(
            indent=len(match.group(1).expandtabs(4)),
            key=match.group(2),
            value=match.group(3) or "",
        )

    def _finish(
        self,
        draft: _StoryDraft,
        file_name: str | None,
        stories: list[ParsedStory],
        seen_ids: set[str],
        missing: list[_StoryDraft],
        log: RunLog,
    ) -> None:
        """Apply the title, missing-id and duplicate-id checks to a completed story."""
        if not draft.title:
            log.error("Missing story title", file=file_name, line=draft.line)
            return

        if not draft.story_id:
            log.error("Missing ID", file=file_name, line=draft.line, title=draft.title)
            missing.append(draft)
            return

        if draft.story_id in seen_ids:
            log.warn(
                f'Duplicate ID "{draft.story_id}"',
                file=file_name,
                line=draft.line,
                title=draft.title,
            )
            return

        if self._config.validate_ids:
            for issue in validate_story_id(draft.story_id).issues:
                log.warn(
                    issue.message,
                    file=file_name,
                    line=draft.line,
                    story_id=draft.story_id,
                    suggestion=issue.suggestion,
                )

        seen_ids.add(draft.story_id)
        stories.append(
            ParsedStory(
                title=draft.title,
                id=draft.story_id,
                status=draft.status,
                description=draft.description,
                state=draft.state,
                url=draft.url,
                source=SourceLocation(file=file_name, line=draft.line),
            )
        )
