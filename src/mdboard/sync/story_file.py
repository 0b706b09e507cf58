"""Single-story markdown files.

These are the files the exporter writes, one story per file:

    ## Story: Login page

    ### Story ID

    WEB-1

    ### Status

    Ready

    ### Description

    Users can log in with email.

YAML frontmatter is allowed; a key normalizing to "storyid" takes priority over
the "### Story ID" section.
"""

from __future__ import annotations

import logging
import re

import frontmatter
import yaml

from ..models.config import SyncConfig
from ..models.log import RunLog
from ..models.story import ParsedStory, SourceLocation
from ..utils.story_id import extract_story_id, normalize_key
from .markdown import BlockKind, LineBlockService, MarkdownService, unescape_headings
from .parser import ParseResult

logger = logging.getLogger(__name__)

STORY_HEADING = re.compile(r"^##+\s*story\s*:", re.IGNORECASE)
_TITLE_PREFIX = re.compile(r"^(?:\s*story\s*:\s*)+", re.IGNORECASE)

SECTION_STORY_ID = "storyid"
SECTION_STATUS = "status"
SECTION_DESCRIPTION = "description"

# Placeholder written for items without a body; reads back as empty
NO_DESCRIPTION = "No description provided."


def strip_story_prefix(title: str) -> str:
    """Remove any number of leading "Story:" prefixes from a title."""
    return _TITLE_PREFIX.sub("", title).strip()


def is_story_file(content: str) -> bool:
    """Whether content is a single-story file (a "## Story:" heading up front)."""
    try:
        body = frontmatter.loads(content).content
    except yaml.YAMLError:
        body = content
    lines = body.strip().splitlines()[:3]
    return any(STORY_HEADING.match(line.strip()) for line in lines)


def parse_story_file(
    content: str,
    file_name: str,
    config: SyncConfig | None = None,
    markdown: MarkdownService | None = None,
) -> ParseResult:
    """Parse a single-story file into a ParseResult with at most one story.

    Args:
        content: File content, optionally with YAML frontmatter
        file_name: File path; its stem is the fallback story id
        config: Sync configuration (default status)
        markdown: Block-tree service

    Returns:
        ParseResult with one story, or an error if the title is missing
    """
    config = config or SyncConfig()
    markdown = markdown or LineBlockService()
    log = RunLog(__name__)

    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        log.error(f"Invalid frontmatter: {e}", file=file_name)
        return ParseResult(errors=log.errors, log=log.entries)

    title = ""
    title_line = 0
    sections: dict[str, list[str]] = {}
    current: str | None = None

    for block in markdown.parse(post.content):
        if block.kind == BlockKind.HEADING and block.depth == 2 and not title:
            if STORY_HEADING.match(block.raw.strip()):
                title = strip_story_prefix(block.text)
                title_line = block.line
                current = None
                continue
        if block.kind == BlockKind.HEADING and block.depth >= 3:
            current = normalize_key(block.text)
            sections.setdefault(current, [])
            continue
        if current is not None:
            sections[current].append(block.raw)

    if not title:
        log.error("Missing story title", file=file_name)
        return ParseResult(errors=log.errors, log=log.entries)

    metadata = dict(post.metadata)
    section_id = _first_line(sections.get(SECTION_STORY_ID, []))
    if section_id and not any(normalize_key(str(k)) == "storyid" for k in metadata):
        metadata["storyId"] = section_id
    story_id = extract_story_id(metadata, file_name)

    status = _first_line(sections.get(SECTION_STATUS, [])) or config.default_status
    description = unescape_headings("\n".join(sections.get(SECTION_DESCRIPTION, []))).strip()
    if description == NO_DESCRIPTION:
        description = ""

    logger.debug("Parsed story file %s: id=%s status=%s", file_name, story_id, status)
    story = ParsedStory(
        title=title,
        id=story_id,
        status=status,
        description=description,
        source=SourceLocation(file=file_name, line=title_line),
    )
    return ParseResult(stories=[story], log=log.entries)


def _first_line(lines: list[str]) -> str:
    for line in lines:
        if line.strip():
            return line.strip()
    return ""
