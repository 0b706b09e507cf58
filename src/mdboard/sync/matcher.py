"""Match parsed stories to existing board items."""

from __future__ import annotations

import logging
import re

from ..models.board import Board, BoardItem
from ..models.config import DEFAULT_INVALID_ID_PATTERN
from ..models.story import ParsedStory
from .story_file import strip_story_prefix

logger = logging.getLogger(__name__)


def normalize_title(title: str) -> str:
    """Normalize a title for comparison: no "Story:" prefix, trimmed, casefolded."""
    return strip_story_prefix(title).casefold()


class ItemMatcher:
    """Find the board item a story corresponds to.

    Rules are tried in strict priority order, each over the whole board in
    traversal order; the first hit wins:

    1. story id equality (ids found in item bodies are backfilled first)
    2. url equality, when the story links to an issue/PR
    3. title equality, ignoring case, surrounding whitespace and "Story:"

    Ambiguous matches are not resolved beyond that order.
    """

    def __init__(self, invalid_id_pattern: str | None = DEFAULT_INVALID_ID_PATTERN) -> None:
        """Initialize the matcher.

        Args:
            invalid_id_pattern: Regex for item ids that must never be matched
                (None disables the check)
        """
        self._invalid_id = re.compile(invalid_id_pattern) if invalid_id_pattern else None

    def is_matchable(self, item: BoardItem) -> bool:
        """Whether an item can take part in matching."""
        for item_id in (item.content_id, item.board_item_id):
            if not item_id:
                return False
            if self._invalid_id is not None and self._invalid_id.search(item_id):
                return False
        return True

    def candidates(self, board: Board) -> list[BoardItem]:
        """Board items eligible for matching, in traversal order."""
        items = []
        for item in board.items():
            if self.is_matchable(item):
                items.append(item)
            else:
                logger.debug("Skipping item with invalid id: %s", item.content_id)
        return items

    def match(self, story: ParsedStory, board: Board) -> BoardItem | None:
        """Return the matching board item, or None."""
        items = self.candidates(board)

        if story.id:
            for item in items:
                if item.resolve_story_id() == story.id:
                    logger.debug("Matched %r by story id %s", story.title, story.id)
                    return item

        if story.url:
            for item in items:
                if item.url and item.url == story.url:
                    logger.debug("Matched %r by url %s", story.title, story.url)
                    return item

        title = normalize_title(story.title)
        if title:
            for item in items:
                if normalize_title(item.title) == title:
                    logger.debug("Matched %r by title", story.title)
                    return item

        return None
