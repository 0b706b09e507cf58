"""Sync planner: decide which mutations bring the board in line with markdown.

Planning is pure: it reads parsed stories and a board snapshot and returns
intents. Re-planning against a board that already reflects the stories yields
only Skip intents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models.board import Board, BoardItem, ContentType
from ..models.config import SyncConfig, SyncPolicy
from ..models.intents import (
    CreateItem,
    MutationIntent,
    PendingItem,
    Skip,
    UpdateItemContent,
    UpdateItemState,
    UpdateItemStatus,
    UpdateItemText,
)
from ..models.log import LogEntry, LogLevel, RunLog
from ..models.story import ParsedStory
from ..utils.status import normalize_status
from .matcher import ItemMatcher

logger = logging.getLogger(__name__)

SKIP_EXISTS = "already exists"
SKIP_NO_CHANGE = "no change"


@dataclass
class PlanResult:
    """Intents for one document, plus planning diagnostics."""

    intents: list[MutationIntent] = field(default_factory=list)
    log: list[LogEntry] = field(default_factory=list)

    @property
    def warnings(self) -> list[LogEntry]:
        return [e for e in self.log if e.level == LogLevel.WARN]

    @property
    def skipped(self) -> int:
        return sum(1 for intent in self.intents if isinstance(intent, Skip))

    @property
    def only_skips(self) -> bool:
        """True when there is nothing to send (idempotent re-run)."""
        return all(isinstance(intent, Skip) for intent in self.intents)


class SyncPlanner:
    """Turn parsed stories into mutation intents for a board."""

    def __init__(self, config: SyncConfig | None = None, matcher: ItemMatcher | None = None):
        """Initialize the planner.

        Args:
            config: Sync configuration (default status, invalid id pattern)
            matcher: Item matcher; built from config if not given
        """
        self._config = config or SyncConfig()
        self._matcher = matcher or ItemMatcher(self._config.invalid_id_pattern)

    def plan(
        self,
        stories: list[ParsedStory],
        board: Board,
        policy: SyncPolicy | None = None,
    ) -> PlanResult:
        """Plan the mutations for a list of stories.

        Args:
            stories: Parsed stories (ids already de-duplicated)
            board: Current board snapshot
            policy: CREATE_ONLY or FULL_SYNC; defaults to the configured policy

        Returns:
            PlanResult with one or more intents per story
        """
        policy = policy or self._config.policy
        log = RunLog(__name__)
        intents: list[MutationIntent] = []

        for story in stories:
            item = self._matcher.match(story, board)

            if item is None:
                log.debug(f'No existing item for "{story.title}"', story_id=story.id)
                self._plan_create(story, board, intents, log)
                continue

            log.debug(
                f'Found existing item for "{story.title}"',
                story_id=story.id,
                item_id=item.board_item_id,
            )
            if policy == SyncPolicy.CREATE_ONLY:
                intents.append(Skip(SKIP_EXISTS, story.title))
                continue

            updates = self._plan_updates(story, item, board, log)
            if updates:
                intents.extend(updates)
            else:
                intents.append(Skip(SKIP_NO_CHANGE, story.title))

        logger.debug("Planned %d intents for %d stories", len(intents), len(stories))
        return PlanResult(intents=intents, log=log.entries)

    def _plan_create(
        self,
        story: ParsedStory,
        board: Board,
        intents: list[MutationIntent],
        log: RunLog,
    ) -> None:
        """Append a CreateItem and the intents that depend on it."""
        create_index = len(intents)
        wants_status = normalize_status(story.status) != normalize_status(
            self._config.default_status
        )
        intents.append(
            CreateItem(
                title=story.title,
                body=story.description,
                story_id=story.id,
                initial_status=story.status if wants_status else None,
            )
        )

        if wants_status and board.status_field is not None:
            status = self._status_intent(story, board, PendingItem(create_index), log)
            if status is not None:
                intents.append(status)

        if story.id and board.story_id_field_id:
            intents.append(
                UpdateItemText(
                    target=PendingItem(create_index),
                    field_id=board.story_id_field_id,
                    text=story.id,
                )
            )

    def _plan_updates(
        self,
        story: ParsedStory,
        item: BoardItem,
        board: Board,
        log: RunLog,
    ) -> list[MutationIntent]:
        """Full-sync updates for a matched story; empty when nothing differs."""
        updates: list[MutationIntent] = []

        content_changed = story.description.strip() != item.body.strip()
        state_changed = item.has_state and story.state != item.state

        if content_changed or (state_changed and item.content_type == ContentType.PROJECT_CARD):
            # Legacy cards carry their archived flag on the content update
            updates.append(
                UpdateItemContent(
                    target_id=item.content_id,
                    content_type=item.content_type,
                    title=story.title,
                    body=story.description,
                    state=story.state,
                )
            )
        if state_changed and item.content_type != ContentType.PROJECT_CARD:
            updates.append(
                UpdateItemState(
                    target_id=item.content_id,
                    content_type=item.content_type,
                    state=story.state,
                )
            )

        if board.status_field is not None and normalize_status(story.status) != normalize_status(
            item.status, self._config.default_status
        ):
            status = self._status_intent(story, board, item.board_item_id, log)
            if status is not None:
                updates.append(status)

        return updates

    def _status_intent(
        self,
        story: ParsedStory,
        board: Board,
        target: str | PendingItem,
        log: RunLog,
    ) -> UpdateItemStatus | None:
        """Resolve the story's status to an option; warn and drop if none matches."""
        option = board.find_status_option(story.status)
        if option is None or board.status_field is None:
            log.warn(
                f'No status option matches "{story.status}"; status not set',
                story_id=story.id,
                title=story.title,
            )
            return None
        return UpdateItemStatus(
            target=target,
            field_id=board.status_field.id,
            status_option_id=option.id,
            status_name=option.name,
        )
