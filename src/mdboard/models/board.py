"""Board snapshot models for a GitHub Projects board."""

from enum import Enum

from pydantic import BaseModel, Field

from ..utils.status import normalize_status
from ..utils.story_id import find_story_id_in_body
from .story import ItemState


class ContentType(str, Enum):
    """Kind of content backing a board item."""

    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"
    DRAFT_ISSUE = "DraftIssue"
    PROJECT_CARD = "ProjectCard"  # Legacy (classic) project note


class BoardItem(BaseModel):
    """An item placed on the board.

    content_id and board_item_id have distinct lifetimes: content mutations
    (title, body, close/reopen) target content_id, field mutations (Status,
    Story ID) target board_item_id.
    """

    content_id: str
    board_item_id: str
    content_type: ContentType = ContentType.DRAFT_ISSUE
    title: str = ""
    url: str | None = None
    body: str = ""
    state: ItemState = ItemState.OPEN
    story_id: str | None = None
    status: str = ""

    def resolve_story_id(self) -> str | None:
        """Return the story id, backfilling it from the body if needed."""
        if not self.story_id and self.body:
            found = find_story_id_in_body(self.body)
            if found:
                self.story_id = found
        return self.story_id

    @property
    def has_state(self) -> bool:
        """Whether open/closed can be changed for this content type."""
        return self.content_type in (
            ContentType.ISSUE,
            ContentType.PULL_REQUEST,
            ContentType.PROJECT_CARD,
        )


class BoardColumn(BaseModel):
    """A status bucket on the board."""

    id: str
    name: str
    items: list[BoardItem] = Field(default_factory=list)


class StatusOption(BaseModel):
    """One option of the single-select Status field."""

    id: str
    name: str


class StatusField(BaseModel):
    """The board's single-select Status field."""

    id: str
    options: list[StatusOption] = Field(default_factory=list)

    def find_option(self, status: str) -> StatusOption | None:
        """Find an option by normalized name."""
        wanted = normalize_status(status)
        for option in self.options:
            if normalize_status(option.name) == wanted:
                return option
        return None


class Board(BaseModel):
    """Read-only snapshot of a board, rebuilt on every fetch."""

    id: str
    name: str = ""
    columns: list[BoardColumn] = Field(default_factory=list)
    status_field: StatusField | None = None
    story_id_field_id: str | None = None  # Free-text "Story ID" field, if any

    def items(self) -> list[BoardItem]:
        """All items in column (traversal) order."""
        return [item for column in self.columns for item in column.items]

    def find_status_option(self, status: str) -> StatusOption | None:
        """Resolve a status name to a Status field option."""
        if self.status_field is None:
            return None
        return self.status_field.find_option(status)

    def story_ids(self) -> set[str]:
        """Story ids known on the board (after body backfill)."""
        ids: set[str] = set()
        for item in self.items():
            story_id = item.resolve_story_id()
            if story_id:
                ids.add(story_id)
        return ids
