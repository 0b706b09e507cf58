"""Mutation intents produced by the sync planner.

MutationIntent is a closed union of frozen dataclasses. Use isinstance()
checks to narrow the type; consumers end their dispatch with assert_never so
that adding a variant is caught by the type checker.

Intents that act on an item created earlier in the same plan reference it with
PendingItem, an index into the intent list, instead of a sentinel string id.
"""

from __future__ import annotations

from dataclasses import dataclass

from .board import ContentType
from .story import ItemState


@dataclass(frozen=True)
class PendingItem:
    """Reference to the item a CreateItem at `intent_index` will produce."""

    intent_index: int


# A board item id that is either already known or resolved after creation
ItemRef = str | PendingItem


@dataclass(frozen=True)
class CreateItem:
    """Create a draft item on the board."""

    title: str
    body: str
    story_id: str | None = None
    initial_status: str | None = None


@dataclass(frozen=True)
class UpdateItemContent:
    """Replace title/body of existing content."""

    target_id: str  # content id
    content_type: ContentType
    title: str
    body: str
    state: ItemState = ItemState.OPEN


@dataclass(frozen=True)
class UpdateItemStatus:
    """Set the single-select Status field of a board item."""

    target: ItemRef  # board item id
    field_id: str
    status_option_id: str
    status_name: str = ""


@dataclass(frozen=True)
class UpdateItemState:
    """Close or reopen existing content."""

    target_id: str  # content id
    content_type: ContentType
    state: ItemState


@dataclass(frozen=True)
class UpdateItemText:
    """Set a free-text field (the "Story ID" field) of a board item."""

    target: ItemRef  # board item id
    field_id: str
    text: str


@dataclass(frozen=True)
class Skip:
    """No mutation needed."""

    reason: str
    title: str = ""


MutationIntent = (
    CreateItem | UpdateItemContent | UpdateItemStatus | UpdateItemState | UpdateItemText | Skip
)


def is_dependent(intent: MutationIntent) -> bool:
    """Whether the intent targets an item that does not exist yet."""
    if isinstance(intent, UpdateItemStatus | UpdateItemText):
        return isinstance(intent.target, PendingItem)
    return False
